# module storefront.app
"""
Instance FastAPI unique de l'application, construite par la factory (storefront.app_setup.factory).
"""
import logging
import os

from storefront.app_setup.factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
