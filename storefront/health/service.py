"""
Diagnostic de connectivité Supabase (sans exposer de secret).
"""
import logging
from typing import Any, Dict

from storefront.config import SUPABASE_URL, SUPABASE_SERVICE_KEY
from storefront.infra.supabase_client import get_db

logger = logging.getLogger(__name__)

def health_supabase_info() -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "url_configured": bool(SUPABASE_URL),
        "service_key_configured": bool(SUPABASE_SERVICE_KEY),
        "connect_ok": False,
    }
    try:
        get_db().table("stores").select("id").limit(1).execute()
        info["connect_ok"] = True
    except Exception as e:
        logger.warning("health.supabase connect failed: %s", e)
        info["error"] = type(e).__name__
    return info
