"""
Gestionnaires d’exceptions utilisés par la factory.
- HTTPException: corps JSON {"detail": ...} pour les clients de l’API.
- RequestValidationError: 400 avec la liste des champs invalides (payload checkout/webhook mal formé).
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers HTTPException et RequestValidationError.
    - Les erreurs de validation sont surfacées telles quelles à l’appelant (aucun effet de bord n’a eu lieu).
    """
    @app.exception_handler(HTTPException)
    async def json_http_exception(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def json_validation_error(request: Request, exc: RequestValidationError):
        logger.info("Requête invalide path=%s errors=%s", request.url.path, len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Requête invalide", "detail": jsonable_errors(exc)},
        )

def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc") or []), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
