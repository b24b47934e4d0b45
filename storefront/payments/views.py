import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.config import LENCO_SIGNATURE_HEADER
from storefront.infra.supabase_client import get_db
from storefront.payments import service as payments_service
from storefront.payments.errors import WebhookError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["Payments webhooks"])

# module storefront.payments.views
@router.post("/lenco", include_in_schema=False)
async def webhook_lenco(request: Request, client: Client = Depends(get_db)):
    """
    Webhook Lenco: réconcilie le statut de paiement avec les commandes.
    - Signature: HMAC-SHA512 du corps brut dans l'en-tête x-lenco-signature (LENCO_WEBHOOK_SECRET)
    - Réponses: 200 {"success": true} (y compris statut non géré), 401 signature,
      400 payload/identifiant manquant, 404 commande inconnue, 500 base ou erreur inattendue
    - Aucun détail interne n'est renvoyé à l'appelant.
    """
    try:
        raw_body = await request.body()
        signature = request.headers.get(LENCO_SIGNATURE_HEADER)
        result = await payments_service.reconcile_payment_event(client, raw_body, signature)
        return JSONResponse(result)
    except WebhookError as e:
        logger.warning("payments.webhook rejected code=%s status=%s detail=%s", e.code, e.status_code, e)
        return JSONResponse({"error": e.public_message}, status_code=e.status_code)
    except Exception:
        logger.exception("Erreur webhook_lenco")
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)
