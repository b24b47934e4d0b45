"""
Cas d'usage 'payments': réconciliation des callbacks Lenco avec l'état des commandes.
Machine à états (Order.status):
- pending_payment -> paid_pending_delivery | payment_failed | on_hold
- on_hold         -> paid_pending_delivery | payment_failed
Toute autre transition (ex: commande payée qui recevrait un "failed" tardif) est ignorée et journalisée.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from starlette.concurrency import run_in_threadpool
from supabase import Client

from storefront.config import LENCO_WEBHOOK_SECRET, IS_PRODUCTION
from . import repository
from . import webhook
from .errors import DatabaseError, MissingIdentifier, OrderNotFound

logger = logging.getLogger(__name__)

PENDING_PAYMENT = "pending_payment"
PAID_PENDING_DELIVERY = "paid_pending_delivery"
PAYMENT_FAILED = "payment_failed"
ON_HOLD = "on_hold"

TARGET_BY_STATUS = {
    "successful": PAID_PENDING_DELIVERY,
    "failed": PAYMENT_FAILED,
    "on_hold": ON_HOLD,
    "fraud_alert": ON_HOLD,
}

ALLOWED_TRANSITIONS = {
    PENDING_PAYMENT: {PAID_PENDING_DELIVERY, PAYMENT_FAILED, ON_HOLD},
    ON_HOLD: {PAID_PENDING_DELIVERY, PAYMENT_FAILED},
}

def target_status(provider_status: Optional[str]) -> Optional[str]:
    return TARGET_BY_STATUS.get((provider_status or "").lower())

def plan_transition(order: Dict[str, Any], provider_status: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Champs à écrire pour une commande, ou None s'il n'y a rien à faire:
    - statut non géré par le système,
    - commande déjà dans l'état cible (idempotence: pas de second code de livraison),
    - transition non autorisée (retour arrière).
    """
    target = target_status(provider_status)
    if target is None:
        return None
    current = order.get("status")
    if current == target:
        return None
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        logger.warning(
            "payments.webhook transition ignored order_id=%s %s -> %s",
            order.get("id"), current, target,
        )
        return None
    fields: Dict[str, Any] = {
        "status": target,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    if target == PAID_PENDING_DELIVERY:
        fields["delivery_code"] = webhook.generate_delivery_code(str(order.get("store_id") or ""))
    return fields

async def _apply_update(client: Client, order: Dict[str, Any], fields: Dict[str, Any]) -> bool:
    # Conditionné sur le statut lu: un callback concurrent qui a déjà écrit gagne
    written = await run_in_threadpool(
        repository.update_order, client, order["id"], fields, expected_status=order.get("status")
    )
    if not written:
        logger.info(
            "payments.webhook order %s changed concurrently (expected %s), %s skipped",
            order["id"], order.get("status"), fields["status"],
        )
        return False
    logger.info("payments.webhook order %s -> %s", order["id"], fields["status"])
    return True

async def reconcile_payment_event(
    client: Client,
    raw_body: bytes,
    signature: Optional[str],
    secret: Optional[str] = None,
    strict: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Traite un callback Lenco de bout en bout.
    - Authentifie (HMAC-SHA512), normalise, retrouve les commandes, applique les transitions.
    - Mises à jour concurrentes et indépendantes: un échec n'empêche pas les autres.
    - Lève une WebhookError typée (401/400/404/500) en cas de rejet.
    """
    secret = LENCO_WEBHOOK_SECRET if secret is None else secret
    strict = IS_PRODUCTION if strict is None else strict

    try:
        webhook.verify_signature(raw_body, signature, secret, strict)
    except Exception:
        logger.warning("payments.webhook signature rejected received=%s", signature)
        raise

    event = webhook.normalize_payload(webhook.parse_payload(raw_body))
    logger.info(
        "payments.webhook processing reference=%s transaction_id=%s status=%s event=%s",
        event.reference, event.transaction_id, event.status, event.event,
    )

    identifiers = event.identifiers
    if not identifiers:
        raise MissingIdentifier()

    try:
        orders = await run_in_threadpool(repository.find_orders_by_escrow_ids, client, identifiers)
    except Exception as e:
        logger.exception("payments.webhook lookup failed identifiers=%s", identifiers)
        raise DatabaseError(str(e))

    if not orders:
        logger.warning("payments.webhook order not found identifiers=%s", identifiers)
        raise OrderNotFound()

    planned = []
    for order in orders:
        fields = plan_transition(order, event.status)
        if fields is not None:
            planned.append((order, fields))

    if not planned:
        return {"success": True, "message": "Processed", "updated": 0}

    results = await asyncio.gather(
        *(_apply_update(client, order, fields) for order, fields in planned),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, Exception)]
    for (order, _), result in zip(planned, results):
        if isinstance(result, Exception):
            logger.error("payments.webhook update failed order_id=%s: %s", order.get("id"), result)
    if failures and len(failures) == len(planned):
        raise DatabaseError(str(failures[0]))

    return {"success": True, "message": "Processed", "updated": sum(1 for r in results if r is True)}
