"""
Authentification et normalisation des callbacks Lenco (aucun accès base).
"""
import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Dict, Optional

from .errors import InvalidSignature, MissingSignature, MalformedPayload

# Statuts d'événement -> statut normalisé quand "status" est absent
EVENT_STATUS = {
    "transaction.successful": "successful",
    "transaction.failed": "failed",
}

class PaymentEvent:
    def __init__(
        self,
        status: Optional[str],
        transaction_id: Optional[str],
        reference: Optional[str],
        event: Optional[str] = None,
    ):
        self.status = status
        self.transaction_id = transaction_id
        self.reference = reference
        self.event = event

    @property
    def identifiers(self) -> list:
        """Identifiants candidats (transactionId puis reference), sans doublon ni vide."""
        ids = []
        for value in (self.transaction_id, self.reference):
            if value and value not in ids:
                ids.append(value)
        return ids

# module storefront.payments.webhook
def compute_signature(raw_body: bytes, secret: str) -> str:
    """HMAC-SHA512 hexadécimal du corps brut."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()

def verify_signature(raw_body: bytes, signature: Optional[str], secret: str, strict: bool) -> bool:
    """
    Vérifie la signature d'un callback.
    - Secret configuré ou mode strict (production): signature obligatoire et exacte.
    - Sans secret hors production: vérification ignorée (dev uniquement), retourne False.
    Retourne True si une vérification a été effectuée avec succès.
    """
    if not secret and not strict:
        return False
    if not signature:
        raise MissingSignature()
    if not secret:
        # Production sans secret: aucune signature ne peut être validée
        raise InvalidSignature("Webhook secret not configured")
    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(signature.strip().lower(), expected):
        raise InvalidSignature()
    return True

def _as_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)

def parse_payload(raw_body: bytes) -> Dict[str, Any]:
    try:
        body = json.loads(raw_body.decode("utf-8") if isinstance(raw_body, (bytes, bytearray)) else raw_body)
    except (ValueError, UnicodeDecodeError):
        raise MalformedPayload("Invalid JSON")
    if not isinstance(body, dict):
        raise MalformedPayload("JSON object expected")
    return body

def normalize_payload(body: Dict[str, Any]) -> PaymentEvent:
    """
    Supporte la forme plate {status, transactionId, reference}
    et la forme enveloppée {event, data: {status, transactionId, reference}}.
    """
    status = body.get("status")
    transaction_id = body.get("transactionId")
    reference = body.get("reference")
    event = body.get("event")

    data = body.get("data")
    if isinstance(data, dict):
        status = data.get("status") or status
        transaction_id = data.get("transactionId") or transaction_id
        reference = data.get("reference") or reference

    if not status and event:
        status = EVENT_STATUS.get(event)

    return PaymentEvent(
        status=_as_str(status).lower() if _as_str(status) else None,
        transaction_id=_as_str(transaction_id),
        reference=_as_str(reference),
        event=_as_str(event),
    )

def generate_delivery_code(store_id: str) -> str:
    """DLV-<4 premiers car. du store en majuscules>-<fin de l'epoch ms>-<4 chiffres aléatoires>."""
    store_prefix = (store_id or "")[:4].upper()
    timestamp = str(int(time.time() * 1000))[8:]
    random_part = 1000 + secrets.randbelow(9000)
    return f"DLV-{store_prefix}-{timestamp}-{random_part}"
