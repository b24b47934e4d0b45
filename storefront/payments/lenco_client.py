"""
Adaptateur Lenco (mobile money): centralise l'appel à la fonction edge 'lenco-payment-handler'.
- Politique explicite quand la passerelle est injoignable (GatewayFallbackPolicy).
- Aucune exception réseau ne remonte: le résultat est toujours un PaymentResult.
"""
import logging
import math
import re
import secrets
import time
from enum import Enum
from typing import Optional

import httpx

from storefront.config import (
    LENCO_FUNCTION_URL,
    LENCO_CURRENCY,
    LENCO_TIMEOUT_SECONDS,
    LENCO_GATEWAY_FALLBACK,
    SUPABASE_ANON,
    PAYMENT_REFERENCE_PREFIX,
)

logger = logging.getLogger(__name__)

# Préfixes Airtel (numéro national sans 0 initial: 077, 076, 075); tout le reste part sur MTN
AIRTEL_PREFIXES = ("77", "76", "75")
DEFAULT_OPERATOR = "mtn"

class GatewayFallbackPolicy(str, Enum):
    MOCK_SUCCESS = "mock_success"
    FAIL = "fail"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "GatewayFallbackPolicy":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.MOCK_SUCCESS

class PaymentResult:
    def __init__(
        self,
        success: bool,
        message: str,
        transaction_id: Optional[str] = None,
        mocked: bool = False,
    ):
        self.success = success
        self.message = message
        self.transaction_id = transaction_id
        self.mocked = mocked

    def __repr__(self) -> str:
        return f"PaymentResult(success={self.success}, transaction_id={self.transaction_id!r}, mocked={self.mocked})"

def _now_ms() -> int:
    return int(time.time() * 1000)

def normalize_phone(phone: str) -> str:
    """Ne garde que les chiffres et retire l'indicatif 260 / le 0 national."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("260"):
        digits = digits[3:]
    return digits.lstrip("0")

def detect_operator(phone: str) -> str:
    """Déduit l'opérateur mobile money à partir du préfixe du numéro."""
    national = normalize_phone(phone)
    if national.startswith(AIRTEL_PREFIXES):
        return "airtel"
    return DEFAULT_OPERATOR

def make_payment_reference(store_id: str) -> str:
    """Référence unique par boutique et par tentative: <prefix>-<8 car. store>-<epoch ms>-<aléa>."""
    return f"{PAYMENT_REFERENCE_PREFIX}-{(store_id or '')[:8]}-{_now_ms()}-{secrets.token_hex(2)}"

class LencoClient:
    """
    Client de paiement Lenco.
    - url: endpoint de la fonction edge (LENCO_FUNCTION_URL)
    - fallback: politique si la passerelle est absente (404), injoignable ou trop lente
    - transport: injectable (httpx.MockTransport en tests)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: Optional[float] = None,
        fallback: Optional[GatewayFallbackPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url if url is not None else LENCO_FUNCTION_URL
        self.api_key = api_key if api_key is not None else SUPABASE_ANON
        self.currency = currency or LENCO_CURRENCY
        self.timeout = timeout if timeout is not None else LENCO_TIMEOUT_SECONDS
        self.fallback = fallback or GatewayFallbackPolicy.from_value(LENCO_GATEWAY_FALLBACK)
        self.transport = transport

    def _unavailable(self, reason: str, mock_prefix: str) -> PaymentResult:
        if self.fallback is GatewayFallbackPolicy.FAIL:
            logger.error("lenco.initiate_payment gateway unavailable (%s), fallback=fail", reason)
            return PaymentResult(False, "Service de paiement indisponible.")
        logger.warning("lenco.initiate_payment gateway unavailable (%s), mocking success", reason)
        return PaymentResult(
            True,
            f"Paiement simulé ({reason}).",
            transaction_id=f"{mock_prefix}-{_now_ms()}",
            mocked=True,
        )

    def build_payload(self, phone: str, amount: float, reference: str) -> dict:
        return {
            "amount": int(math.floor(amount + 0.5)),
            "currency": self.currency,
            "reference": reference,
            "phone": phone,
            "operator": detect_operator(phone),
        }

    async def initiate_payment(self, phone: str, amount: float, reference: str) -> PaymentResult:
        """
        Démarre une transaction mobile money.
        - 404 (fonction non déployée), erreur réseau, timeout ou corps non JSON: politique de repli.
        - Réponse explicite non-succès du fournisseur: échec réel (propagé à la sous-commande).
        """
        if not self.url:
            return self._unavailable("passerelle non configurée", "MOCKED-LENCO")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = self.build_payload(phone, amount, reference)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("lenco.initiate_payment timeout reference=%s: %s", reference, e)
            return self._unavailable("délai dépassé", "MOCKED-OFFLINE")
        except httpx.RequestError as e:
            logger.warning("lenco.initiate_payment network error reference=%s: %s", reference, e)
            return self._unavailable("erreur réseau", "MOCKED-OFFLINE")

        if response.status_code == 404:
            return self._unavailable("fonction absente", "MOCKED-LENCO")

        try:
            result = response.json()
        except ValueError:
            # Page HTML d'un proxy (502...): la passerelle n'a pas répondu, ce n'est pas un refus
            logger.warning("lenco.initiate_payment invalid JSON status=%s reference=%s", response.status_code, reference)
            return self._unavailable("réponse illisible", "MOCKED-OFFLINE")
        if not isinstance(result, dict):
            result = {}

        if not response.is_success or not result.get("success"):
            logger.error("lenco.initiate_payment declined status=%s result=%s", response.status_code, result)
            return PaymentResult(False, result.get("message") or "Paiement refusé.")

        data = result.get("data") or {}
        transaction_id = data.get("id") or data.get("transactionId") or f"LENCO-REF-{reference}"
        logger.info("lenco.initiate_payment accepted reference=%s transaction_id=%s", reference, transaction_id)
        return PaymentResult(True, "Paiement initié.", transaction_id=str(transaction_id))

def get_payment_gateway() -> LencoClient:
    """Dépendance FastAPI: client Lenco configuré depuis l'environnement."""
    return LencoClient()
