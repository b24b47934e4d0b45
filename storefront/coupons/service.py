"""Cas d'usage 'coupons': résolution d'un code sur les boutiques du panier et calcul de remise.
Rôles:
- resolve_coupon: première boutique candidate possédant le code.
- apply_coupon: au plus un coupon actif par boutique (remplacement, jamais de cumul).
- active_coupons: rejoue une liste reçue du client avec la même règle.
- compute_discount: remise bornée par le sous-total de la boutique.
"""
from typing import Iterable, List, Optional
import logging
from supabase import Client

from . import repository
from .models import Coupon, coupon_from_row

logger = logging.getLogger(__name__)

COUPON_NOT_APPLICABLE_MESSAGE = "Code promo invalide ou non applicable aux articles de votre panier."

class CouponError(Exception):
    def __init__(self, message: str, code: str = "invalid"):
        super().__init__(message)
        self.code = code

class CouponNotApplicable(CouponError):
    def __init__(self):
        # Message volontairement unique: ne révèle pas quelle boutique utilise quel code
        super().__init__(COUPON_NOT_APPLICABLE_MESSAGE, code="not_applicable")

class CouponAlreadyApplied(CouponError):
    def __init__(self, code: str):
        super().__init__(f"Le code {code} est déjà appliqué.", code="already_applied")

def resolve_coupon(client: Client, code: str, store_ids: Iterable[str]) -> Coupon:
    """
    Cherche le code dans chaque boutique candidate, dans l'ordre, et renvoie la première correspondance.
    - Lecture seule.
    - CouponNotApplicable si aucune boutique ne possède ce code (ou code vide).
    """
    normalized = (code or "").strip()
    if not normalized:
        raise CouponNotApplicable()
    seen = set()
    for store_id in store_ids:
        if not store_id or store_id in seen:
            continue
        seen.add(store_id)
        row = repository.verify_coupon(client, normalized, store_id)
        if row:
            return coupon_from_row(row)
    logger.info("coupons.resolve_coupon no match code=%s stores=%s", normalized, len(seen))
    raise CouponNotApplicable()

def apply_coupon(applied: List[Coupon], coupon: Coupon) -> List[Coupon]:
    """
    Ajoute un coupon à la liste des coupons actifs de la session.
    - Même code déjà actif pour cette boutique: CouponAlreadyApplied.
    - Autre coupon de la même boutique: remplacé (pas de cumul).
    """
    for current in applied:
        if current.store_id == coupon.store_id and current.code.lower() == coupon.code.lower():
            raise CouponAlreadyApplied(coupon.code)
    return [c for c in applied if c.store_id != coupon.store_id] + [coupon]

def active_coupons(applied: Iterable[Coupon]) -> List[Coupon]:
    """Rejoue les coupons transmis par le client via apply_coupon: un seul par boutique, doublons ignorés."""
    active: List[Coupon] = []
    for coupon in applied or []:
        try:
            active = apply_coupon(active, coupon)
        except CouponAlreadyApplied:
            logger.info("coupons.active_coupons duplicate ignored code=%s store_id=%s", coupon.code, coupon.store_id)
    return active

def coupon_for_store(applied: Iterable[Coupon], store_id: str) -> Optional[Coupon]:
    # Le dernier appliqué l'emporte si l'appelant en a transmis plusieurs
    match = None
    for c in applied or []:
        if c.store_id == store_id:
            match = c
    return match

def compute_discount(coupon: Optional[Coupon], subtotal: float) -> float:
    """
    Remise d'un coupon sur un sous-total.
    - percentage: subtotal × valeur / 100 ; fixed_amount: valeur.
    - 0 si min_spend n'est pas atteint.
    - Toujours dans [0, subtotal].
    """
    if coupon is None or subtotal <= 0:
        return 0.0
    if coupon.min_spend is not None and subtotal < coupon.min_spend:
        return 0.0
    if coupon.discount_type == "percentage":
        discount = subtotal * coupon.discount_value / 100
    else:
        discount = coupon.discount_value
    return round(max(0.0, min(discount, subtotal)), 2)
