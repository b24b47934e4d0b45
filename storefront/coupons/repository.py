"""
Accès aux données 'coupons' (table coupons).
"""
from typing import Optional, Dict, Any
import logging
from supabase import Client

logger = logging.getLogger(__name__)

# module storefront.coupons.repository
def verify_coupon(client: Client, code: str, store_id: str) -> Optional[Dict[str, Any]]:
    """
    Recherche un coupon actif pour le couple (code, store_id).
    - Retourne None si aucun coupon ne correspond ou s'il est désactivé.
    - Les erreurs Supabase remontent à l'appelant.
    """
    res = (
        client
        .table("coupons")
        .select("*")
        .eq("store_id", store_id)
        .eq("code", code)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    if not rows:
        return None
    row = rows[0]
    if row.get("is_active") is False:
        logger.info("coupons.repository.verify_coupon inactive code=%s store_id=%s", code, store_id)
        return None
    return row
