"""
Accès aux données 'orders' pour le suivi et la page de confirmation.
- Sélection avec jointure order_items(*) pour hydrater l'affichage.
"""
import re
from typing import Any, Dict, List, Optional
from uuid import UUID
from supabase import Client

ORDER_DETAILS_SELECT = "*, order_items(*), stores(name)"

def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
        return True
    except ValueError:
        return False

def _sanitize(term: str) -> str:
    # Les filtres PostgREST or=(...) utilisent , ( ) comme séparateurs
    return re.sub(r"[,()*%]", " ", term).strip()

# module storefront.orders.repository
def get_order_details_by_id(client: Client, order_id: str) -> Optional[Dict[str, Any]]:
    res = (
        client
        .table("orders")
        .select(ORDER_DETAILS_SELECT)
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def find_orders_by_search_term(client: Client, term: str, limit: int = 20) -> List[Dict[str, Any]]:
    """
    Recherche par identifiant de commande (UUID exact), sinon par email ou nom client.
    - Tri: plus récentes d'abord.
    """
    query = client.table("orders").select(ORDER_DETAILS_SELECT)
    if _is_uuid(term):
        query = query.eq("id", term)
    else:
        safe = _sanitize(term)
        if not safe:
            return []
        query = query.or_(f"customer_email.ilike.{safe},customer_name.ilike.*{safe}*")
    res = query.order("order_date", desc=True).limit(limit).execute()
    return res.data or []
