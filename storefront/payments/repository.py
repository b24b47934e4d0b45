"""
Accès aux données pour la feature 'payments' (réconciliation webhook sur la table orders).
"""
from typing import Any, Dict, List, Optional
import logging
from supabase import Client

logger = logging.getLogger(__name__)

# module storefront.payments.repository
def find_orders_by_escrow_ids(client: Client, identifiers: List[str]) -> List[Dict[str, Any]]:
    """
    Commandes dont escrow_transaction_id correspond à l'un des identifiants fournis
    (transactionId ou reference, selon ce que renvoie le fournisseur).
    """
    if not identifiers:
        return []
    res = (
        client
        .table("orders")
        .select("id, store_id, status, escrow_transaction_id, delivery_code")
        .in_("escrow_transaction_id", list(identifiers))
        .execute()
    )
    return res.data or []

def update_order(client: Client, order_id: str, fields: Dict[str, Any], expected_status: Optional[str] = None) -> bool:
    """
    Met à jour une commande.
    - expected_status renseigné: écriture conditionnelle sur le statut lu (compare-and-set),
      retourne False si un autre callback a changé le statut entre-temps.
    """
    query = client.table("orders").update(fields).eq("id", order_id)
    if expected_status is not None:
        query = query.eq("status", expected_status)
    res = query.execute()
    return bool(res.data)
