"""
Accès aux données pour la feature 'checkout' (tables customers, orders, order_items, products).
- Toutes les fonctions reçoivent le client Supabase explicitement.
- Les erreurs Supabase remontent: c'est le pipeline qui décide (erreur bloquante ou par boutique).
"""
from typing import Any, Dict, List, Optional
import logging
from supabase import Client

logger = logging.getLogger(__name__)

# module storefront.checkout.repository
def _first(res) -> Optional[Dict[str, Any]]:
    rows = res.data or []
    if isinstance(rows, list):
        return rows[0] if rows else None
    return rows or None

def find_customer_by_email(client: Client, email: str) -> Optional[Dict[str, Any]]:
    res = (
        client
        .table("customers")
        .select("*")
        .eq("email", email)
        .limit(1)
        .execute()
    )
    return _first(res)

def create_customer(client: Client, data: Dict[str, Any]) -> Dict[str, Any]:
    row = _first(client.table("customers").insert(data).execute())
    if not row:
        raise RuntimeError("Création du client sans retour de ligne")
    return row

def update_customer(client: Client, customer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    row = _first(client.table("customers").update(data).eq("id", customer_id).execute())
    if not row:
        raise RuntimeError(f"Client {customer_id} introuvable pour mise à jour")
    return row

def create_order(client: Client, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insère une commande et retourne la ligne créée (doit contenir 'id')."""
    row = _first(client.table("orders").insert(data).execute())
    if not row or not row.get("id"):
        raise RuntimeError("Création de commande sans identifiant retourné")
    return row

def create_order_items(client: Client, items: List[Dict[str, Any]]) -> None:
    if not items:
        return
    client.table("order_items").insert(items).execute()

def get_product_stock(client: Client, product_id: str) -> Optional[int]:
    """Stock courant d'un produit (None si produit introuvable)."""
    row = _first(
        client
        .table("products")
        .select("stock_count")
        .eq("id", product_id)
        .limit(1)
        .execute()
    )
    if row is None:
        return None
    return int(row.get("stock_count") or 0)

def update_product_stock(client: Client, product_id: str, new_count: int, expected_count: Optional[int] = None) -> bool:
    """
    Écrit le stock d'un produit.
    - expected_count renseigné: mise à jour conditionnelle (compare-and-set) sur la valeur lue,
      retourne False si une autre écriture est passée entre-temps.
    """
    query = client.table("products").update({"stock_count": new_count}).eq("id", product_id)
    if expected_count is not None:
        query = query.eq("stock_count", expected_count)
    res = query.execute()
    return bool(res.data)
