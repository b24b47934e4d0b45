"""
Accès aux données 'stores' nécessaires au calcul de livraison (coordonnées de retrait).
"""
from typing import Optional, Dict, Any
from supabase import Client

# module storefront.delivery.repository
def get_store_by_id(client: Client, store_id: str) -> Optional[Dict[str, Any]]:
    """
    Récupère une boutique active par son id.
    - Champs utiles: name, pickup_address, pickup_latitude, pickup_longitude.
    - Retourne None si introuvable ou inactive.
    """
    res = (
        client
        .table("stores")
        .select("*")
        .eq("id", store_id)
        .eq("status", "Active")
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None
