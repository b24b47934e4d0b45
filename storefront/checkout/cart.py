"""
Logique panier pure (pas de paiement, pas de DB).
"""
from typing import Dict, List, Iterable

from .models import CartItem

# module storefront.checkout.cart
def partition_by_store(items: Iterable[CartItem]) -> Dict[str, List[CartItem]]:
    """
    Regroupe les lignes du panier par boutique (une sous-commande par store_id).
    - Ordre stable: boutiques dans l'ordre de première apparition, lignes dans l'ordre du panier.
    """
    grouped: Dict[str, List[CartItem]] = {}
    for item in items or []:
        grouped.setdefault(item.store_id, []).append(item)
    return grouped

def subtotal(items: Iterable[CartItem]) -> float:
    return round(sum(item.price * item.quantity for item in items or []), 2)
