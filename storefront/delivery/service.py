"""Cas d'usage 'delivery': devis de livraison à partir de la position client et des boutiques du panier.
- Distance totale = somme des distances client -> point de retrait de chaque boutique distincte.
- Le coût par mode est ensuite dérivé de cette distance (pricing.costs_by_method).
"""
from typing import Dict, Any, Iterable, Optional, Tuple
import logging
from supabase import Client

from . import repository
from .geo import haversine_distance, parse_location
from .pricing import PICKUP, calculate_delivery_cost, costs_by_method

logger = logging.getLogger(__name__)

class DeliveryError(Exception):
    def __init__(self, message: str, code: str = "invalid"):
        super().__init__(message)
        self.code = code

def customer_coordinates(location: str) -> Tuple[float, float]:
    try:
        return parse_location(location)
    except ValueError as e:
        raise DeliveryError(str(e), code="invalid_location")

def store_coordinates(store: Optional[Dict[str, Any]]) -> Optional[Tuple[float, float]]:
    if not store:
        return None
    lat = store.get("pickup_latitude")
    lng = store.get("pickup_longitude")
    if isinstance(lat, bool) or isinstance(lng, bool):
        return None
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return None
    return float(lat), float(lng)

def distance_to_store(store: Optional[Dict[str, Any]], user_lat: float, user_lng: float, store_id: str = "") -> float:
    coords = store_coordinates(store)
    if coords is None:
        name = (store or {}).get("name") or store_id
        raise DeliveryError(
            f"Position introuvable pour la boutique {name}: impossible de calculer la livraison.",
            code="store_location_missing",
        )
    return haversine_distance(user_lat, user_lng, coords[0], coords[1])

def total_distance_km(client: Client, location: str, store_ids: Iterable[str]) -> float:
    """
    Somme des distances client -> boutique pour chaque boutique distincte.
    - DeliveryError si la position est invalide ou si une boutique n'a pas de coordonnées.
    """
    user_lat, user_lng = customer_coordinates(location)
    total = 0.0
    seen = set()
    for store_id in store_ids:
        if store_id in seen:
            continue
        seen.add(store_id)
        store = repository.get_store_by_id(client, store_id)
        total += distance_to_store(store, user_lat, user_lng, store_id)
    return total

def quote_delivery(client: Client, location: str, store_ids: Iterable[str]) -> Dict[str, float]:
    """Coûts {pickup, economy, normal, express} pour un ensemble de boutiques."""
    return costs_by_method(total_distance_km(client, location, store_ids))

def delivery_cost_for(client: Client, location: str, store_ids: Iterable[str], tier: str) -> float:
    """Coût pour un mode donné; pickup court-circuite tout appel à la base."""
    if tier == PICKUP:
        return 0.0
    return calculate_delivery_cost(total_distance_km(client, location, store_ids), tier)

def store_delivery_cost(store: Optional[Dict[str, Any]], location: str, tier: str, store_id: str = "") -> float:
    """Coût de livraison d'une seule boutique (ligne store déjà chargée)."""
    if tier == PICKUP:
        return 0.0
    user_lat, user_lng = customer_coordinates(location)
    return calculate_delivery_cost(distance_to_store(store, user_lat, user_lng, store_id), tier)

def calculate_delivery_costs(client: Client, location: str, cart_items: Iterable[Any]) -> Dict[str, Any]:
    """
    Action exposée au checkout: devis par mode pour tout le panier.
    Retour: {"success": True, "costsByMethod": {...}} ou {"success": False, "error": "..."}.
    """
    store_ids = [item.store_id for item in cart_items or []]
    try:
        return {"success": True, "costsByMethod": quote_delivery(client, location, store_ids)}
    except DeliveryError as e:
        return {"success": False, "error": str(e)}
    except Exception:
        logger.exception("delivery.calculate_delivery_costs failed")
        return {"success": False, "error": "Erreur inattendue lors du calcul des frais de livraison."}
