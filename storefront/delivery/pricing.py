"""
Modèle de coût de livraison: distance + niveau de service -> prix.
"""
import math

PICKUP = "pickup"
ECONOMY = "economy"
NORMAL = "normal"
EXPRESS = "express"

DELIVERY_TIERS = (PICKUP, ECONOMY, NORMAL, EXPRESS)

BASE_FEE = 15.00
RATE_PER_KM = {
    ECONOMY: 2.00,
    NORMAL: 3.50,
    EXPRESS: 5.00,
}

def round_to_half(amount: float) -> float:
    # Arrondi au demi le plus proche, moitié vers le haut
    return math.floor(amount * 2 + 0.5) / 2

def calculate_delivery_cost(distance_km: float, tier: str) -> float:
    """
    Coût = BASE_FEE + distance × tarif(tier), arrondi à 0.5 près.
    - pickup: toujours 0, avant toute recherche de tarif.
    - tier inconnu: ValueError.
    """
    if tier == PICKUP:
        return 0.0
    rate = RATE_PER_KM.get(tier)
    if rate is None:
        raise ValueError(f"Mode de livraison inconnu: {tier}")
    return round_to_half(BASE_FEE + distance_km * rate)

def costs_by_method(distance_km: float) -> dict:
    return {tier: calculate_delivery_cost(distance_km, tier) for tier in DELIVERY_TIERS}
