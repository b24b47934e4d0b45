"""
Calcul de distance géographique (pur, sans I/O).
"""
import math
from typing import Tuple

EARTH_RADIUS_KM = 6371.0

# module storefront.delivery.geo
def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Distance orthodromique (formule de Haversine) entre deux points, en kilomètres.
    - Coordonnées en degrés décimaux.
    - NaN se propage: l'appelant valide les coordonnées (voir parse_location).
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c

def parse_location(location: str) -> Tuple[float, float]:
    """
    Parse une position "lat,lng" saisie côté client.
    - Soulève ValueError si le format est invalide, NaN ou hors bornes.
    """
    parts = [p.strip() for p in (location or "").split(",")]
    if len(parts) != 2:
        raise ValueError("Format de position invalide.")
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValueError("Format de position invalide.")
    if math.isnan(lat) or math.isnan(lng) or not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise ValueError("Format de position invalide.")
    return lat, lng
