"""
Contrôle et réservation du stock produit.
- check_stock / validate_cart_stock: lecture seule, avant toute mutation.
- reserve_stock: décrément atomique côté stockage ("décrémenter de N seulement si stock >= N").
"""
from typing import Iterable, List
import logging
from supabase import Client

from . import repository
from .models import CartItem, StoreError

logger = logging.getLogger(__name__)

MAX_RESERVE_ATTEMPTS = 5

class StockError(Exception):
    def __init__(self, message: str, product_id: str, code: str = "stock"):
        super().__init__(message)
        self.product_id = product_id
        self.code = code

class ProductNotFound(StockError):
    def __init__(self, product_id: str, name: str = ""):
        super().__init__(f'Produit "{name or product_id}" introuvable.', product_id, code="product_not_found")

class InsufficientStock(StockError):
    def __init__(self, product_id: str, requested: int, available: int, name: str = ""):
        super().__init__(
            f'Stock insuffisant pour "{name or product_id}". Demandé: {requested}, disponible: {available}.',
            product_id,
            code="insufficient_stock",
        )
        self.requested = requested
        self.available = available

def check_stock(client: Client, product_id: str, quantity: int, name: str = "") -> int:
    """
    Vérifie que le stock courant couvre la quantité demandée.
    - ProductNotFound si le produit n'existe pas, InsufficientStock si stock < quantité.
    - Retourne le stock lu.
    """
    current = repository.get_product_stock(client, product_id)
    if current is None:
        raise ProductNotFound(product_id, name)
    if current < quantity:
        raise InsufficientStock(product_id, quantity, current, name)
    return current

def validate_cart_stock(client: Client, items: Iterable[CartItem]) -> List[StoreError]:
    """
    Contrôle exhaustif (pas d'arrêt au premier échec): une erreur par ligne en défaut.
    Les quantités d'un même produit présent sur plusieurs lignes sont cumulées.
    """
    requested = {}
    for item in items or []:
        requested[item.id] = requested.get(item.id, 0) + item.quantity

    errors: List[StoreError] = []
    checked = set()
    for item in items or []:
        if item.id in checked:
            continue
        checked.add(item.id)
        try:
            check_stock(client, item.id, requested[item.id], item.name)
        except StockError as e:
            errors.append(StoreError(
                store_id=item.store_id,
                store_name=item.store_name,
                product_id=item.id,
                message=str(e),
            ))
    return errors

def reserve_stock(client: Client, product_id: str, quantity: int, name: str = "") -> int:
    """
    Décrémente le stock de `quantity` de façon atomique (compare-and-set, relectures bornées).
    - Relit toujours le stock courant (jamais l'instantané du contrôle initial).
    - InsufficientStock si le stock frais ne couvre plus la quantité; le stock n'est jamais négatif.
    - Retourne le nouveau stock.
    """
    for _ in range(MAX_RESERVE_ATTEMPTS):
        current = check_stock(client, product_id, quantity, name)
        new_count = current - quantity
        if repository.update_product_stock(client, product_id, new_count, expected_count=current):
            return new_count
        logger.info("checkout.stock.reserve_stock concurrent write product_id=%s, retrying", product_id)
    raise RuntimeError(f"Stock du produit {product_id} modifié en continu, réservation abandonnée")
