"""Couche service du checkout: transforme un panier validé + formulaire en une ou plusieurs commandes.
Étapes:
1) Estimation de livraison globale (mode payant uniquement) et validation de la position.
2) Panier vide: rejet immédiat.
3) Partition du panier par boutique.
4) Contrôle de stock exhaustif sur tout le panier: le moindre défaut bloque tout (aucune écriture).
5) Création / mise à jour du client par email.
6) Par boutique, séquentiellement: coût de livraison propre, coupon, paiement, commande, lignes, stock.
   Un échec (paiement ou base) n'affecte que sa boutique; un paiement déjà accepté n'est jamais annulé.
7) Agrégation: succès, succès partiel ou échec.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
from starlette.concurrency import run_in_threadpool
from supabase import Client

from storefront.config import SERVICE_FEE
from storefront.coupons.models import Coupon
from storefront.coupons.service import active_coupons, compute_discount, coupon_for_store
from storefront.delivery import repository as delivery_repository
from storefront.delivery import service as delivery_service
from storefront.delivery.pricing import PICKUP
from storefront.payments.lenco_client import LencoClient, make_payment_reference
from . import cart as cart_logic
from . import repository
from . import stock
from .models import CartItem, OrderFormData, PlaceOrderResult, StoreError

logger = logging.getLogger(__name__)

PENDING_PAYMENT = "pending_payment"
PAYMENT_METHOD = "Mobile Money"

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def compute_order_total(subtotal: float, service_fee: float, delivery_cost: float, discount: float) -> float:
    """total = sous-total + frais de service + livraison - remise, jamais négatif."""
    return round(max(0.0, subtotal + service_fee + delivery_cost - discount), 2)

def upsert_customer(client: Client, form: OrderFormData) -> Dict[str, Any]:
    """
    Client identifié par son email: mise à jour s'il existe, création sinon.
    """
    now = _now_iso()
    existing = repository.find_customer_by_email(client, form.email)
    if existing:
        return repository.update_customer(client, existing["id"], {
            "name": form.name,
            "phone": form.contact_number,
            "street_address": form.location,
            "last_order_date": now,
        })
    return repository.create_customer(client, {
        "name": form.name,
        "email": form.email,
        "phone": form.contact_number,
        "street_address": form.location,
        "status": "active",
        "joined_date": now,
        "last_order_date": now,
    })

def build_order_input(
    *,
    form: OrderFormData,
    store_id: str,
    store: Optional[Dict[str, Any]],
    customer_id: str,
    total_amount: float,
    delivery_cost: float,
    discount: float,
    transaction_id: str,
) -> Dict[str, Any]:
    tier = form.delivery_method
    store = store or {}
    return {
        "store_id": store_id,
        "customer_id": customer_id,
        "customer_name": form.name,
        "customer_email": form.email,
        "order_date": _now_iso(),
        "total_amount": total_amount,
        "delivery_cost": delivery_cost,
        "service_fees": SERVICE_FEE,
        "discount_amount": discount,
        "status": PENDING_PAYMENT,
        "shipping_address": form.location,
        "billing_address": form.location,
        "delivery_tier": tier if tier != PICKUP else None,
        "delivery_type": "self_delivery" if tier == PICKUP else "courier",
        "pickup_address": store.get("pickup_address"),
        "pickup_latitude": store.get("pickup_latitude"),
        "pickup_longitude": store.get("pickup_longitude"),
        "payment_method": PAYMENT_METHOD,
        # Généré par le webhook à la confirmation du paiement
        "delivery_code": None,
        "escrow_transaction_id": transaction_id,
        "customer_specification": form.customer_specification,
    }

def build_order_items(order_id: str, items: List[CartItem]) -> List[Dict[str, Any]]:
    """Instantanés figés au moment de la commande (nom, prix, image)."""
    return [
        {
            "order_id": order_id,
            "product_id": item.id,
            "product_name_snapshot": item.name,
            "quantity": item.quantity,
            "price_per_unit_snapshot": item.price,
            "product_image_url_snapshot": item.image_urls[0] if item.image_urls else None,
        }
        for item in items
    ]

def _commit_store_order(
    client: Client,
    form: OrderFormData,
    store_id: str,
    store: Optional[Dict[str, Any]],
    items: List[CartItem],
    customer_id: str,
    total_amount: float,
    delivery_cost: float,
    discount: float,
    transaction_id: str,
) -> str:
    order = repository.create_order(client, build_order_input(
        form=form,
        store_id=store_id,
        store=store,
        customer_id=customer_id,
        total_amount=total_amount,
        delivery_cost=delivery_cost,
        discount=discount,
        transaction_id=transaction_id,
    ))
    order_id = str(order["id"])
    try:
        repository.create_order_items(client, build_order_items(order_id, items))
        for item in items:
            stock.reserve_stock(client, item.id, item.quantity, item.name)
    except Exception:
        logger.error("checkout.place_order order %s partially written (store_id=%s)", order_id, store_id)
        raise
    return order_id

async def place_order(
    client: Client,
    gateway: LencoClient,
    form: OrderFormData,
    cart_items: List[CartItem],
    applied_coupons: Optional[List[Coupon]] = None,
) -> PlaceOrderResult:
    """
    Orchestre la prise de commande multi-boutiques (voir docstring du module).
    Ne lève pas: toutes les erreurs sont converties en PlaceOrderResult.
    Les appels Supabase (synchrones) passent par le threadpool pour ne pas bloquer la boucle.
    """
    tier = form.delivery_method

    if not cart_items:
        return PlaceOrderResult(success=False, error="Votre panier est vide.")

    if tier != PICKUP:
        try:
            estimate = await run_in_threadpool(
                delivery_service.delivery_cost_for, client, form.location, [i.store_id for i in cart_items], tier
            )
            logger.info("checkout.place_order blended delivery estimate tier=%s cost=%.2f", tier, estimate)
        except delivery_service.DeliveryError as e:
            if e.code == "invalid_location":
                return PlaceOrderResult(success=False, error=str(e))
            logger.warning("checkout.place_order blended estimate unavailable: %s", e)
        except Exception:
            logger.exception("checkout.place_order blended estimate failed")

    items_by_store = cart_logic.partition_by_store(cart_items)

    try:
        stock_errors = await run_in_threadpool(stock.validate_cart_stock, client, cart_items)
    except Exception:
        logger.exception("checkout.place_order stock validation failed")
        return PlaceOrderResult(success=False, error="Impossible de vérifier le stock. Veuillez réessayer.")
    if stock_errors:
        return PlaceOrderResult(
            success=False,
            message="Certains articles sont en rupture de stock.",
            detailed_errors=stock_errors,
        )

    try:
        customer = await run_in_threadpool(upsert_customer, client, form)
    except Exception as e:
        logger.exception("checkout.place_order customer upsert failed email=%s", form.email)
        return PlaceOrderResult(success=False, error=f"Impossible de traiter les informations client: {e}")
    customer_id = str(customer.get("id") or "")
    coupons = active_coupons(applied_coupons or [])

    order_ids: List[str] = []
    errors: List[StoreError] = []

    for store_id, store_items in items_by_store.items():
        store_name = store_items[0].store_name

        try:
            store = await run_in_threadpool(delivery_repository.get_store_by_id, client, store_id)
            delivery_cost = delivery_service.store_delivery_cost(store, form.location, tier, store_id)
        except delivery_service.DeliveryError as e:
            errors.append(StoreError(store_id=store_id, store_name=store_name, message=str(e)))
            continue
        except Exception as e:
            logger.exception("checkout.place_order store lookup failed store_id=%s", store_id)
            errors.append(StoreError(store_id=store_id, store_name=store_name, message=f"Erreur base de données: {e}"))
            continue

        sub = cart_logic.subtotal(store_items)
        discount = compute_discount(coupon_for_store(coupons, store_id), sub)
        total_amount = compute_order_total(sub, SERVICE_FEE, delivery_cost, discount)

        reference = make_payment_reference(store_id)
        try:
            payment = await gateway.initiate_payment(form.mobile_money_number, total_amount, reference)
        except Exception as e:
            logger.exception("checkout.place_order payment call failed store_id=%s reference=%s", store_id, reference)
            errors.append(StoreError(store_id=store_id, store_name=store_name, message=f"Échec du paiement: {e}"))
            continue
        if not payment.success:
            errors.append(StoreError(store_id=store_id, store_name=store_name, message=f"Échec du paiement: {payment.message}"))
            continue

        try:
            order_id = await run_in_threadpool(
                _commit_store_order,
                client, form, store_id, store, store_items, customer_id,
                total_amount, delivery_cost, discount, payment.transaction_id,
            )
        except Exception as e:
            # Paiement accepté mais commande incomplète: réconciliation manuelle
            logger.exception(
                "checkout.place_order persistence failed store_id=%s transaction_id=%s reference=%s",
                store_id, payment.transaction_id, reference,
            )
            errors.append(StoreError(store_id=store_id, store_name=store_name, message=f"Erreur base de données: {e}"))
            continue

        logger.info("checkout.place_order order created order_id=%s store_id=%s total=%.2f", order_id, store_id, total_amount)
        order_ids.append(order_id)

    if order_ids and not errors:
        return PlaceOrderResult(success=True, order_ids=order_ids, message="Commande passée avec succès.")
    if order_ids:
        return PlaceOrderResult(
            success=True,
            order_ids=order_ids,
            message="Certaines commandes ont été passées, d'autres ont échoué.",
            detailed_errors=errors,
        )
    return PlaceOrderResult(success=False, message="Aucune commande n'a pu être passée.", detailed_errors=errors)
