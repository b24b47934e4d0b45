# module storefront.checkout.views

"""Endpoints du checkout (appelés par l'UI).
- /delivery-cost: devis de livraison par mode pour le panier.
- /coupons/verify: résolution d'un code promo sur les boutiques du panier.
- /orders: prise de commande multi-boutiques (paiement mobile money par boutique).
Sécurité:
- optional_rate_limit: limite la fréquence des vérifications de coupon et des commandes.
"""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.infra.supabase_client import get_db
from storefront.utils.rate_limit import optional_rate_limit
from storefront.payments.lenco_client import LencoClient, get_payment_gateway
from storefront.coupons import service as coupons_service
from storefront.delivery import service as delivery_service
from storefront.checkout import service as checkout_service
from storefront.checkout.models import DeliveryCostRequest, VerifyCouponRequest, PlaceOrderRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


@router.post("/delivery-cost")
def api_delivery_cost(req: DeliveryCostRequest, client: Client = Depends(get_db)):
    """Devis de livraison: {success, costsByMethod} ou {success: false, error} (400)."""
    result = delivery_service.calculate_delivery_costs(client, req.location, req.cart_items)
    return JSONResponse(result, status_code=200 if result.get("success") else 400)


@router.post("/coupons/verify", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def api_verify_coupon(req: VerifyCouponRequest, client: Client = Depends(get_db)):
    """Vérifie un code promo contre chaque boutique du panier.
    - Succès: {"success": true, "coupon": {...}, "appliedCoupons": [...]} (un seul coupon par boutique).
    - Code déjà appliqué pour cette boutique: 409.
    - Code inconnu / d'une autre boutique: même réponse générique (404).
    """
    try:
        coupon = coupons_service.resolve_coupon(client, req.code, req.store_ids)
        applied = coupons_service.apply_coupon(req.applied_coupons, coupon)
        return {
            "success": True,
            "coupon": coupon.model_dump(by_alias=True),
            "appliedCoupons": [c.model_dump(by_alias=True) for c in applied],
        }
    except coupons_service.CouponAlreadyApplied as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=409)
    except coupons_service.CouponError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=404)
    except Exception:
        logger.exception("Erreur api_verify_coupon")
        return JSONResponse({"success": False, "error": "Échec de la vérification du coupon."}, status_code=500)


@router.post("/orders", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def api_place_order(
    req: PlaceOrderRequest,
    client: Client = Depends(get_db),
    gateway: LencoClient = Depends(get_payment_gateway),
):
    """Prise de commande.
    - 200: succès complet ou partiel (orderIds, detailedErrors éventuels).
    - 400: aucune commande créée (panier vide, stock, client, paiements/base en échec).
    """
    result = await checkout_service.place_order(
        client, gateway, req.form_data, req.cart_items, req.applied_coupons
    )
    body = result.model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(body, status_code=200 if result.success else 400)
