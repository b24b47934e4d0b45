"""Endpoints de suivi de commande et de confirmation.
- /track?q=...: recherche par id, email ou nom client.
- ?ids=a,b: détails des commandes pour la page de confirmation.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.infra.supabase_client import get_db
from storefront.utils.rate_limit import optional_rate_limit
from storefront.orders import service as orders_service

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.get("/track", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def api_track_orders(q: str = "", client: Client = Depends(get_db)):
    if not q.strip():
        return JSONResponse({"success": False, "error": "Terme de recherche invalide."}, status_code=400)
    result = orders_service.track_orders(client, q)
    return JSONResponse(result, status_code=200 if result.get("success") else 404)


@router.get("")
def api_orders_by_ids(ids: str = "", client: Client = Depends(get_db)):
    id_list = [i.strip() for i in (ids or "").split(",") if i.strip()]
    result = orders_service.get_orders_by_ids(client, id_list)
    return JSONResponse(result, status_code=200 if result.get("success") else 404)
