from typing import Optional
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase

def get_service_supabase() -> Client:
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase

def get_db() -> Client:
    """
    Dépendance FastAPI: client Supabase utilisé par les cas d'usage checkout/webhook.
    - Service-role si la clé est configurée (écritures stock/commandes hors RLS).
    - Sinon client anon (dev local).
    Les services reçoivent ce client en paramètre explicite (pas de singleton implicite).
    """
    if SUPABASE_SERVICE_KEY:
        return get_service_supabase()
    return get_supabase()
