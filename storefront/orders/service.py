from typing import Any, Dict, List
import logging
from supabase import Client

from . import repository

logger = logging.getLogger(__name__)

def track_orders(client: Client, search_term: str) -> Dict[str, Any]:
    """
    Suivi de commande: recherche par id, email ou nom.
    Retour: {"success": True, "orders": [...]} ou {"success": False, "error": "..."}.
    """
    term = (search_term or "").strip() if isinstance(search_term, str) else ""
    if not term:
        return {"success": False, "error": "Terme de recherche invalide."}
    try:
        orders = repository.find_orders_by_search_term(client, term)
    except Exception:
        logger.exception("orders.track_orders failed term=%s", term)
        return {"success": False, "error": "Erreur inattendue lors de la recherche de commandes."}
    if not orders:
        return {"success": False, "orders": [], "error": "Aucune commande ne correspond à votre recherche."}
    return {"success": True, "orders": orders}

def get_orders_by_ids(client: Client, order_ids: List[str]) -> Dict[str, Any]:
    """
    Page de confirmation: détails des commandes créées par un checkout.
    - Les ids inconnus sont ignorés; aucune commande trouvée => erreur.
    """
    ids = [i.strip() for i in order_ids or [] if i and i.strip()]
    if not ids:
        return {"success": False, "error": "Aucun identifiant de commande fourni."}
    try:
        orders = [o for o in (repository.get_order_details_by_id(client, oid) for oid in ids) if o]
    except Exception:
        logger.exception("orders.get_orders_by_ids failed ids=%s", ids)
        return {"success": False, "error": "Impossible de récupérer le détail des commandes."}
    if not orders:
        return {"success": False, "error": "Aucune commande trouvée."}
    return {"success": True, "orders": orders}
