# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend storefront.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Lenco)
- Expose les paramètres métier du checkout (frais de service, devise)
- Expose CORS/hosts et le mode d'exécution (APP_ENV)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

# Mode d'exécution: "production" active la vérification stricte des webhooks
APP_ENV = _clean_env(os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").lower()
IS_PRODUCTION = APP_ENV == "production"

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Lenco (mobile money) via la fonction edge Supabase 'lenco-payment-handler'
LENCO_FUNCTION_URL = _clean_env(os.getenv("LENCO_FUNCTION_URL") or "") or (
    f"{SUPABASE_URL}/functions/v1/lenco-payment-handler" if SUPABASE_URL else ""
)
LENCO_CURRENCY = _clean_env(os.getenv("LENCO_CURRENCY") or "ZMW")
LENCO_TIMEOUT_SECONDS = _float_env("LENCO_TIMEOUT_SECONDS", 15.0)
# mock_success | fail : comportement quand la passerelle est injoignable
LENCO_GATEWAY_FALLBACK = _clean_env(os.getenv("LENCO_GATEWAY_FALLBACK") or "mock_success").lower()
LENCO_WEBHOOK_SECRET = _clean_env(os.getenv("LENCO_WEBHOOK_SECRET") or "")
LENCO_SIGNATURE_HEADER = "x-lenco-signature"

# Checkout
SERVICE_FEE = _float_env("SERVICE_FEE", 20.00)
PAYMENT_REFERENCE_PREFIX = _clean_env(os.getenv("PAYMENT_REFERENCE_PREFIX") or "pabondi")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
