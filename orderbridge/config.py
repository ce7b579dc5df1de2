# orderbridge.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du service.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose l'URL de l'Order API et les chemins des objets distants (order, content, ...)
- Valeurs de démo (client, URL de retour 3DS, config passerelle de repli)
- Sécurité cookies, CORS/hosts, portée des sessions backend
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

# Order API: URL de base (peut être surchargée au login) et identifiants par défaut
API_BASE = _clean_env(os.getenv("API_BASE") or "")
if API_BASE.endswith("/"):
    API_BASE = API_BASE.rstrip("/")
UNL_USER = _clean_env(os.getenv("UNL_USER") or "")
UNL_PASSWORD = _clean_env(os.getenv("UNL_PASSWORD") or "")

# Chemins des objets distants (non sensibles)
AUTH_PATH = _clean_env(os.getenv("AUTH_PATH") or "/app/WebAPI/v2/session/authenticateUser")
ORDER_PATH = _clean_env(os.getenv("ORDER_PATH") or "/app/WebAPI/v2/order")
UPCOMING_PATH = _clean_env(os.getenv("UPCOMING_PATH") or "/app/WebAPI/v2/content")
PERFORMANCE_PATH = _clean_env(os.getenv("PERFORMANCE_PATH") or "/app/WebAPI/v2/performance")
MAP_PATH = _clean_env(os.getenv("MAP_PATH") or "/app/WebAPI/v2/map")
CUSTOMER_PATH = _clean_env(os.getenv("CUSTOMER_PATH") or "/app/WebAPI/v2/customer")
USER_PATH = _clean_env(os.getenv("USER_PATH") or "/app/WebAPI/v2/user")
PAYMENT_METHOD_PATH = _clean_env(os.getenv("PAYMENT_METHOD_PATH") or "/app/WebAPI/v2/paymentMethod")

# Valeurs de démo: à fournir par la requête en production
DEFAULT_CUSTOMER_NUMBER = _clean_env(os.getenv("DEFAULT_CUSTOMER_NUMBER") or "1")
PA_RESPONSE_URL = _clean_env(os.getenv("PA_RESPONSE_URL") or "https://localhost:3443/checkout.html")
SWIPE_INDICATOR = _clean_env(os.getenv("SWIPE_INDICATOR") or "")

# Configuration passerelle (Adyen) renvoyée quand le backend ne répond pas
GATEWAY_FALLBACK_ENVIRONMENT = _clean_env(os.getenv("GATEWAY_FALLBACK_ENVIRONMENT") or "test")
GATEWAY_FALLBACK_CLIENT_KEY = _clean_env(os.getenv("GATEWAY_FALLBACK_CLIENT_KEY") or "test_7REK4YQWRZB2DPRS7RNTFTGX2MPKY4SQ")
GATEWAY_FALLBACK_COUNTRY = _clean_env(os.getenv("GATEWAY_FALLBACK_COUNTRY") or "US")
GATEWAY_FALLBACK_CURRENCY = _clean_env(os.getenv("GATEWAY_FALLBACK_CURRENCY") or "USD")

# Client HTTP sortant
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "15"))

# Sessions backend: "client" (une par navigateur) ou "process" (une seule, partagée)
SESSION_SCOPE = _clean_env(os.getenv("SESSION_SCOPE") or "client").lower()
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")
SESSION_COOKIE_NAME = "ob_session"
# Sessions backend inactives oubliées après ce délai (secondes, 0 = jamais)
SESSION_IDLE_TTL = int(os.getenv("SESSION_IDLE_TTL", "3600"))

# Métadonnées {request, response, status} dans les erreurs (console de debug du front)
EXPOSE_DEBUG_METADATA = _flag("EXPOSE_DEBUG_METADATA", "true")

# Cookies / CORS / hosts
COOKIE_SECURE = _flag("COOKIE_SECURE")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
