# boutique.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Stripe, Supabase)
- Fournit les origines utilisées pour construire les URLs de retour du checkout
- Choix du backend de stockage des commandes (supabase | memory)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

# Supabase: URL + clé service-role (les fonctions serveur contournent la RLS)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(
    os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_SERVICE_KEY") or ""
)

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clé secrète et secret de signature des webhooks
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_API_VERSION = _clean_env(os.getenv("STRIPE_API_VERSION") or "2024-06-20")

# Site statique: SITE_URL (optionnel) puis origine de repli (GitHub Pages)
SITE_URL = _clean_env(os.getenv("SITE_URL") or "").rstrip("/")
FALLBACK_SITE_ORIGIN = _clean_env(
    os.getenv("FALLBACK_SITE_ORIGIN") or "https://le-bar-a-boeuf.github.io"
).rstrip("/")

# Checkout
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "eur").lower()
DEFAULT_LOCALE = _clean_env(os.getenv("DEFAULT_LOCALE") or "fr").lower()

# Stockage des commandes: "supabase" (prod) ou "memory" (dev/tests)
ORDER_STORE_BACKEND = _clean_env(os.getenv("ORDER_STORE_BACKEND") or "supabase").lower()

# Sécurité HTTP
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "*").split(",") if h.strip()]


def missing_settings() -> list:
    """Liste les variables obligatoires absentes (loggée au démarrage)."""
    missing = []
    if not STRIPE_SECRET_KEY:
        missing.append("STRIPE_SECRET_KEY")
    if not STRIPE_WEBHOOK_SECRET:
        missing.append("STRIPE_WEBHOOK_SECRET")
    if ORDER_STORE_BACKEND == "supabase":
        if not SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not SUPABASE_SERVICE_KEY:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
    return missing
