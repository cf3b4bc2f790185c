import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


DEBUG = _env_bool("DEBUG")

SECRET_KEY = _env("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    # Only tolerated for local runs and the test suite.
    SECRET_KEY = "dev-insecure-resellplug-key"

ALLOWED_HOSTS = [h.strip() for h in _env("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "catalog.apps.CatalogConfig",
    "orders",
    "payments",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": _env("DATABASE_PATH") or BASE_DIR / "db.sqlite3",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Public URL used to build download links in emails and API responses
SITE_URL = _env("SITE_URL", "http://localhost:8000").rstrip("/")

# PayPal
PAYPAL_ENV = "sandbox" if _env("PAYPAL_ENV") == "sandbox" else "live"
PAYPAL_CLIENT_ID = _env("PAYPAL_CLIENT_ID")
PAYPAL_CLIENT_SECRET = _env("PAYPAL_CLIENT_SECRET")
PAYPAL_WEBHOOK_ID = _env("PAYPAL_WEBHOOK_ID")
PAYPAL_TIMEOUT = int(_env("PAYPAL_TIMEOUT", "20"))

DEFAULT_CURRENCY = _env("DEFAULT_CURRENCY", "CAD").upper()
CHARGE_CURRENCY = _env("CHARGE_CURRENCY", "USD").upper()
ALLOW_TEST_CHARGE = _env_bool("ALLOW_TEST_CHARGE")
TEST_CHARGE_AMOUNT = _env("TEST_CHARGE_AMOUNT", "1.00")

# Admin order listing
ADMIN_DASH_TOKEN = _env("ADMIN_DASH_TOKEN")
ADMIN_ORDERS_LIMIT = int(_env("ADMIN_ORDERS_LIMIT", "300"))

# Catalog / delivery files
CATALOG_FILE = _env("CATALOG_FILE")
DELIVERY_FILES_DIR = Path(_env("DELIVERY_FILES_DIR") or BASE_DIR / "delivery")
# Raised at runtime to at least 2 * EMAIL_TIMEOUT (orders.store.claim_ttl)
DELIVERY_CLAIM_TTL = int(_env("DELIVERY_CLAIM_TTL", "300"))
BRAND_NAME = _env("BRAND_NAME", "TheResellPlug")

# Email
EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
EMAIL_HOST = _env("SMTP_HOST")
EMAIL_PORT = int(_env("SMTP_PORT", "587"))
EMAIL_USE_SSL = _env_bool("SMTP_SECURE")
EMAIL_USE_TLS = not EMAIL_USE_SSL
EMAIL_HOST_USER = _env("SMTP_USER")
EMAIL_HOST_PASSWORD = _env("SMTP_PASS")
# Bounds a single SMTP send; must stay below DELIVERY_CLAIM_TTL
EMAIL_TIMEOUT = int(_env("SMTP_TIMEOUT", "30"))
DEFAULT_FROM_EMAIL = _env("FROM_EMAIL", "TheResellPlug <no-reply@theresellplug.com>")
DELIVERY_EMAIL_ENABLED = bool(EMAIL_HOST and EMAIL_HOST_USER and EMAIL_HOST_PASSWORD)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": _env("LOG_LEVEL", "INFO").upper()},
}
