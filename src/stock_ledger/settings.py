"""
Django settings for running the stock ledger API.

Everything deployment-specific comes from the environment (or a .env file);
see stock_ledger.config for the ledger's own variables.
"""
import os

from dotenv import load_dotenv

from .config import LedgerConfig, database_settings

load_dotenv()

LEDGER = LedgerConfig.from_env()

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "false").lower() == "true"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = ["stock_ledger.inventory"]
MIDDLEWARE = []

ROOT_URLCONF = "stock_ledger.urls"
WSGI_APPLICATION = "stock_ledger.wsgi.application"

DATABASES = {"default": database_settings(LEDGER.database_url)}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

TIME_ZONE = "UTC"
USE_TZ = True

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "loggers": {
        "stock_ledger": {"handlers": ["console"], "level": LEDGER.log_level, "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING"},
    },
}
