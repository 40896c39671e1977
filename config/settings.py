"""
StayLedger - Django Settings
==============================
Django hosts the checkout history archive and the settings-backed
billing rates. Engines stay framework-free; only core.config and
core.checkout_history read from here.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("STAYLEDGER_SECRET_KEY", "stayledger-dev-key")

DEBUG = os.environ.get("STAYLEDGER_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "core.checkout_history",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("STAYLEDGER_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Billing ───────────────────────────────────────────────────
# Percentages (10 means 10%). Read through DjangoSettingsProvider.
HOTEL_BILLING = {
    "GST_RATE": os.environ.get("STAYLEDGER_GST_RATE", "0"),
    "SERVICE_CHARGE_RATE": os.environ.get("STAYLEDGER_SERVICE_CHARGE_RATE", "0"),
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "stayledger": {
            "handlers": ["console"],
            "level": os.environ.get("STAYLEDGER_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
