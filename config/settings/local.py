# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

# sqlite unless a postgres host is configured explicitly
if not os.getenv("DB_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# tests and dev runs keep idempotency replays in memory
COMMON_IDEMPOTENCY_USE_DB = os.getenv("COMMON_IDEMPOTENCY_USE_DB", "0") == "1"
