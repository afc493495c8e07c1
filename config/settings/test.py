# config/settings/test.py
import tempfile

from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MEDIA_ROOT = Path(tempfile.mkdtemp(prefix="ch-media-"))
LOG_LEVEL = "WARNING"

PDF_API_TOKEN = "test-pdf-token"
PDF_API_AUTH_DISABLED = False
PDF_RENDER_TIMEOUT_SECONDS = 30

# Jobs run inline once the surrounding transaction commits
PDF_JOBS_ENABLED = True
PDF_JOBS_ASYNC = False

LOCAL_CACHE_DIR = None
CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    LOCAL_CACHE_ALIAS: {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "ch-local-checklists-test",
        "TIMEOUT": None,
    },
}
