# config/settings/base.py
from pathlib import Path
import os
from dotenv import load_dotenv
from datetime import timedelta


BASE_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "unsafe-dev-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "corsheaders",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",

    # Domain apps (modular monolith)
    "ch_core.common.apps.CommonConfig",
    "ch_core.organizations.apps.OrganizationsConfig",
    "ch_core.teams.apps.TeamsConfig",
    "ch_core.iam.apps.IamConfig",
    "ch_core.activity.apps.ActivityConfig",
    "ch_core.residents.apps.ResidentsConfig",
    "ch_core.audits.apps.AuditsConfig",
    "ch_core.assessments.apps.AssessmentsConfig",
    "ch_core.pdf.apps.PdfConfig",
    "ch_core.local_cache.apps.LocalCacheConfig",
]

MIDDLEWARE = [
    # Scope enforcement sits AFTER AuthenticationMiddleware
    # so request.user is available, but BEFORE views run.
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",

    "django.contrib.auth.middleware.AuthenticationMiddleware",

    "ch_core.common.middleware.OrganizationTeamScopeMiddleware",

    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]


ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("DB_NAME", "carehome"),
        "USER": os.getenv("DB_USER", "carehome"),
        "PASSWORD": os.getenv("DB_PASSWORD", "carehome"),
        "HOST": os.getenv("DB_HOST", "127.0.0.1"),
        "PORT": os.getenv("DB_PORT", "5432"),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-gb"
TIME_ZONE = "Europe/London"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Rendered PDFs land under MEDIA_ROOT/pdfs/ via default_storage
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", BASE_DIR / "media"))
MEDIA_URL = os.getenv("MEDIA_URL", "/media/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "ch_core.iam.auth.CookieOrHeaderJWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_SCHEMA_CLASS": "ch_core.common.openapi.CareHomeAutoSchema",

    # Standard error envelope
    "EXCEPTION_HANDLER": "ch_core.common.api.exceptions.api_exception_handler",

    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
        "rest_framework.filters.OrderingFilter",
        "rest_framework.filters.SearchFilter",
    ],

    "DEFAULT_PAGINATION_CLASS": "ch_core.common.api.pagination.DefaultPagination",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Care Home Compliance API",
    "DESCRIPTION": "Audit completions, resident assessments and PDF rendering",
    "VERSION": "0.1.0",

    "COMPONENT_SPLIT_REQUEST": True,
    "SORT_OPERATIONS": True,
    "SORT_OPERATION_PARAMETERS": True,

    # Auth scheme declared in ch_core/iam/openapi.py
    "SECURITY": [
        {"BearerOrCookieJWT": []}
    ],

    # Remove legacy /api/* endpoints, keep /api/v1/*
    "PREPROCESSING_HOOKS": [
        "ch_core.common.spectacular_hooks.preprocess_exclude_legacy_api",
    ],

    # Several models carry a "status" enum; name each one explicitly
    "ENUM_NAME_OVERRIDES": {
        "CompletionStatusEnum": "ch_core.audits.models.CompletionStatus",
        "ActionPlanStatusEnum": "ch_core.audits.models.ActionPlanStatus",
        "ResidentItemStatusEnum": "ch_core.audits.models.ResidentItemStatus",
        "AssessmentStatusEnum": "ch_core.assessments.models.AssessmentStatus",
        "OrganizationStatusEnum": "ch_core.organizations.models.OrganizationStatus",
        "PdfJobStatusEnum": "ch_core.pdf.models.PdfJobStatus",
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=10),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=14),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": False,
    "UPDATE_LAST_LOGIN": True,

    # Cookie settings
    "AUTH_COOKIE": "ch_access",
    "AUTH_COOKIE_REFRESH": "ch_refresh",
    "AUTH_COOKIE_SECURE": False,   # set True in production (HTTPS)
    "AUTH_COOKIE_HTTP_ONLY": True,
    "AUTH_COOKIE_SAMESITE": "Lax",
}

# CORS settings
# Development
CORS_ALLOW_ALL_ORIGINS = True  # Only for development!
CORS_ALLOW_CREDENTIALS = True

# Audits
AUDIT_HISTORY_LIMIT = int(os.getenv("AUDIT_HISTORY_LIMIT", "10"))
AUDIT_UPCOMING_WINDOW_DAYS = int(os.getenv("AUDIT_UPCOMING_WINDOW_DAYS", "7"))
AUDIT_DRAFT_MAX_AGE_DAYS = int(os.getenv("AUDIT_DRAFT_MAX_AGE_DAYS", "30"))

# PDF bridge (server-to-server). An empty token rejects every request.
PDF_API_TOKEN = os.getenv("PDF_API_TOKEN", "")
PDF_API_AUTH_DISABLED = os.getenv("PDF_API_AUTH_DISABLED", "1" if DEBUG else "0") == "1"
PDF_RENDER_TIMEOUT_SECONDS = int(os.getenv("PDF_RENDER_TIMEOUT_SECONDS", "30"))

# PDF outbox
PDF_JOBS_ENABLED = os.getenv("PDF_JOBS_ENABLED", "1") == "1"
PDF_JOBS_ASYNC = os.getenv("PDF_JOBS_ASYNC", "1") == "1"

# Per-device checklist cache; unset LOCAL_CACHE_DIR keeps it in process memory
LOCAL_CACHE_ALIAS = "local_checklists"
LOCAL_CACHE_DIR = os.getenv("LOCAL_CACHE_DIR") or None

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    },
    LOCAL_CACHE_ALIAS: {
        "BACKEND": (
            "django.core.cache.backends.filebased.FileBasedCache"
            if LOCAL_CACHE_DIR
            else "django.core.cache.backends.locmem.LocMemCache"
        ),
        "LOCATION": LOCAL_CACHE_DIR or "ch-local-checklists",
        # Checklist state never expires.
        "TIMEOUT": None,
        "OPTIONS": {"MAX_ENTRIES": 100000},
    },
}
