# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

# Local runs can skip the PDF service token unless explicitly enabled
PDF_API_AUTH_DISABLED = os.getenv("PDF_API_AUTH_DISABLED", "1" if DEBUG else "0") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
