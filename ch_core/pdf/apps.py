# ch_core/pdf/apps.py
from django.apps import AppConfig


class PdfConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ch_core.pdf"
    label = "pdf"

    def ready(self):
        # Register event handlers.
        from ch_core.pdf import subscribers  # noqa: F401
