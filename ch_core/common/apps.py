from django.apps import AppConfig


class CommonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ch_core.common"
    label = "common"

    def ready(self):
        from ch_core.common.logging import configure_logging

        configure_logging()
