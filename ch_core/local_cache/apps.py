from django.apps import AppConfig


class LocalCacheConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ch_core.local_cache"
    label = "local_cache"
