from importlib import import_module

from django.apps import AppConfig


class MediaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "media"
    verbose_name = "Media uploads"

    def ready(self) -> None:
        # Drop the cached media host whenever tests override its settings.
        import_module("media.signals")
