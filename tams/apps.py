from django.apps import AppConfig


class TamsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tams"
    verbose_name = "Traffic asset management"

    def ready(self):  # pragma: no cover - side effect registration
        from . import signals  # noqa: F401
