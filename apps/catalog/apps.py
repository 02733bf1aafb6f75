from django.apps import AppConfig  # type: ignore


class CatalogConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.catalog"
    verbose_name = "Catalog"

    def ready(self) -> None:  # pragma: no cover - import side effects
        from . import signals  # noqa: F401
