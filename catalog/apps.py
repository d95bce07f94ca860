from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'catalog'
    verbose_name = 'Catalog & Song Workflow'

    def ready(self):
        """Import signals when app is ready."""
        import catalog.signals  # noqa: F401
