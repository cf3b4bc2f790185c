from django.apps import AppConfig, apps
from django.conf import settings

from .products import Catalog, load_catalog


class CatalogConfig(AppConfig):
    name = "catalog"
    catalog: Catalog

    def ready(self):
        self.catalog = load_catalog(getattr(settings, "CATALOG_FILE", "") or None)


def get_catalog() -> Catalog:
    return apps.get_app_config("catalog").catalog
