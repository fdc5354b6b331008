from .base import CatalogService
from .http import HttpCatalogService


def get_catalog_service() -> CatalogService:
    return HttpCatalogService()
