from .base import CatalogService
from .factory import get_catalog_service
from .http import HttpCatalogService

__all__ = ["CatalogService", "HttpCatalogService", "get_catalog_service"]
