"""
Registry Libraries

Fetches catalog images with podman and caches their extracted configs.
"""

from .cache import CatalogCache, catalog_key
from .client import LocalCatalogFetcher, PodmanClient

__all__ = [
    'CatalogCache',
    'catalog_key',
    'PodmanClient',
    'LocalCatalogFetcher'
]
