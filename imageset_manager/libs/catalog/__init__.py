"""
Catalog Libraries

Decodes File-Based Catalog content and resolves package, channel and version
graphs from it.
"""

from .decoder import DecodeResult, JSONStreamScanner, MultiDocumentDecoder, ScanState, SkippedFile
from .graph import CatalogGraphBuilder
from .models import (
    BundleObject, CatalogGraph, ChannelEntry, ChannelObject, ChannelVersions,
    DefaultChannelSource, PackageObject, UnknownObject, classify
)
from .service import CatalogService
from .versions import (
    compare_versions, default_latest, is_newer, latest, sort_versions_descending, version_sort_key
)

__all__ = [
    # Decoding
    'MultiDocumentDecoder',
    'JSONStreamScanner',
    'ScanState',
    'DecodeResult',
    'SkippedFile',
    # Models
    'PackageObject',
    'ChannelEntry',
    'ChannelObject',
    'BundleObject',
    'UnknownObject',
    'classify',
    'CatalogGraph',
    'ChannelVersions',
    'DefaultChannelSource',
    # Main classes
    'CatalogGraphBuilder',
    'CatalogService',
    # Versions
    'version_sort_key',
    'compare_versions',
    'sort_versions_descending',
    'latest',
    'default_latest',
    'is_newer'
]
