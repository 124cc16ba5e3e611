"""
ImageSet Manager Library

Catalog discovery and ImageSetConfiguration maintenance for operator mirroring.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

# Core libraries
from .core import (
    ConfigManager,
    ImageSetManagerError, ConfigurationError, FetchError, CatalogError, ParsingError,
    UnparsableFileError, MalformedConfigError, ReconcileError,
    CatalogConstants, ImageSetConstants, NetworkConstants, FileConstants, ErrorMessages
)

# Catalog libraries
from .catalog import (
    MultiDocumentDecoder, JSONStreamScanner, CatalogGraphBuilder, CatalogGraph, CatalogService
)

# Registry libraries
from .registry import CatalogCache, PodmanClient, LocalCatalogFetcher

# ImageSet libraries
from .imageset import (
    Selection, DefaultChannelAction, OperatorAction, ImageSetSynthesizer, ImageSetParser,
    ImageSetReconciler
)

# Main application and help
from .help_manager import HelpManager
from .main_app import ImageSetManager, main

__all__ = [
    # Core
    'ConfigManager',
    'ImageSetManagerError',
    'ConfigurationError',
    'FetchError',
    'CatalogError',
    'ParsingError',
    'UnparsableFileError',
    'MalformedConfigError',
    'ReconcileError',
    'CatalogConstants',
    'ImageSetConstants',
    'NetworkConstants',
    'FileConstants',
    'ErrorMessages',
    # Catalog
    'MultiDocumentDecoder',
    'JSONStreamScanner',
    'CatalogGraphBuilder',
    'CatalogGraph',
    'CatalogService',
    # Registry
    'CatalogCache',
    'PodmanClient',
    'LocalCatalogFetcher',
    # ImageSet
    'Selection',
    'DefaultChannelAction',
    'OperatorAction',
    'ImageSetSynthesizer',
    'ImageSetParser',
    'ImageSetReconciler',
    # Main
    'HelpManager',
    'ImageSetManager',
    'main'
]
