"""
ImageSet Manager

Discovers the contents of File-Based Catalog images and generates, checks and
updates oc-mirror ImageSetConfiguration files from them.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

from .libs import (
    # Core
    ConfigManager, ImageSetManagerError, ConfigurationError, FetchError, CatalogError,
    ParsingError, UnparsableFileError, MalformedConfigError, ReconcileError,
    CatalogConstants, ImageSetConstants, NetworkConstants, FileConstants, ErrorMessages,
    # Catalog
    MultiDocumentDecoder, JSONStreamScanner, CatalogGraphBuilder, CatalogGraph, CatalogService,
    # Registry
    CatalogCache, PodmanClient, LocalCatalogFetcher,
    # ImageSet
    Selection, DefaultChannelAction, OperatorAction, ImageSetSynthesizer, ImageSetParser,
    ImageSetReconciler,
    # Main
    HelpManager, ImageSetManager, main
)

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
