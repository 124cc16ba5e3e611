"""
Core Libraries

Shared functionality and utilities for the ImageSet Manager tool.
"""

from .config import ConfigManager
from .constants import (
    CatalogConstants, ImageSetConstants, NetworkConstants,
    FileConstants, ErrorMessages
)
from .exceptions import (
    ImageSetManagerError, ConfigurationError, FetchError, CatalogError,
    ParsingError, UnparsableFileError, MalformedConfigError, ReconcileError,
    OperatorNotFoundError, ChannelNotFoundError, VersionNotFoundError,
    MissingDefaultChannelError
)
from .protocols import CatalogFetcher, CatalogCacheProvider, ConfigProvider, HelpProvider
from .utils import (
    setup_logging, validate_image_url, build_catalog_reference,
    split_catalog_reference, sanitize_filename, format_bytes
)

__all__ = [
    # Main classes
    'ConfigManager',
    # Constants
    'CatalogConstants',
    'ImageSetConstants',
    'NetworkConstants',
    'FileConstants',
    'ErrorMessages',
    # Exceptions
    'ImageSetManagerError',
    'ConfigurationError',
    'FetchError',
    'CatalogError',
    'ParsingError',
    'UnparsableFileError',
    'MalformedConfigError',
    'ReconcileError',
    'OperatorNotFoundError',
    'ChannelNotFoundError',
    'VersionNotFoundError',
    'MissingDefaultChannelError',
    # Protocols
    'CatalogFetcher',
    'CatalogCacheProvider',
    'ConfigProvider',
    'HelpProvider',
    # Utilities
    'setup_logging',
    'validate_image_url',
    'build_catalog_reference',
    'split_catalog_reference',
    'sanitize_filename',
    'format_bytes'
]
