"""
Core Utilities

Common utility functions used across the ImageSet Manager tool.
"""

import logging
import re
import sys
from typing import Tuple
from .exceptions import ConfigurationError
from .constants import CatalogConstants, ErrorMessages


def setup_logging(debug: bool = False) -> None:
    """
    Set up logging configuration for the application.
    Separates WARNING/INFO to stdout and ERROR to stderr.

    Args:
        debug: Enable debug logging level
    """
    level = logging.DEBUG if debug else logging.INFO

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # stdout gets INFO, WARNING, DEBUG
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(lambda record: record.levelno < logging.ERROR)

    # stderr gets ERROR and CRITICAL only
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    if debug:
        logger = logging.getLogger(__name__)
        logger.debug("Debug mode enabled")


IMAGE_URL_PATTERN = (
    r'^([a-zA-Z0-9.-]+(?:\:[0-9]+)?\/)?[a-zA-Z0-9._-]+(?:\/[a-zA-Z0-9._-]+)*'
    r'(?:\:[a-zA-Z0-9._-]+|@sha256\:[a-fA-F0-9]{64})?$'
)


def validate_image_url(image: str) -> bool:
    """
    Validate if the provided string is a valid container image URL.

    Args:
        image: Container image URL to validate

    Returns:
        bool: True if valid image URL

    Raises:
        ConfigurationError: If image URL is invalid
    """
    if not image or not isinstance(image, str):
        raise ConfigurationError("Image cannot be empty")

    if not re.match(IMAGE_URL_PATTERN, image):
        raise ConfigurationError(str(ErrorMessages.ConfigError.INVALID_IMAGE_URL).format(image=image))

    return True


def build_catalog_reference(catalog: str, version: str,
                            registry: str = CatalogConstants.DEFAULT_REGISTRY) -> str:
    """
    Build the image reference of a catalog index.

    Args:
        catalog: Catalog index name (e.g. 'redhat-operator-index')
        version: Catalog tag (e.g. 'v4.18')
        registry: Registry and namespace prefix

    Returns:
        str: Image reference such as registry.redhat.io/redhat/redhat-operator-index:v4.18
    """
    return f"{registry.rstrip('/')}/{catalog}:{version}"


def split_catalog_reference(reference: str) -> Tuple[str, str]:
    """
    Split an image reference into catalog name and tag.

    Digest references yield the digest as the version. References without a
    tag yield an empty version.

    Args:
        reference: Catalog image reference

    Returns:
        Tuple of (catalog name, version)
    """
    if not reference:
        return "", ""

    if '@' in reference:
        repository, version = reference.split('@', 1)
    else:
        last_segment = reference.rsplit('/', 1)[-1]
        if ':' in last_segment:
            repository, version = reference.rsplit(':', 1)
        else:
            repository, version = reference, ""

    return repository.rsplit('/', 1)[-1], version


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing or replacing invalid characters.

    Args:
        filename: Original filename

    Returns:
        str: Sanitized filename safe for filesystem use
    """
    sanitized = re.sub(r'[<>:"/\\|?*@]', '_', filename)
    sanitized = sanitized.strip('. ')

    if not sanitized:
        sanitized = "unnamed"

    return sanitized


def format_bytes(bytes_count: int) -> str:
    """
    Format byte count into human-readable string.

    Args:
        bytes_count: Number of bytes

    Returns:
        str: Human-readable byte count (e.g., "1.5 MB")
    """
    if bytes_count == 0:
        return "0 B"

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0
    size = float(bytes_count)

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    return f"{size:.1f} {units[unit_index]}"
