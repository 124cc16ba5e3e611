"""
Protocols and Interfaces

Defines protocols (interfaces) for dependency injection and type hints.
"""

from pathlib import Path
from typing import Protocol, Dict, Any, Optional


class CatalogFetcher(Protocol):
    """Protocol for collaborators that materialize a catalog image on disk"""

    def fetch_catalog_files(self, image_reference: str, dest: Optional[Path] = None) -> Path:
        """Return a local directory containing the catalog's configs tree"""
        ...

    def release(self, configs_dir: Path) -> None:
        """Drop a directory returned by fetch_catalog_files once it has been copied elsewhere"""
        ...


class CatalogCacheProvider(Protocol):
    """Protocol for catalog directory caches keyed by catalog+version"""

    def has_cached(self, catalog_key: str) -> bool:
        """Check whether an extracted catalog is available for the key"""
        ...

    def cached_path(self, catalog_key: str) -> Path:
        """Get the directory holding the cached catalog for the key"""
        ...

    def store(self, catalog_key: str, source_dir: Path) -> Path:
        """Copy an extracted catalog into the cache and return its cached path"""
        ...


class ConfigProvider(Protocol):
    """Protocol for configuration providers"""

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        ...

    def generate_config_template(self, output_dir: str = None) -> str:
        """Generate configuration template file"""
        ...

    def get_config_template_content(self) -> str:
        """Configuration template as YAML text"""
        ...


class HelpProvider(Protocol):
    """Protocol for help providers"""

    def show_help(self, topic: str = None) -> None:
        """Show help for a specific topic"""
        ...

    def show_examples(self, command: str = None) -> None:
        """Show usage examples"""
        ...
