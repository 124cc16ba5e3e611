"""
Catalog Service

High-level service for catalog operations: locating an extracted catalog
(local directory, cache or image fetch), listing its operators and building
per-operator graphs.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..core.constants import CatalogConstants, ErrorMessages
from ..core.exceptions import CatalogError
from ..core.protocols import CatalogCacheProvider, CatalogFetcher
from ..core.utils import build_catalog_reference
from .decoder import MultiDocumentDecoder, SkippedFile
from .graph import CatalogGraphBuilder
from .models import CatalogGraph

logger = logging.getLogger(__name__)


class CatalogService:
    """High-level service for catalog queries"""

    def __init__(self, fetcher: CatalogFetcher = None, cache: CatalogCacheProvider = None,
                 decoder: MultiDocumentDecoder = None, builder: CatalogGraphBuilder = None,
                 registry: str = CatalogConstants.DEFAULT_REGISTRY):
        """
        Initialize catalog service

        Args:
            fetcher: Collaborator that extracts catalog images (required for remote catalogs)
            cache: Optional directory cache keyed by catalog+version
            decoder: Catalog file decoder
            builder: Catalog graph builder
            registry: Registry prefix for known catalog images
        """
        self.fetcher = fetcher
        self.cache = cache
        self.decoder = decoder or MultiDocumentDecoder()
        self.builder = builder or CatalogGraphBuilder()
        self.registry = registry

        self.catalog_dir: Optional[Path] = None
        self.skipped: List[SkippedFile] = []

        # Whole-catalog graphs, used when the catalog is not split per operator
        self._flat_graphs: Optional[Dict[str, CatalogGraph]] = None

    @staticmethod
    def validate_catalog_name(catalog: str) -> None:
        """
        Check a catalog name against the known catalog indexes

        Raises:
            CatalogError: If the catalog is not known
        """
        known = CatalogConstants.KnownCatalog.names()
        if catalog not in known:
            raise CatalogError(str(ErrorMessages.CatalogError.UNKNOWN_CATALOG).format(
                catalog=catalog, catalogs=', '.join(known)
            ))

    def resolve_catalog_dir(self, catalog: str, version: str) -> Path:
        """
        Locate the extracted catalog for a catalog+version pair

        A valid cache entry is used as is; otherwise the image is fetched and,
        when a cache is configured, stored for later runs. Fetch failures
        propagate to the caller.

        Args:
            catalog: Known catalog index name
            version: Catalog tag (e.g. 'v4.18')

        Returns:
            Path: Directory holding one subdirectory per operator

        Raises:
            CatalogError: If the catalog name is unknown
            FetchError: If the image cannot be fetched
        """
        self.validate_catalog_name(catalog)
        key = f"{catalog}:{version}"

        if self.cache is not None and self.cache.has_cached(key):
            cached = self.cache.cached_path(key)
            logger.info(f"Using cached catalog data for {key}")
            return self.use_directory(cached)

        if self.fetcher is None:
            raise CatalogError(str(ErrorMessages.CatalogError.MISSING_CATALOG_SOURCE))

        image = build_catalog_reference(catalog, version, self.registry)
        extracted = self.fetcher.fetch_catalog_files(image)

        if self.cache is not None:
            stored = self.cache.store(key, extracted)
            # The cache hands back the source directory when it could not copy it
            if stored != extracted:
                self.fetcher.release(extracted)
            extracted = stored

        return self.use_directory(extracted)

    def use_directory(self, directory) -> Path:
        """
        Point the service at an already extracted catalog directory

        Raises:
            CatalogError: If the directory does not exist
        """
        path = Path(directory)
        if not path.is_dir():
            raise CatalogError(str(ErrorMessages.CatalogError.CONFIGS_NOT_FOUND).format(path=path))

        self.catalog_dir = path
        self._flat_graphs = None
        self.skipped = []
        logger.debug(f"Catalog directory set to: {path}")
        return path

    def _require_catalog_dir(self) -> Path:
        if self.catalog_dir is None:
            raise CatalogError(str(ErrorMessages.CatalogError.MISSING_CATALOG_SOURCE))
        return self.catalog_dir

    def _operator_dirs(self) -> List[Path]:
        root = self._require_catalog_dir()
        return sorted(p for p in root.iterdir() if p.is_dir() and not p.name.startswith('.'))

    def _load_flat_graphs(self) -> Dict[str, CatalogGraph]:
        """Decode the top-level catalog files and group them by package"""
        if self._flat_graphs is None:
            result = self.decoder.decode_directory(self._require_catalog_dir())
            self.skipped.extend(result.skipped)
            self._flat_graphs = self.builder.build_packages(result.objects)
        return self._flat_graphs

    def list_operators(self) -> List[str]:
        """
        List operator packages in the catalog

        Returns:
            Sorted operator names: the operator directories, or the package
            names of a single-file catalog when there are none
        """
        operator_dirs = self._operator_dirs()
        if operator_dirs:
            operators = [p.name for p in operator_dirs]
        else:
            operators = sorted(self._load_flat_graphs())

        logger.info(f"Found {len(operators)} operators in {self.catalog_dir}")
        return operators

    def get_operator_graph(self, operator: str) -> Optional[CatalogGraph]:
        """
        Build the graph of one operator

        Args:
            operator: Operator package name

        Returns:
            CatalogGraph, or None if the catalog holds no data for the operator
        """
        root = self._require_catalog_dir()
        operator_dir = root / operator

        if operator_dir.is_dir():
            result = self.decoder.decode_directory(operator_dir)
            self.skipped.extend(result.skipped)
            if not result.objects:
                logger.warning(f"No catalog objects found for operator '{operator}'")
                return None
            return self.builder.build(result.objects)

        if self._operator_dirs():
            logger.debug(f"Operator directory not found: {operator_dir}")
            return None

        return self._load_flat_graphs().get(operator)

    def get_operator_graphs(self, operators: Iterable[str]) -> Dict[str, Optional[CatalogGraph]]:
        """
        Build graphs for several operators

        Returns:
            Dict mapping each requested operator to its graph, or None when absent
        """
        graphs = {}
        for operator in operators:
            if operator in graphs:
                continue
            graphs[operator] = self.get_operator_graph(operator)
        return graphs
