"""
Catalog Directory Cache

Keeps extracted catalog trees on disk, keyed by catalog and version, so
repeated lookups skip the image pull. The cache is advisory: callers always
re-parse whatever the cached path holds.
"""

import hashlib
import json
import logging
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.constants import FileConstants
from ..core.utils import format_bytes, sanitize_filename

logger = logging.getLogger(__name__)


def catalog_key(catalog: str, version: str) -> str:
    """Cache key for a catalog+version pair"""
    return f"{catalog}:{version}"


class CatalogCache:
    """Directory-per-key cache of extracted catalogs"""

    def __init__(self, cache_dir: Optional[str] = None, ttl: int = FileConstants.CACHE_TTL):
        """
        Initialize catalog cache

        Args:
            cache_dir: Directory to store cache entries (default: system temp)
            ttl: Time-to-live for cache entries in seconds
        """
        self.ttl = ttl

        if cache_dir:
            self.cache_dir = Path(cache_dir)
        else:
            self.cache_dir = Path(tempfile.gettempdir()) / FileConstants.CACHE_DIR_NAME

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cleanup_expired_entries()

        logger.debug(f"Initialized catalog cache at: {self.cache_dir}")

    def _entry_name(self, key: str) -> str:
        digest = hashlib.md5(key.encode()).hexdigest()[:12]
        return f"{sanitize_filename(key)}-{digest}"

    def _entry_dir(self, key: str) -> Path:
        return self.cache_dir / self._entry_name(key)

    def _meta_file(self, key: str) -> Path:
        return self.cache_dir / f"{self._entry_name(key)}.meta"

    def _read_meta(self, meta_file: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(meta_file, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Error reading cache metadata {meta_file}: {e}")
            return None

    def has_cached(self, key: str) -> bool:
        """
        Check if a non-expired entry exists for the key

        Args:
            key: Cache key (see catalog_key)

        Returns:
            bool: True if the entry exists and has not expired
        """
        entry_dir = self._entry_dir(key)
        metadata = self._read_meta(self._meta_file(key))

        if not entry_dir.is_dir() or metadata is None:
            return False

        age = time.time() - metadata.get('timestamp', 0)
        if age > self.ttl:
            logger.debug(f"Cache entry expired: {key}")
            return False

        logger.debug(f"Cache entry valid: {key} (age: {age:.1f}s)")
        return True

    def cached_path(self, key: str) -> Path:
        """Directory holding the cached catalog for the key"""
        return self._entry_dir(key)

    def store(self, key: str, source_dir) -> Path:
        """
        Copy an extracted catalog into the cache using a write-and-rename strategy

        Args:
            key: Cache key
            source_dir: Directory to copy

        Returns:
            Path: The cached directory
        """
        entry_dir = self._entry_dir(key)
        meta_file = self._meta_file(key)
        temp_dir = entry_dir.with_name(entry_dir.name + '.tmp')
        meta_temp = meta_file.with_name(meta_file.name + '.tmp')

        try:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
            shutil.copytree(source_dir, temp_dir)

            size = sum(p.stat().st_size for p in temp_dir.rglob('*') if p.is_file())
            with open(meta_temp, 'w') as f:
                json.dump({'timestamp': time.time(), 'key': key, 'size': size}, f)

            # Data first, then metadata: metadata present implies data present
            if entry_dir.exists():
                shutil.rmtree(entry_dir)
            temp_dir.rename(entry_dir)
            meta_temp.rename(meta_file)

            logger.debug(f"Cached catalog: {key} ({format_bytes(size)})")
            return entry_dir

        except OSError as e:
            for leftover in (temp_dir, meta_temp):
                if leftover.is_dir():
                    shutil.rmtree(leftover, ignore_errors=True)
                elif leftover.exists():
                    leftover.unlink()
            logger.warning(f"Failed to cache catalog {key}: {e}")
            return Path(source_dir)

    def invalidate(self, key: str) -> None:
        """Remove the entry for a key"""
        self._remove_entry(self._entry_dir(key), self._meta_file(key))

    def _remove_entry(self, entry_dir: Path, meta_file: Path) -> None:
        if entry_dir.is_dir():
            shutil.rmtree(entry_dir, ignore_errors=True)
        if meta_file.exists():
            meta_file.unlink()
        logger.debug(f"Removed cache entry: {entry_dir.name}")

    def _cleanup_expired_entries(self) -> None:
        """Clean up expired cache entries"""
        current_time = time.time()
        removed_count = 0

        for meta_file in self.cache_dir.glob("*.meta"):
            metadata = self._read_meta(meta_file)
            if metadata is None or current_time - metadata.get('timestamp', 0) > self.ttl:
                self._remove_entry(self.cache_dir / meta_file.stem, meta_file)
                removed_count += 1

        if removed_count > 0:
            logger.debug(f"Cleaned up {removed_count} expired cache entries")

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics

        Returns:
            Dict with cache statistics
        """
        entries = []
        total_size = 0

        for meta_file in sorted(self.cache_dir.glob("*.meta")):
            metadata = self._read_meta(meta_file)
            if metadata is None:
                continue
            total_size += metadata.get('size', 0)
            entries.append(metadata.get('key', meta_file.stem))

        return {
            'cache_dir': str(self.cache_dir),
            'ttl': self.ttl,
            'total_entries': len(entries),
            'entries': entries,
            'total_size_bytes': total_size,
            'total_size_human': format_bytes(total_size)
        }

    def clear_all(self) -> int:
        """
        Clear all cache entries

        Returns:
            int: Number of entries removed
        """
        removed_count = 0
        for meta_file in list(self.cache_dir.glob("*.meta")):
            self._remove_entry(self.cache_dir / meta_file.stem, meta_file)
            removed_count += 1

        logger.info(f"Cleared all cache entries ({removed_count} entries)")
        return removed_count
