"""
Catalog Graph Builder

Turns decoded catalog objects into a package -> channel -> version graph.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    BundleObject, CatalogGraph, ChannelObject, ChannelVersions, DefaultChannelSource,
    PackageObject, UnknownObject, classify
)
from .versions import sort_versions_descending

logger = logging.getLogger(__name__)


class CatalogGraphBuilder:
    """Builds CatalogGraph views from FBC object streams"""

    def build(self, objects: Iterable[Any]) -> CatalogGraph:
        """
        Build the graph of one operator package

        The first olm.package object supplies the default channel. Channel
        entries resolve to their bundle's olm.package version, or to the bundle
        name when the bundle has no parsable version. When no package object
        declares a default channel, the first channel seen is used and the
        graph is flagged with DefaultChannelSource.FIRST_CHANNEL.

        Args:
            objects: Decoded catalog objects (typed or untyped)

        Returns:
            CatalogGraph with versions sorted latest first
        """
        typed = [obj if self._is_typed(obj) else classify(obj) for obj in objects]

        package = next((obj for obj in typed if isinstance(obj, PackageObject)), None)
        bundle_versions = self._bundle_versions(typed)

        channel_versions: Dict[str, List[str]] = {}
        for obj in typed:
            if not isinstance(obj, ChannelObject):
                continue
            if not obj.name:
                logger.debug("Skipping olm.channel object without a name")
                continue

            versions = channel_versions.setdefault(obj.name, [])
            for entry in obj.entries:
                resolved = bundle_versions.get(entry.name) or entry.name
                if resolved not in versions:
                    versions.append(resolved)

        channels = [
            ChannelVersions(name, sort_versions_descending(versions))
            for name, versions in channel_versions.items()
        ]

        package_name = package.name if package else None
        if package is None:
            package_name = self._package_name_from_members(typed)

        default_channel = package.default_channel if package else None
        if default_channel:
            source = DefaultChannelSource.PACKAGE
        elif channels:
            default_channel = channels[0].name
            source = DefaultChannelSource.FIRST_CHANNEL
            logger.info(
                f"No default channel declared for package '{package_name or 'unknown'}'; "
                f"falling back to first channel '{default_channel}'"
            )
        else:
            source = DefaultChannelSource.NONE

        return CatalogGraph(
            package=package_name,
            default_channel=default_channel,
            default_channel_source=source,
            channels=channels
        )

    def build_packages(self, objects: Iterable[Any]) -> Dict[str, CatalogGraph]:
        """
        Build one graph per package from a whole-catalog object stream

        Used when a catalog is rendered into a single file instead of one
        directory per operator. Objects are grouped by their ``package`` field
        (``name`` for olm.package objects); objects without a package are
        dropped.

        Args:
            objects: Decoded catalog objects

        Returns:
            Dict mapping package names to graphs, in first-seen order
        """
        grouped: Dict[str, list] = {}

        for raw in objects:
            obj = raw if self._is_typed(raw) else classify(raw)
            if isinstance(obj, PackageObject):
                key = obj.name
            elif isinstance(obj, (ChannelObject, BundleObject)):
                key = obj.package
            else:
                continue

            if not key:
                logger.debug(f"Skipping {type(obj).__name__} without a package name")
                continue
            grouped.setdefault(key, []).append(obj)

        return {name: self.build(members) for name, members in grouped.items()}

    @staticmethod
    def _is_typed(obj: Any) -> bool:
        return isinstance(obj, (PackageObject, ChannelObject, BundleObject, UnknownObject))

    @staticmethod
    def _bundle_versions(typed: List[Any]) -> Dict[str, str]:
        lookup = {}
        for obj in typed:
            if isinstance(obj, BundleObject) and obj.name and obj.version:
                lookup.setdefault(obj.name, obj.version)
        return lookup

    @staticmethod
    def _package_name_from_members(typed: List[Any]) -> Optional[str]:
        for obj in typed:
            if isinstance(obj, (ChannelObject, BundleObject)) and obj.package:
                return obj.package
        return None
