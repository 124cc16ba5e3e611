"""
Version Resolver

Numeric-aware version ordering and latest-version lookups over a CatalogGraph.
All functions are pure.
"""

import re
from typing import Iterable, List, Optional, Tuple

from .models import CatalogGraph

_RUN_PATTERN = re.compile(r'(\d+)')


def version_sort_key(version: str) -> Tuple[Tuple[Tuple[int, int, str], ...], str]:
    """
    Sort key comparing digit runs by magnitude.

    Digit runs sort before text runs at the same position; the raw string is
    the final tiebreaker so that '01' and '1' still order deterministically.
    """
    parts = []
    for run in _RUN_PATTERN.split(version):
        if not run:
            continue
        if run.isdigit():
            parts.append((0, int(run), ''))
        else:
            parts.append((1, 0, run))
    return tuple(parts), version


def compare_versions(left: str, right: str) -> int:
    """
    Compare two version strings.

    Returns:
        Negative if left < right, zero if equal, positive if left > right
    """
    left_key = version_sort_key(left)
    right_key = version_sort_key(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def sort_versions_descending(versions: Iterable[str]) -> List[str]:
    """Deduplicate and sort versions, latest first"""
    return sorted(set(versions), key=version_sort_key, reverse=True)


def latest(graph: CatalogGraph, channel_name: Optional[str]) -> Optional[str]:
    """Latest version of a channel, or None if the channel is absent or empty"""
    if graph is None or not channel_name:
        return None

    channel = graph.get_channel(channel_name)
    if channel is None or not channel.versions:
        return None
    return channel.versions[0]


def default_latest(graph: CatalogGraph) -> Optional[str]:
    """Latest version of the graph's default channel"""
    if graph is None or not graph.default_channel:
        return None
    return latest(graph, graph.default_channel)


def is_newer(candidate: Optional[str], current: Optional[str]) -> bool:
    """Whether candidate sorts strictly after current"""
    if not candidate:
        return False
    if not current:
        return True
    return compare_versions(candidate, current) > 0
