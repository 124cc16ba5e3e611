"""
Catalog Models

Typed views of File-Based Catalog objects and the resolved catalog graph.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Union

from ..core.constants import BaseStrEnum, CatalogConstants


class PackageObject(NamedTuple):
    """An olm.package object"""
    name: Optional[str]
    default_channel: Optional[str]


class ChannelEntry(NamedTuple):
    """A bundle reference inside an olm.channel object"""
    name: str


class ChannelObject(NamedTuple):
    """An olm.channel object"""
    name: Optional[str]
    package: Optional[str]
    entries: List[ChannelEntry]


class BundleObject(NamedTuple):
    """An olm.bundle object with its resolved olm.package version"""
    name: Optional[str]
    package: Optional[str]
    version: Optional[str]


class UnknownObject(NamedTuple):
    """Anything that is not one of the three recognized schemas"""
    schema: Optional[str]
    raw: Any


CatalogObject = Union[PackageObject, ChannelObject, BundleObject, UnknownObject]


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _bundle_version(properties: Any) -> Optional[str]:
    """Read value.version of the first olm.package property"""
    if not isinstance(properties, list):
        return None

    for prop in properties:
        if not isinstance(prop, dict):
            continue
        if prop.get('type') != CatalogConstants.PropertyType.PACKAGE:
            continue
        value = prop.get('value')
        if isinstance(value, dict):
            version = _optional_str(value.get('version'))
            if version:
                return version
    return None


def classify(raw: Any) -> CatalogObject:
    """
    Turn an untyped decoded value into its catalog variant.

    Every input maps to exactly one variant; values that are not mappings or
    carry an unrecognized schema become UnknownObject.

    Args:
        raw: A value emitted by the decoder

    Returns:
        The typed catalog object
    """
    if not isinstance(raw, dict):
        return UnknownObject(schema=None, raw=raw)

    schema = raw.get('schema')

    if schema == CatalogConstants.Schema.PACKAGE:
        return PackageObject(
            name=_optional_str(raw.get('name')),
            default_channel=_optional_str(raw.get('defaultChannel'))
        )

    if schema == CatalogConstants.Schema.CHANNEL:
        entries = []
        raw_entries = raw.get('entries')
        if isinstance(raw_entries, list):
            for entry in raw_entries:
                if isinstance(entry, dict):
                    entry_name = _optional_str(entry.get('name'))
                    if entry_name:
                        entries.append(ChannelEntry(name=entry_name))
        return ChannelObject(
            name=_optional_str(raw.get('name')),
            package=_optional_str(raw.get('package')),
            entries=entries
        )

    if schema == CatalogConstants.Schema.BUNDLE:
        return BundleObject(
            name=_optional_str(raw.get('name')),
            package=_optional_str(raw.get('package')),
            version=_bundle_version(raw.get('properties'))
        )

    return UnknownObject(schema=schema if isinstance(schema, str) else None, raw=raw)


class DefaultChannelSource(BaseStrEnum):
    """Where a graph's default channel came from"""
    PACKAGE = "package"
    FIRST_CHANNEL = "first_channel"
    NONE = "none"


class ChannelVersions(NamedTuple):
    """A channel and its versions, latest first"""
    name: str
    versions: List[str]


class CatalogGraph(NamedTuple):
    """
    Resolved package view exposed to callers.

    ``default_channel_source`` tells an explicit package default apart from
    the first-channel fallback, which the catalog format does not define and
    should be treated as a guess.
    """
    package: Optional[str]
    default_channel: Optional[str]
    default_channel_source: DefaultChannelSource
    channels: List[ChannelVersions]

    @property
    def has_explicit_default(self) -> bool:
        return self.default_channel_source == DefaultChannelSource.PACKAGE

    def channel_names(self) -> List[str]:
        return [channel.name for channel in self.channels]

    def get_channel(self, name: Optional[str]) -> Optional[ChannelVersions]:
        for channel in self.channels:
            if channel.name == name:
                return channel
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the operator-details response shape"""
        return {
            'defaultChannel': self.default_channel,
            'defaultChannelSource': str(self.default_channel_source),
            'channels': [
                {'name': channel.name, 'versions': list(channel.versions)}
                for channel in self.channels
            ]
        }
