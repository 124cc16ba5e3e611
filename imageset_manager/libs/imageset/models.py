"""
ImageSet Models

Records exchanged between the synthesizer, parser and reconciler.
"""

from typing import Any, Dict, List, NamedTuple, Optional

from ..core.constants import BaseStrEnum
from ..core.exceptions import ReconcileError


class Selection(NamedTuple):
    """
    One operator picked for mirroring.

    ``default_channel_version`` is informational: it is never written to a
    document, so parsed selections always have it unset. Compare against
    ``as_written()`` when checking a generate/parse round trip.
    """
    operator: str
    channel: str
    version: Optional[str]
    default_channel: Optional[str] = None
    default_channel_version: Optional[str] = None

    def as_written(self) -> 'Selection':
        """The selection as it reads back from a generated document"""
        return self._replace(default_channel_version=None)


class DefaultChannelAction(BaseStrEnum):
    """What to do when an operator's default channel is not its configured channel"""
    NONE = "none"
    ADD = "add"
    REPLACE = "replace"


class OperatorAction(NamedTuple):
    """
    Per-operator reconcile request.

    ``version`` overrides the channel's latest version on update.
    ``replace_channel`` names the channel to switch to when the configured one
    is gone from the catalog.
    """
    update: bool = False
    version: Optional[str] = None
    replace_channel: Optional[str] = None
    default_channel: DefaultChannelAction = DefaultChannelAction.NONE
    remove: bool = False


class Outcome(BaseStrEnum):
    """Terminal states of a reconciled operator"""
    REMOVED = "removed"
    CHANNEL_REPLACED = "channel_replaced"
    VERSION_UPDATED = "version_updated"
    DEFAULT_CHANNEL_ADDED = "default_channel_added"
    DEFAULT_CHANNEL_REPLACED = "default_channel_replaced"
    DEFAULT_CHANNEL_REFERENCED = "default_channel_referenced"
    DEFAULT_CHANNEL_MARKER_REMOVED = "default_channel_marker_removed"
    UNCHANGED = "unchanged"
    CHANNEL_NOT_FOUND = "channel_not_found"


class OperatorReport(NamedTuple):
    """What happened to one operator"""
    operator: str
    outcomes: List[Outcome]
    channels: List[Dict[str, Any]]
    default_channel: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.operator,
            'outcomes': [str(outcome) for outcome in self.outcomes],
            'channels': self.channels,
            'defaultChannel': self.default_channel
        }


class ReconcileResult(NamedTuple):
    """Rewritten document plus everything reported along the way"""
    document: Any
    removed: List[str]
    reports: List[OperatorReport]
    issues: List[ReconcileError]

    def issues_for(self, operator: str) -> List[ReconcileError]:
        return [issue for issue in self.issues if issue.operator == operator]

    def report_for(self, operator: str) -> Optional[OperatorReport]:
        for report in self.reports:
            if report.operator == operator:
                return report
        return None


class ParsedImageSet(NamedTuple):
    """Result of parsing an ImageSetConfiguration"""
    catalog_ref: str
    catalog_name: str
    catalog_version: str
    selections: List[Selection]
    document: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            'catalog': self.catalog_name,
            'catalogRef': self.catalog_ref,
            'version': self.catalog_version,
            'packages': [
                {
                    'name': selection.operator,
                    'channel': selection.channel,
                    'version': selection.version,
                    'defaultChannel': selection.default_channel
                }
                for selection in self.selections
            ]
        }


class VersionInfo(NamedTuple):
    """Configured version of an operator against the catalog's latest"""
    name: str
    channel: str
    current_version: Optional[str]
    latest_version: Optional[str] = None
    has_update: bool = False
    default_channel: Optional[str] = None
    default_channel_version: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'channel': self.channel,
            'currentVersion': self.current_version,
            'latestVersion': self.latest_version,
            'hasUpdate': self.has_update,
            'defaultChannel': self.default_channel,
            'defaultChannelVersion': self.default_channel_version,
            'error': self.error
        }
