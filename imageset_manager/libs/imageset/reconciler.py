"""
Config Reconciler

Rewrites an ImageSetConfiguration against freshly built catalog graphs:
version bumps, channel replacement, default-channel handling and removal of
operators that left the catalog. Problems are collected per operator and never
abort the batch.
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from ruamel.yaml.comments import CommentedMap, CommentedSeq

from ..catalog.models import CatalogGraph
from ..catalog.versions import default_latest, is_newer, latest
from ..core.constants import ImageSetConstants
from ..core.exceptions import (
    ChannelNotFoundError, MissingDefaultChannelError, OperatorNotFoundError,
    ReconcileError, VersionNotFoundError
)
from .models import (
    DefaultChannelAction, OperatorAction, OperatorReport, Outcome, ReconcileResult,
    Selection, VersionInfo
)
from .parser import ImageSetParser
from .serializer import dump_document, load_document, scalar_text

logger = logging.getLogger(__name__)

Field = ImageSetConstants.Field


class ImageSetReconciler:
    """Reconciles ImageSetConfiguration documents with catalog data"""

    def __init__(self, parser: ImageSetParser = None):
        self.parser = parser or ImageSetParser()

    def reconcile(self, document: Any, graphs: Mapping[str, Optional[CatalogGraph]],
                  actions: Mapping[str, OperatorAction] = None) -> ReconcileResult:
        """
        Produce an updated copy of a document

        Each package of the first catalog entry ends in one or more outcomes.
        Operators without a graph are removed and reported. A configured
        channel missing from the catalog is replaced only when the action
        names a replacement; otherwise the entry is left alone and a
        ChannelNotFoundError is recorded. After the per-operator pass, every
        defaultChannel marker that duplicates a channel constraint is dropped,
        then packages left without channel constraints are removed.

        Args:
            document: Loaded document or YAML text; never modified
            graphs: Operator name to graph, None or missing meaning absent
            actions: Operator name to requested action (default: OperatorAction())

        Returns:
            ReconcileResult

        Raises:
            MalformedConfigError: If the document is structurally invalid
        """
        source = load_document(document) if isinstance(document, str) else document
        updated = copy.deepcopy(source)
        actions = actions or {}

        # Structural problems are fatal before anything is rewritten
        self.parser.parse(updated)
        packages = updated[Field.MIRROR.value][Field.OPERATORS.value][0][Field.PACKAGES.value]

        removed: List[str] = []
        reports: List[OperatorReport] = []
        issues: List[ReconcileError] = []
        kept = []

        for package in packages:
            name = str(package[Field.NAME.value])
            action = actions.get(name) or OperatorAction()
            graph = graphs.get(name)

            if action.remove or graph is None:
                if graph is None and not action.remove:
                    issues.append(OperatorNotFoundError(name))
                    logger.warning(f"Operator '{name}' not found in catalog; removing it")
                else:
                    logger.info(f"Removing operator '{name}' on request")
                removed.append(name)
                reports.append(OperatorReport(name, [Outcome.REMOVED], []))
                continue

            outcomes = self._reconcile_package(name, package, graph, action, issues)
            if not outcomes:
                outcomes = [Outcome.UNCHANGED]

            reports.append(OperatorReport(
                operator=name,
                outcomes=outcomes,
                channels=_plain_channels(package),
                default_channel=package.get(Field.DEFAULT_CHANNEL.value)
            ))
            kept.append(package)

        packages[:] = kept

        self._enforce_marker_invariant(updated)

        emptied = [package for package in packages if not _channels_of(package)]
        if emptied:
            packages[:] = [package for package in packages if _channels_of(package)]
            for package in emptied:
                name = str(package.get(Field.NAME.value))
                logger.warning(f"Package '{name}' has no channel constraints left; removing it")
                if name not in removed:
                    removed.append(name)

        logger.info(
            f"Reconciled {len(reports)} operators: {len(removed)} removed, {len(issues)} issues"
        )
        return ReconcileResult(document=updated, removed=removed, reports=reports, issues=issues)

    def _reconcile_package(self, name: str, package: dict, graph: CatalogGraph,
                           action: OperatorAction, issues: List[ReconcileError]) -> List[Outcome]:
        outcomes: List[Outcome] = []

        if graph.default_channel and not graph.has_explicit_default:
            issues.append(MissingDefaultChannelError(name, graph.default_channel))

        channels = package.get(Field.CHANNELS.value)
        if not isinstance(channels, list):
            channels = CommentedSeq()
            package[Field.CHANNELS.value] = channels

        first = channels[0] if channels and isinstance(channels[0], dict) else None
        current = scalar_text(first.get(Field.NAME.value)) if first else None

        if current and graph.get_channel(current) is None:
            replacement = action.replace_channel
            if not replacement:
                issues.append(ChannelNotFoundError(name, current, graph.channel_names()))
                return [Outcome.CHANNEL_NOT_FOUND]

            if graph.get_channel(replacement) is None:
                issues.append(ChannelNotFoundError(name, replacement, graph.channel_names()))
                return [Outcome.CHANNEL_NOT_FOUND]

            version = self._requested_or_latest(name, graph, replacement, action.version, issues)
            first[Field.NAME.value] = replacement
            _set_min_version(first, version)
            logger.info(f"{name}: channel '{current}' replaced by '{replacement}' at {version}")
            outcomes.append(Outcome.CHANNEL_REPLACED)
            current = replacement

        elif current and action.update:
            if self._update_version(name, first, graph, current, action.version, issues):
                outcomes.append(Outcome.VERSION_UPDATED)

        if current:
            outcome = self._apply_default_channel(name, package, channels, graph, current,
                                                  action.default_channel)
            if outcome:
                outcomes.append(outcome)

        return outcomes

    @staticmethod
    def _requested_or_latest(name: str, graph: CatalogGraph, channel: str,
                             requested: Optional[str], issues: List[ReconcileError]) -> Optional[str]:
        """The requested version when the channel publishes it, the channel's latest otherwise"""
        if requested:
            if requested in graph.get_channel(channel).versions:
                return requested
            issues.append(VersionNotFoundError(name, channel, requested))
        return latest(graph, channel)

    def _update_version(self, name: str, constraint: dict, graph: CatalogGraph, channel: str,
                        requested: Optional[str], issues: List[ReconcileError]) -> bool:
        configured = scalar_text(constraint.get(Field.MIN_VERSION.value))

        if requested:
            if requested not in graph.get_channel(channel).versions:
                issues.append(VersionNotFoundError(name, channel, requested))
                return False
            target = requested
            if target == configured:
                return False
        else:
            target = latest(graph, channel)
            if not is_newer(target, configured):
                logger.debug(f"{name}: {channel} already at latest ({configured})")
                return False

        _set_min_version(constraint, target)
        logger.info(f"{name}: {channel} updated from {configured} to {target}")
        return True

    @staticmethod
    def _apply_default_channel(name: str, package: dict, channels: list, graph: CatalogGraph,
                               current: str, choice: DefaultChannelAction) -> Optional[Outcome]:
        default_channel = graph.default_channel
        if not default_channel:
            return None

        marker = scalar_text(package.get(Field.DEFAULT_CHANNEL.value))
        constrained = [scalar_text(c.get(Field.NAME.value)) for c in channels if isinstance(c, dict)]

        # A constrained default needs no marker; any marker left is stale or redundant
        if default_channel == current or default_channel in constrained:
            if marker is None:
                return None
            del package[Field.DEFAULT_CHANNEL.value]
            logger.info(f"{name}: dropped defaultChannel '{marker}'; "
                        f"default channel '{default_channel}' is already constrained")
            return Outcome.DEFAULT_CHANNEL_MARKER_REMOVED

        version = default_latest(graph)

        if choice == DefaultChannelAction.ADD:
            channels.append(_constraint(default_channel, version))
            package.pop(Field.DEFAULT_CHANNEL.value, None)
            logger.info(f"{name}: added default channel '{default_channel}' at {version}")
            return Outcome.DEFAULT_CHANNEL_ADDED

        if choice == DefaultChannelAction.REPLACE:
            channels[:] = [_constraint(default_channel, version)]
            package.pop(Field.DEFAULT_CHANNEL.value, None)
            logger.info(f"{name}: channels replaced by default channel '{default_channel}' at {version}")
            return Outcome.DEFAULT_CHANNEL_REPLACED

        if marker == default_channel:
            return None
        if marker is not None:
            logger.info(f"{name}: defaultChannel '{marker}' is stale; catalog default is '{default_channel}'")
        package[Field.DEFAULT_CHANNEL.value] = default_channel
        logger.debug(f"{name}: referencing default channel '{default_channel}'")
        return Outcome.DEFAULT_CHANNEL_REFERENCED

    @staticmethod
    def _enforce_marker_invariant(document: dict) -> None:
        """Drop defaultChannel markers naming a channel that is already constrained"""
        operators = document.get(Field.MIRROR.value, {}).get(Field.OPERATORS.value) or []
        for operator in operators:
            if not isinstance(operator, dict):
                continue
            for package in operator.get(Field.PACKAGES.value) or []:
                if not isinstance(package, dict):
                    continue
                marker = scalar_text(package.get(Field.DEFAULT_CHANNEL.value))
                if marker is None:
                    continue
                names = [scalar_text(c.get(Field.NAME.value)) for c in _channels_of(package)]
                if marker in names:
                    del package[Field.DEFAULT_CHANNEL.value]
                    logger.debug(f"Dropped redundant defaultChannel '{marker}' "
                                 f"from package '{package.get(Field.NAME.value)}'")

    def compare_versions(self, selections: List[Selection],
                         graphs: Mapping[str, Optional[CatalogGraph]]) -> List[VersionInfo]:
        """
        Compare configured versions with the catalog's latest versions

        Args:
            selections: Parsed selections
            graphs: Operator name to graph

        Returns:
            One VersionInfo per selection, in selection order
        """
        results = []
        for selection in selections:
            graph = graphs.get(selection.operator)
            if graph is None:
                results.append(VersionInfo(
                    name=selection.operator,
                    channel=selection.channel,
                    current_version=selection.version,
                    error=str(OperatorNotFoundError(selection.operator))
                ))
                continue

            default_channel = graph.default_channel
            default_version = default_latest(graph)

            if graph.get_channel(selection.channel) is None:
                results.append(VersionInfo(
                    name=selection.operator,
                    channel=selection.channel,
                    current_version=selection.version,
                    default_channel=default_channel,
                    default_channel_version=default_version,
                    error=str(ChannelNotFoundError(
                        selection.operator, selection.channel, graph.channel_names()
                    ))
                ))
                continue

            latest_version = latest(graph, selection.channel)
            results.append(VersionInfo(
                name=selection.operator,
                channel=selection.channel,
                current_version=selection.version,
                latest_version=latest_version,
                has_update=is_newer(latest_version, selection.version),
                default_channel=default_channel,
                default_channel_version=default_version
            ))

        return results

    @staticmethod
    def render(result: ReconcileResult) -> str:
        """Render a reconciled document to YAML text"""
        return dump_document(result.document)


def _channels_of(package: dict) -> list:
    channels = package.get(Field.CHANNELS.value)
    return [c for c in channels if isinstance(c, dict)] if isinstance(channels, list) else []


def _constraint(channel: str, version: Optional[str]) -> CommentedMap:
    constraint = CommentedMap()
    constraint[Field.NAME.value] = channel
    if version:
        constraint[Field.MIN_VERSION.value] = version
    return constraint


def _set_min_version(constraint: dict, version: Optional[str]) -> None:
    """Only minimum versions are expressed; a legacy maxVersion goes away"""
    if version:
        constraint[Field.MIN_VERSION.value] = version
    else:
        constraint.pop(Field.MIN_VERSION.value, None)
    constraint.pop(Field.MAX_VERSION.value, None)


def _plain_channels(package: dict) -> List[Dict[str, Any]]:
    return [
        {key: scalar_text(value) for key, value in channel.items()}
        for channel in _channels_of(package)
    ]
