"""
Config Synthesizer

Builds ImageSetConfiguration documents from operator selections.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from ruamel.yaml.comments import CommentedMap, CommentedSeq

from ..core.constants import ImageSetConstants
from ..core.utils import sanitize_filename
from .models import Selection
from .serializer import dump_document

logger = logging.getLogger(__name__)

Field = ImageSetConstants.Field


class ImageSetSynthesizer:
    """Generates ImageSetConfiguration documents"""

    def __init__(self, api_version: str = ImageSetConstants.DEFAULT_API_VERSION):
        """
        Initialize synthesizer

        Args:
            api_version: apiVersion written into generated documents
        """
        self.api_version = api_version

    def synthesize(self, catalog_ref: str, selections: Iterable[Selection]) -> CommentedMap:
        """
        Build a document mirroring the selected operators from one catalog

        Package entries follow selection order. Each entry carries exactly one
        channel constraint; the defaultChannel marker is written only when the
        selection's default channel differs from its channel.

        Args:
            catalog_ref: Catalog image reference
            selections: Operators to mirror

        Returns:
            CommentedMap: The ImageSetConfiguration document
        """
        packages = CommentedSeq()
        for selection in selections:
            packages.append(self.package_entry(selection))

        operator = CommentedMap()
        operator[Field.CATALOG.value] = catalog_ref
        operator[Field.PACKAGES.value] = packages

        mirror = CommentedMap()
        mirror[Field.OPERATORS.value] = CommentedSeq([operator])

        document = CommentedMap()
        document[Field.KIND.value] = ImageSetConstants.KIND
        document[Field.API_VERSION.value] = self.api_version
        document[Field.MIRROR.value] = mirror

        logger.debug(f"Synthesized ImageSetConfiguration with {len(packages)} packages for {catalog_ref}")
        return document

    @staticmethod
    def package_entry(selection: Selection) -> CommentedMap:
        """Package entry for one selection"""
        channel = CommentedMap()
        channel[Field.NAME.value] = selection.channel
        if selection.version:
            channel[Field.MIN_VERSION.value] = selection.version

        entry = CommentedMap()
        entry[Field.NAME.value] = selection.operator
        entry[Field.CHANNELS.value] = CommentedSeq([channel])

        if selection.default_channel and selection.default_channel != selection.channel:
            entry[Field.DEFAULT_CHANNEL.value] = selection.default_channel

        return entry

    def render(self, document) -> str:
        """Render a document to YAML text"""
        return dump_document(document)

    @staticmethod
    def generate_filename(catalog: Optional[str] = None, version: Optional[str] = None,
                          updated: bool = False) -> str:
        """
        Build an output filename for a generated configuration

        Examples:
            imageset-config.yaml
            imageset-config-redhat-operator-index-v4.18.yaml
            imageset-config-redhat-operator-index-v4.18-updated.yaml
        """
        stem, extension = ImageSetConstants.DEFAULT_FILENAME.rsplit('.', 1)
        parts = [stem] + [part for part in (catalog, version) if part]
        if updated:
            parts.append(ImageSetConstants.UPDATED_SUFFIX)
        return sanitize_filename('-'.join(parts)) + f".{extension}"

    @staticmethod
    def updated_filename(source) -> str:
        """Output filename for a rewritten copy of ``source``: <stem>-updated.yaml"""
        stem = Path(source).stem if source else ImageSetConstants.DEFAULT_FILENAME.rsplit('.', 1)[0]
        return sanitize_filename(f"{stem}-{ImageSetConstants.UPDATED_SUFFIX}") + ".yaml"
