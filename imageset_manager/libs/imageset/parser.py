"""
Config Parser

Reads ImageSetConfiguration documents back into selections.
"""

import logging
from typing import Any, List, Optional

from ..core.constants import ErrorMessages, ImageSetConstants
from ..core.exceptions import MalformedConfigError
from ..core.utils import split_catalog_reference
from .models import ParsedImageSet, Selection
from .serializer import load_document, scalar_text

logger = logging.getLogger(__name__)

Field = ImageSetConstants.Field


class ImageSetParser:
    """Parses ImageSetConfiguration documents"""

    def parse(self, source: Any) -> ParsedImageSet:
        """
        Parse a document or its YAML text

        Only the first mirror.operators entry is read. The first channel
        constraint of each package is its active selection, and a
        defaultChannel marker is carried onto the selection.

        Args:
            source: YAML text or an already loaded document

        Returns:
            ParsedImageSet with the catalog reference and selections

        Raises:
            MalformedConfigError: If the document is not a usable ImageSetConfiguration
        """
        document = load_document(source) if isinstance(source, str) else source

        operator = self.first_operator_entry(document)
        packages = self.package_entries(operator)

        selections = [self._selection_from_package(index, package)
                      for index, package in enumerate(packages, 1)]

        catalog_ref = operator.get(Field.CATALOG.value) or ""
        catalog_name, catalog_version = split_catalog_reference(str(catalog_ref))

        logger.debug(f"Parsed {len(selections)} selections from catalog {catalog_ref or '<none>'}")
        return ParsedImageSet(
            catalog_ref=str(catalog_ref),
            catalog_name=catalog_name,
            catalog_version=catalog_version,
            selections=selections,
            document=document
        )

    @staticmethod
    def first_operator_entry(document: Any) -> dict:
        """
        Validate the top-level shape and return the first mirror.operators entry

        Raises:
            MalformedConfigError: On a wrong kind or missing operators
        """
        if not isinstance(document, dict):
            raise MalformedConfigError(str(ErrorMessages.ImageSetError.NOT_A_MAPPING))

        kind = document.get(Field.KIND.value)
        if kind != ImageSetConstants.KIND:
            raise MalformedConfigError(str(ErrorMessages.ImageSetError.WRONG_KIND).format(
                expected=ImageSetConstants.KIND, found=kind
            ))

        api_version = document.get(Field.API_VERSION.value)
        if api_version not in ImageSetConstants.get_supported_api_versions():
            logger.warning(f"Unrecognized apiVersion '{api_version}', parsing anyway")

        mirror = document.get(Field.MIRROR.value)
        operators = mirror.get(Field.OPERATORS.value) if isinstance(mirror, dict) else None
        if not isinstance(operators, list) or not operators:
            raise MalformedConfigError(str(ErrorMessages.ImageSetError.NO_OPERATORS))

        operator = operators[0]
        if not isinstance(operator, dict):
            raise MalformedConfigError(str(ErrorMessages.ImageSetError.NO_OPERATORS))

        if len(operators) > 1:
            logger.warning(f"Document lists {len(operators)} catalogs; only the first is used")

        return operator

    @staticmethod
    def package_entries(operator: dict) -> List[dict]:
        """
        Package entries of an operators entry

        Raises:
            MalformedConfigError: If there are no package entries
        """
        packages = operator.get(Field.PACKAGES.value)
        if not isinstance(packages, list) or not packages:
            raise MalformedConfigError(str(ErrorMessages.ImageSetError.NO_PACKAGES))
        return packages

    @staticmethod
    def _selection_from_package(index: int, package: Any) -> Selection:
        if not isinstance(package, dict) or not package.get(Field.NAME.value):
            raise MalformedConfigError(
                str(ErrorMessages.ImageSetError.PACKAGE_WITHOUT_NAME).format(index=index)
            )

        name = str(package[Field.NAME.value])
        default_channel = _optional(package.get(Field.DEFAULT_CHANNEL.value))

        channels = package.get(Field.CHANNELS.value)
        first = channels[0] if isinstance(channels, list) and channels else None

        if isinstance(first, dict):
            channel = _optional(first.get(Field.NAME.value)) or ""
            version = _optional(first.get(Field.MIN_VERSION.value))
        else:
            # No channel constraint: the package follows its default channel
            logger.debug(f"Package '{name}' has no channel constraints")
            channel = default_channel or ""
            version = None

        return Selection(
            operator=name,
            channel=channel,
            version=version,
            default_channel=default_channel
        )


def _optional(value: Any) -> Optional[str]:
    text = scalar_text(value)
    return text or None
