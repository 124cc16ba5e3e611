"""
ImageSet Serializer

Round-trip YAML I/O for ImageSetConfiguration documents. Documents are loaded
with ruamel.yaml so that comments and key order survive a rewrite.
"""

import logging
from io import StringIO
from pathlib import Path
from typing import Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from ..core.constants import ErrorMessages
from ..core.exceptions import MalformedConfigError

logger = logging.getLogger(__name__)


def _yaml_processor() -> YAML:
    yaml_processor = YAML()
    yaml_processor.preserve_quotes = True
    yaml_processor.width = 4096  # Prevent line wrapping
    yaml_processor.indent(mapping=2, sequence=4, offset=2)
    return yaml_processor


def load_document(text: str) -> Any:
    """
    Load an ImageSetConfiguration from YAML text

    Raises:
        MalformedConfigError: If the text is not valid YAML
    """
    try:
        return _yaml_processor().load(text)
    except YAMLError as e:
        raise MalformedConfigError(str(ErrorMessages.ImageSetError.INVALID_YAML).format(error=e))


def dump_document(document: Any) -> str:
    """Render a document to YAML text"""
    stream = StringIO()
    _yaml_processor().dump(document, stream)
    return stream.getvalue()


def scalar_text(value: Any) -> Optional[str]:
    """
    Text of a loaded scalar as it was written

    Unquoted numbers load as ruamel ScalarFloat/ScalarInt values; str() of
    those is the Python repr ('4.10' becomes '4.1'), so they are rendered back
    through the YAML representer, which keeps the original width.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value

    holder = CommentedMap()
    holder['value'] = value
    return dump_document(holder).split(':', 1)[1].strip()


def read_document(path) -> Any:
    """
    Load an ImageSetConfiguration file

    Raises:
        MalformedConfigError: If the file cannot be read or is not valid YAML
    """
    try:
        text = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        raise MalformedConfigError(f"Cannot read ImageSetConfiguration {path}: {e}")

    logger.debug(f"Loaded ImageSetConfiguration from {path}")
    return load_document(text)


def write_document(document: Any, path) -> Path:
    """Write a document to a YAML file, creating parent directories"""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(dump_document(document), encoding='utf-8')
    logger.info(f"ImageSetConfiguration written to {output}")
    return output
