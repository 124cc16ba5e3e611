"""
Multi-Document Decoder

Reads a directory of File-Based Catalog files (JSON and YAML) into a flat,
ordered list of untyped catalog objects. Catalog exports are not guaranteed to
be one object per file or valid JSON Lines, so JSON files go through three
strategies: whole-file parse, concatenated-stream scanning, and line-by-line
parsing.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, NamedTuple, Optional

import yaml

from ..core.constants import BaseStrEnum, FileConstants
from ..core.exceptions import UnparsableFileError

logger = logging.getLogger(__name__)

OPENERS = '{['
CLOSERS = '}]'


class ScanState(BaseStrEnum):
    """States of the JSON stream scanner"""
    OUTSIDE = "outside"
    IN_STRING = "in_string"
    AFTER_ESCAPE = "after_escape"


class SkippedSpan(NamedTuple):
    """A fragment of a stream that could not be decoded"""
    offset: int
    reason: str
    text: str


class ScanResult(NamedTuple):
    """Values recovered from a stream plus the fragments dropped on the way"""
    values: List[Any]
    skipped: List[SkippedSpan]


class SkippedFile(NamedTuple):
    """A decode problem recorded against a file"""
    path: str
    reason: str
    fatal: bool


class DecodeResult(NamedTuple):
    """Objects decoded from a directory and the problems absorbed on the way"""
    objects: List[Any]
    skipped: List[SkippedFile]
    files_read: int


class JSONStreamScanner:
    """
    Splits text holding concatenated JSON values into independently parsed values.

    The scanner walks the text one character at a time. Outside any value it
    looks for an opening brace or bracket; inside a value it tracks nesting
    depth, with quotes and backslash escapes handled by the IN_STRING and
    AFTER_ESCAPE states so that brackets inside strings never change the depth.
    When depth returns to zero the span is handed to json.loads. An
    unterminated span or one that fails to parse is recorded as skipped, and
    scanning resumes at the next opener after the failed span's start.
    """

    def scan(self, text: str) -> ScanResult:
        values = []
        skipped = []
        position = 0
        length = len(text)

        while position < length:
            start = self._find_opener(text, position, skipped)
            if start is None:
                break

            end = self._find_value_end(text, start)
            if end is None:
                skipped.append(SkippedSpan(start, "unterminated value", text[start:start + 80]))
                position = start + 1
                continue

            candidate = text[start:end + 1]
            try:
                values.append(json.loads(candidate))
                position = end + 1
            except json.JSONDecodeError as e:
                skipped.append(SkippedSpan(start, f"invalid JSON: {e.msg}", candidate[:80]))
                position = start + 1

        return ScanResult(values, skipped)

    def _find_opener(self, text: str, position: int, skipped: List[SkippedSpan]) -> Optional[int]:
        """
        Advance to the next opener outside quoted text, recording stray text between values

        Quotes in stray text are tracked with the same states as inside a
        value, so a brace within a quoted fragment never starts a candidate.
        """
        state = ScanState.OUTSIDE
        stray_start = None
        index = position

        while index < len(text):
            char = text[index]
            if state == ScanState.OUTSIDE and char in OPENERS:
                break
            if not char.isspace() and stray_start is None:
                stray_start = index

            if state == ScanState.AFTER_ESCAPE:
                state = ScanState.IN_STRING
            elif state == ScanState.IN_STRING:
                if char == '\\':
                    state = ScanState.AFTER_ESCAPE
                elif char == '"':
                    state = ScanState.OUTSIDE
            elif char == '"':
                state = ScanState.IN_STRING
            index += 1

        if stray_start is not None:
            fragment = text[stray_start:index].strip()
            skipped.append(SkippedSpan(stray_start, "unexpected text between values", fragment[:80]))

        return index if index < len(text) else None

    def _find_value_end(self, text: str, start: int) -> Optional[int]:
        """Index of the closer that brings depth back to zero, or None"""
        state = ScanState.OUTSIDE
        depth = 0

        for index in range(start, len(text)):
            char = text[index]

            if state == ScanState.AFTER_ESCAPE:
                state = ScanState.IN_STRING
            elif state == ScanState.IN_STRING:
                if char == '\\':
                    state = ScanState.AFTER_ESCAPE
                elif char == '"':
                    state = ScanState.OUTSIDE
            elif char == '"':
                state = ScanState.IN_STRING
            elif char in OPENERS:
                depth += 1
            elif char in CLOSERS:
                depth -= 1
                if depth == 0:
                    return index
                if depth < 0:
                    return None

        return None


class MultiDocumentDecoder:
    """Decodes FBC files into a flat sequence of catalog objects"""

    def __init__(self):
        """Initialize decoder"""
        self.scanner = JSONStreamScanner()

    def decode_directory(self, directory) -> DecodeResult:
        """
        Decode every catalog file below a directory

        Files are visited in sorted path order. A file that no strategy can
        decode is logged and recorded in ``skipped``; it never aborts the walk.

        Args:
            directory: Directory holding catalog files

        Returns:
            DecodeResult with the ordered objects and skip records
        """
        root = Path(directory)
        extensions = FileConstants.FileExtension.get_catalog_extensions()
        objects = []
        skipped = []
        files_read = 0

        paths = sorted(p for p in root.rglob('*') if p.is_file() and p.suffix.lower() in extensions)
        logger.debug(f"Decoding {len(paths)} catalog files under {root}")

        for path in paths:
            files_read += 1
            try:
                file_objects, file_skips = self._decode_file_with_skips(path)
            except UnparsableFileError as e:
                logger.warning(f"Skipping catalog file: {e}")
                skipped.append(SkippedFile(str(path), e.reason, True))
                continue

            objects.extend(file_objects)
            for span in file_skips:
                logger.debug(f"{path}: dropped fragment at offset {span.offset} ({span.reason})")
                skipped.append(SkippedFile(str(path), f"offset {span.offset}: {span.reason}", False))

        logger.debug(f"Decoded {len(objects)} objects from {files_read} files under {root}")
        return DecodeResult(objects, skipped, files_read)

    def decode_file(self, path) -> List[Any]:
        """
        Decode a single catalog file

        Raises:
            UnparsableFileError: If no strategy recovers anything from the file
        """
        objects, _ = self._decode_file_with_skips(Path(path))
        return objects

    def decode_text(self, text: str, source: str = "<text>", as_yaml: bool = False) -> List[Any]:
        """
        Decode catalog content held in memory

        Raises:
            UnparsableFileError: If no strategy recovers anything from the text
        """
        if as_yaml:
            return self._decode_yaml(text, source)
        objects, _ = self._decode_json(text, source)
        return objects

    def _decode_file_with_skips(self, path: Path):
        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise UnparsableFileError(str(path), f"cannot read file: {e}")

        if path.suffix.lower() in FileConstants.FileExtension.get_yaml_extensions():
            return self._decode_yaml(text, str(path)), []
        return self._decode_json(text, str(path))

    def _decode_yaml(self, text: str, source: str) -> List[Any]:
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as e:
            raise UnparsableFileError(source, f"invalid YAML: {e}")

        objects = []
        for document in documents:
            if document is not None:
                self._append_flattened(objects, document)
        return objects

    def _decode_json(self, text: str, source: str):
        if not text.strip():
            return [], []

        # Strategy 1: the whole file is one JSON value
        try:
            objects = []
            self._append_flattened(objects, json.loads(text))
            return objects, []
        except json.JSONDecodeError:
            logger.debug(f"{source}: not a single JSON value, scanning as a concatenated stream")

        # Strategy 2: concatenated JSON values
        result = self.scanner.scan(text)
        if result.values:
            objects = []
            for value in result.values:
                self._append_flattened(objects, value)
            return objects, result.skipped

        # Strategy 3: one JSON value per line
        objects = self._parse_lines(text, source)
        if objects:
            return objects, []

        raise UnparsableFileError(source, "no JSON values could be recovered")

    def _parse_lines(self, text: str, source: str) -> List[Any]:
        objects = []
        for line_num, line in enumerate(text.splitlines(), 1):
            line = line.strip()
            if not line:
                continue
            try:
                self._append_flattened(objects, json.loads(line))
            except json.JSONDecodeError as e:
                logger.debug(f"{source}: failed to parse JSON on line {line_num}: {e}")
        return objects

    @staticmethod
    def _append_flattened(objects: List[Any], value: Any) -> None:
        """Top-level arrays contribute their items; anything else is one item"""
        if isinstance(value, list):
            objects.extend(value)
        else:
            objects.append(value)
