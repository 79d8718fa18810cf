"""
Error taxonomy for the streaming converter.

Unrecognised elements are never errors; only a failing input source or
unparseable XML abort a conversion.
"""

import xml.etree.ElementTree as ET
from typing import Optional, Tuple


class HealthCsvError(Exception):
    """Base class for conversion failures."""


class UpstreamStreamError(HealthCsvError):
    """The input byte source itself failed (I/O error, dropped connection...)."""

    def __init__(self, original: BaseException):
        super().__init__(str(original) or type(original).__name__)
        self.original = original


class MalformedXmlError(HealthCsvError):
    """The tokenizer could not parse the input as XML."""

    def __init__(self, parse_error: ET.ParseError):
        super().__init__(f"Invalid health export XML: {parse_error}")
        self.parse_error = parse_error

    @property
    def position(self) -> Optional[Tuple[int, int]]:
        """(line, column) of the parse failure, when expat reported one."""
        return getattr(self.parse_error, "position", None)


class SinkWriteError(HealthCsvError):
    """A per-type CSV file could not be written."""

    def __init__(self, path, original: OSError):
        super().__init__(f"Cannot write {path}: {original}")
        self.path = path
        self.original = original
