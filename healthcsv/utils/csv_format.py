"""
CSV text encoding helpers.

Values containing commas, quotes or line breaks are quoted; None renders as
an empty field. Lines end with a bare newline.
"""

import csv
import io
from typing import Iterable, Optional, Sequence


def format_header(columns: Sequence[str]) -> str:
    """Return the header line for the given column names."""
    return format_rows([columns])


def format_rows(rows: Iterable[Sequence[Optional[str]]]) -> str:
    """Return CSV lines (no header) for the given rows."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()
