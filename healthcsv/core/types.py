"""
Type definitions for the streaming converter.

A record type's state is created lazily on its first Record element and is
owned exclusively by the aggregator that discovered it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ..utils.csv_format import format_header, format_rows
from .errors import SinkWriteError

# One record: attribute values aligned with the schema, None when absent
Record = Tuple[Optional[str], ...]


@dataclass
class CsvSink:
    """
    Append-only CSV output for one record type.

    The header is written exactly once, when the sink is created; every
    later write appends data lines only.
    """

    path: Path
    header_written: bool = False

    def write_header(self, columns: Sequence[str]) -> None:
        if self.header_written:
            return
        # Truncates output left over from an earlier run
        try:
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(format_header(columns))
        except OSError as e:
            raise SinkWriteError(self.path, e) from e
        self.header_written = True

    def append(self, rows: Iterable[Record]) -> None:
        text = format_rows(rows)
        if not text:
            return
        try:
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise SinkWriteError(self.path, e) from e


@dataclass
class RecordTypeState:
    """
    Per-type conversion state.

    Attributes:
        record_type: Canonical key (e.g. "HeartRate")
        schema: Column names, fixed by the first record of this type
        sink: CSV file receiving flushed batches
        pending: Records closed since the last flush (PendingBatch)
        text: Accumulated CSV text, populated by materialize_text()
        total_records: Records closed so far, flushed or not
        persisted: Leading pending records already written to the sink
    """

    record_type: str
    schema: Tuple[str, ...]
    sink: CsvSink
    pending: List[Record] = field(default_factory=list)
    text: Optional[str] = None
    total_records: int = 0
    persisted: int = 0

    def project(self, attributes: dict) -> Record:
        """Restrict attributes to the schema; extra ones are dropped."""
        return tuple(attributes.get(column) for column in self.schema)
