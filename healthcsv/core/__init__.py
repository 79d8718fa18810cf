"""
Core definitions shared by the streaming converter.

- constants.py: tag/attribute names, identifier pattern and tuning defaults
- types.py: per-record-type state and the CSV sink
- errors.py: failure taxonomy raised by the aggregator
"""

from .errors import HealthCsvError, MalformedXmlError, SinkWriteError, UpstreamStreamError
from .types import CsvSink, Record, RecordTypeState

__all__ = [
    "HealthCsvError",
    "MalformedXmlError",
    "SinkWriteError",
    "UpstreamStreamError",
    "CsvSink",
    "Record",
    "RecordTypeState",
]
