"""
Apple Health Streaming Module

Incremental export.xml parsing with bounded memory.

Key Components:
- classifier.py: Record element detection and type key derivation
- aggregator.py: Per-type schema discovery, batching and CSV flushing
- sources.py: File, URL and iterable input adapters
- memory_profiler.py: Memory usage profiling utilities
"""

from .aggregator import HealthRecordAggregator, convert_file
from .classifier import classify_record, record_type_from_identifier
from .sources import iter_chunks, open_file_stream, open_url_stream

__all__ = [
    "HealthRecordAggregator",
    "convert_file",
    "classify_record",
    "record_type_from_identifier",
    "iter_chunks",
    "open_file_stream",
    "open_url_stream",
]
