"""
Memory Profiling Utilities for the Streaming Aggregator

Used by ``healthcsv --profile-memory`` to show that peak memory depends on
the batch size rather than on the size of the export.
"""

import gc
import logging
import tracemalloc
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)


def format_bytes(bytes_value: float) -> str:
    """
    Format bytes as human-readable string.

    Example:
        >>> format_bytes(1536)
        '1.50 KB'
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.2f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.2f} PB"


class MemoryProfiler:
    """
    Memory profiler for tracking memory usage.

    Uses tracemalloc for accurate Python memory tracking.
    """

    def __init__(self):
        self.is_tracing = False
        self.snapshots: List[Dict] = []

    def start(self):
        if not self.is_tracing:
            tracemalloc.start()
            self.is_tracing = True
            self.snapshots = []

    def stop(self) -> Tuple[int, int]:
        """
        Stop memory tracing and return final statistics.

        Returns:
            Tuple of (current_bytes, peak_bytes)
        """
        if self.is_tracing:
            current, peak = tracemalloc.get_traced_memory()
            tracemalloc.stop()
            self.is_tracing = False
            return (current, peak)
        return (0, 0)

    def snapshot(self, label: str = ""):
        if self.is_tracing:
            current, peak = tracemalloc.get_traced_memory()
            self.snapshots.append({
                'label': label,
                'current': current,
                'peak': peak
            })

    def log_snapshots(self):
        for i, snap in enumerate(self.snapshots):
            label = snap['label'] or f"Snapshot {i+1}"
            logger.info(
                f"[MEMORY] {label}: current {format_bytes(snap['current'])}, "
                f"peak {format_bytes(snap['peak'])}"
            )


@contextmanager
def profile_memory(label: str = "Operation") -> Iterator[MemoryProfiler]:
    """
    Context manager for profiling memory usage of a code block.

    Example:
        ```python
        with profile_memory("Conversion"):
            convert_file("export.xml")
        ```
    """
    profiler = MemoryProfiler()
    profiler.start()

    # Force garbage collection before measurement
    gc.collect()

    try:
        yield profiler
    finally:
        current, peak = profiler.stop()
        profiler.log_snapshots()
        logger.info(f"[MEMORY] {label}: current {format_bytes(current)}, peak {format_bytes(peak)}")
