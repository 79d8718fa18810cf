"""
Apple Health Streaming Aggregator - Core Implementation

Converts an export.xml into one CSV file per record type while the document
is still arriving.

Memory Usage: O(batch_size x record types), independent of the export size

Architecture:
1. ET.XMLPullParser - incremental tokenizer fed one chunk at a time
2. Lazy per-type state - schema, pending batch and sink created on first sight
3. Batched flushing - every batch_size records of a type are appended to its CSV
4. Immediate memory release - elem.clear() once a Record (or root child) closes
"""

import asyncio
import logging
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..config import ConverterConfig
from ..core.constants import (
    CSV_SUFFIX,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    PROGRESS_EVERY_RECORDS,
    PROGRESS_INTERVAL_SECONDS,
    RECORD_TAG,
    TYPE_ATTRIBUTE,
)
from ..core.errors import MalformedXmlError, UpstreamStreamError
from ..core.types import CsvSink, Record, RecordTypeState
from ..utils.csv_format import format_header, format_rows
from .classifier import classify_record
from .sources import check_source, close_source, is_url, iter_chunks, open_file_stream, open_url_stream

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class HealthRecordAggregator:
    """
    Streaming parse-and-aggregate engine for Apple Health exports.

    Each record type gets a schema fixed by its first record, an in-memory
    pending batch, and a CSV sink in ``output_dir`` named ``<RecordType>.csv``.

    Known limitation: ``materialize_text()`` only sees records still held in
    memory. Records already flushed by a forced batch write are on disk but
    no longer part of ``text_for()``.

    Example:
        ```python
        aggregator = HealthRecordAggregator("out", batch_size=500)
        await aggregator.consume(open_file_stream("export.xml"))
        aggregator.materialize_text()
        print(aggregator.text_for("HeartRate"))
        ```
    """

    def __init__(
        self,
        output_dir: Union[str, Path, None] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_progress: Optional[ProgressCallback] = None,
        progress_every: int = PROGRESS_EVERY_RECORDS,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if progress_every < 1:
            raise ValueError(f"progress_every must be positive, got {progress_every}")
        if progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {progress_interval}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self.output_dir = Path(output_dir) if output_dir else Path.cwd()
        self.batch_size = batch_size
        self.on_progress = on_progress
        self.progress_every = progress_every
        self.progress_interval = progress_interval
        self.chunk_size = chunk_size

        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._states: Dict[str, RecordTypeState] = {}
        self._current: Optional[Tuple[RecordTypeState, Record]] = None
        self._processed = 0
        self._last_progress = time.monotonic()

        # Tokenizer bookkeeping, reset per consume()
        self._root: Optional[ET.Element] = None
        self._depth = 0

    @classmethod
    def from_config(
        cls,
        config: ConverterConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "HealthRecordAggregator":
        return cls(
            output_dir=config.output_dir,
            batch_size=config.batch_size,
            on_progress=on_progress,
            progress_every=config.progress_every,
            progress_interval=config.progress_interval,
            chunk_size=config.chunk_size,
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def consume(self, stream: Any) -> None:
        """
        Parse an export incrementally and write per-type CSV files.

        Args:
            stream: Async iterable of chunks, sync iterable of chunks, or a
                file object (see ``sources.iter_chunks``)

        Raises:
            UpstreamStreamError: The input source failed
            MalformedXmlError: The input is not well-formed XML
            SinkWriteError: A CSV file could not be written
            TypeError: The stream is not a supported input

        The upstream source is closed on any failure. Data flushed before a
        failure stays on disk.
        """
        check_source(stream)

        parser = ET.XMLPullParser(events=("start", "end"))
        chunks = iter_chunks(stream, self.chunk_size)
        self._current = None
        self._root = None
        self._depth = 0

        try:
            while True:
                try:
                    chunk = await chunks.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as e:
                    logger.error(f"Input stream failed: {e}")
                    raise UpstreamStreamError(e) from e

                self._feed(parser, chunk)

            try:
                parser.close()
                self._drain(parser)
            except ET.ParseError as e:
                raise MalformedXmlError(e) from e

            self._flush_remaining()

        except Exception:
            await close_source(chunks)
            await close_source(stream)
            raise

        logger.info(f"Finished processing {self._processed} records")

    def _feed(self, parser: ET.XMLPullParser, chunk) -> None:
        # Parse errors are queued by feed() and raised from read_events(),
        # after the events that precede them
        try:
            parser.feed(chunk)
            self._drain(parser)
        except ET.ParseError as e:
            logger.error(f"XML Parse Error: {e}")
            raise MalformedXmlError(e) from e

    def _drain(self, parser: ET.XMLPullParser) -> None:
        for event, elem in parser.read_events():
            if event == "start":
                if self._root is None:
                    self._root = elem
                self._depth += 1
                self._on_open(elem.tag, elem.attrib)
            else:
                self._depth -= 1
                self._on_close(elem.tag)

                # Drop finished subtrees so the partial tree stays small
                if elem.tag == RECORD_TAG:
                    elem.clear()
                if self._depth == 1 and self._root is not None:
                    self._root.clear()

    def _on_open(self, tag: str, attributes: Mapping[str, str]) -> None:
        record_type = classify_record(tag, attributes)
        if record_type is None:
            return

        state = self._states.get(record_type)
        if state is None:
            state = self._register(record_type, attributes)

        self._current = (state, state.project(attributes))

    def _on_close(self, tag: str) -> None:
        if tag != RECORD_TAG or self._current is None:
            return

        state, record = self._current
        self._current = None

        state.pending.append(record)
        state.total_records += 1
        if len(state.pending) >= self.batch_size:
            self._flush_batch(state)

        self._processed += 1
        self._report_progress()

    def _register(self, record_type: str, attributes: Mapping[str, str]) -> RecordTypeState:
        schema = tuple(name for name in attributes if name != TYPE_ATTRIBUTE)
        sink = CsvSink(self.output_dir / f"{record_type}{CSV_SUFFIX}")
        sink.write_header(schema)

        state = RecordTypeState(record_type=record_type, schema=schema, sink=sink)
        self._states[record_type] = state
        logger.debug(f"New record type {record_type}: {len(schema)} columns -> {sink.path}")
        return state

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def _flush_batch(self, state: RecordTypeState) -> None:
        batch = state.pending[:self.batch_size]
        del state.pending[:self.batch_size]

        # Leading records may already be on disk from a previous final flush
        skip = min(state.persisted, len(batch))
        state.persisted -= skip
        state.sink.append(batch[skip:])
        logger.debug(f"Flushed {len(batch)} {state.record_type} records")

    def _flush_remaining(self) -> None:
        for state in self._states.values():
            unwritten = state.pending[state.persisted:]
            if unwritten:
                state.sink.append(unwritten)
            # Kept in memory for materialize_text()
            state.persisted = len(state.pending)

    def _report_progress(self) -> None:
        now = time.monotonic()
        if (
            self._processed % self.progress_every == 0
            or now - self._last_progress > self.progress_interval
        ):
            self._last_progress = now
            if self.on_progress is not None:
                self.on_progress(self._processed)
            else:
                logger.info(f"Processed {self._processed} records...")

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def materialize_text(self) -> "HealthRecordAggregator":
        """
        Build header + data CSV text for every known type.

        Only records still held in memory are included; see the class
        docstring.
        """
        logger.info("Writing CSV files...")
        for record_type, state in self._states.items():
            logger.debug(f"Writing {record_type}.csv ({len(state.pending)} records)")
            state.text = format_header(state.schema) + format_rows(state.pending)
        return self

    def text_for(self, record_type: str) -> Optional[str]:
        """CSV text (header line included) for a type, or None if unknown or not materialized."""
        state = self._states.get(record_type)
        if state is None:
            return None
        return state.text

    def known_types(self) -> List[str]:
        """Record types in discovery order."""
        return list(self._states)

    def record_counts(self) -> Dict[str, int]:
        """Records seen per type, flushed or not."""
        return {key: state.total_records for key, state in self._states.items()}

    def output_path(self, record_type: str) -> Optional[Path]:
        state = self._states.get(record_type)
        return state.sink.path if state else None

    @property
    def processed_count(self) -> int:
        return self._processed


def convert_file(
    location: Union[str, Path],
    config: Optional[ConverterConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> HealthRecordAggregator:
    """
    Convert a local export file (or an http(s) URL) synchronously.

    Args:
        location: Path to export.xml, or an http(s) URL serving it
        config: Conversion settings (defaults to ``ConverterConfig()``)
        on_progress: Called with the processed record count

    Returns:
        The aggregator, for inspecting discovered types and counts
    """
    config = config or ConverterConfig()
    config.validate()
    aggregator = HealthRecordAggregator.from_config(config, on_progress=on_progress)

    location = str(location)
    if is_url(location):
        stream = open_url_stream(location, config.chunk_size)
    else:
        stream = open_file_stream(location, config.chunk_size)

    asyncio.run(aggregator.consume(stream))
    return aggregator
