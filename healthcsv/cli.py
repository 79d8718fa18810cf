"""
Command-line driver.

Usage:
    healthcsv [-h] <file> [-d <dir>] [-b <batch-size>] [--progress]
              [--debug] [--log-file <path>] [--profile-memory]
"""

import argparse
import logging
import sys
import time
from contextlib import nullcontext
from typing import List, Optional

from tqdm import tqdm

from . import __version__
from .config import ConverterConfig
from .core.errors import HealthCsvError
from .streaming.aggregator import HealthRecordAggregator, convert_file
from .streaming.memory_profiler import profile_memory
from .utils.logging import close_log_file, setup_logging

logger = logging.getLogger("healthcsv.cli")

PROGRAM = "healthcsv"
DESCRIPTION = "Convert an Apple Health export.xml into one CSV file per record type"
HOMEPAGE = "https://pypi.org/project/apple-health-csv/"
LICENSE = "MIT"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROGRAM, description=DESCRIPTION, add_help=False)
    parser.add_argument("input", nargs="?", help="Path or http(s) URL of export.xml")
    parser.add_argument("-h", "--help", action="store_true", help="Show this message and exit.")
    parser.add_argument(
        "-d",
        "--output-dir",
        default=None,
        help="Output directory for CSV files (default: $HEALTHCSV_OUTPUT_DIR or ./export).",
    )
    parser.add_argument(
        "-b",
        "--batch-size",
        type=int,
        default=None,
        help="Records per type held in memory before flushing (default: 1000).",
    )
    parser.add_argument("--progress", action="store_true", help="Show a progress bar.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    parser.add_argument(
        "--profile-memory",
        action="store_true",
        help="Report current/peak Python memory after the conversion.",
    )
    return parser


def print_banner(parser: argparse.ArgumentParser) -> None:
    rule = "=" * 80
    print(rule, file=sys.stderr)
    print(DESCRIPTION, file=sys.stderr)
    print("", file=sys.stderr)
    print(f"Version    : {__version__}", file=sys.stderr)
    print(f"Homepage   : {HOMEPAGE}", file=sys.stderr)
    print(f"LICENSE    : {LICENSE}", file=sys.stderr)
    print(rule, file=sys.stderr)
    print("", file=sys.stderr)
    parser.print_help(sys.stderr)


def _build_config(args: argparse.Namespace) -> ConverterConfig:
    config = ConverterConfig.from_env()
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.batch_size is not None:
        config.batch_size = args.batch_size
    if args.log_file:
        config.log_file = args.log_file
    config.debug = config.debug or args.debug
    config.validate()
    return config


def _convert(location: str, config: ConverterConfig, show_progress: bool) -> HealthRecordAggregator:
    with tqdm(unit=" records", disable=not show_progress, file=sys.stderr) as bar:
        on_progress = None
        if show_progress:
            def on_progress(count: int) -> None:
                bar.update(count - bar.n)

        aggregator = convert_file(location, config, on_progress=on_progress)
        bar.update(aggregator.processed_count - bar.n)
    return aggregator


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help or not args.input:
        print_banner(parser)
        return 1

    start_time = time.monotonic()
    try:
        config = _build_config(args)
        setup_logging(debug=config.debug, log_file=config.log_file)

        logger.info(f"Starting to process {args.input}")
        logger.info("Beginning XML parsing...")

        profiling = profile_memory("Conversion") if args.profile_memory else nullcontext()
        with profiling as profiler:
            if profiler is not None:
                profiler.snapshot("Before parsing")
            aggregator = _convert(args.input, config, args.progress)
            if profiler is not None:
                profiler.snapshot(f"After {aggregator.processed_count} records")

        logger.info(f"XML parsing completed in {time.monotonic() - start_time:.2f} seconds")

        counts = aggregator.record_counts()
        logger.info(f"Found {len(counts)} data types exported")
        for record_type, count in counts.items():
            logger.info(f"  {record_type}: {count} records -> {aggregator.output_path(record_type)}")

        logger.info(f"\nExport completed in {time.monotonic() - start_time:.2f} seconds")
        return 0

    except (HealthCsvError, OSError, ValueError) as e:
        print(f"Error processing file: {e}", file=sys.stderr)
        return 1
    finally:
        close_log_file()


if __name__ == "__main__":
    sys.exit(main())
