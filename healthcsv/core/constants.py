"""
Constants for Apple Health export conversion.

This module defines the element/attribute names recognised in export.xml,
the type identifier pattern, and the default tuning parameters of the
streaming converter.
"""

import re

# ============================================================================
# Export XML vocabulary
# ============================================================================

RECORD_TAG = "Record"
TYPE_ATTRIBUTE = "type"

# HKQuantityTypeIdentifierHeartRate -> HeartRate
# HKCategoryTypeIdentifierAppleStandHour -> AppleStandHour (Apple stripped later)
# The key becomes a file name, so only identifier characters are captured
TYPE_IDENTIFIER_PATTERN = re.compile(r"^HK.*TypeIdentifier([A-Za-z0-9_]+)$")

# Leading segment removed from the identifier suffix
APPLE_PREFIX = "Apple"

# ============================================================================
# Batching / streaming
# ============================================================================

# Records held per type before a forced flush to its CSV file
DEFAULT_BATCH_SIZE = 1000

# Bytes read from the input per chunk
DEFAULT_CHUNK_SIZE = 64 * 1024

# ============================================================================
# Progress reporting
# ============================================================================

# Report every N processed records...
PROGRESS_EVERY_RECORDS = 1000

# ...or when this many seconds passed since the last report
PROGRESS_INTERVAL_SECONDS = 2.0

# ============================================================================
# Output
# ============================================================================

CSV_SUFFIX = ".csv"
DEFAULT_OUTPUT_DIRNAME = "export"
