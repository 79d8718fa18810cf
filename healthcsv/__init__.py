"""
Convert an Apple Health export.xml into one CSV file per record type.
"""

__version__ = "1.0.0"

from .config import ConverterConfig
from .core.errors import HealthCsvError, MalformedXmlError, UpstreamStreamError
from .streaming import HealthRecordAggregator, classify_record, convert_file

__all__ = [
    "ConverterConfig",
    "HealthCsvError",
    "MalformedXmlError",
    "UpstreamStreamError",
    "HealthRecordAggregator",
    "classify_record",
    "convert_file",
]
