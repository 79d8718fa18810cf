"""
Environment-driven configuration.

Settings come from HEALTHCSV_* environment variables, optionally loaded from
``.env.<ENV>`` or ``.env`` files via python-dotenv.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_OUTPUT_DIRNAME,
    PROGRESS_EVERY_RECORDS,
    PROGRESS_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

ENV = os.getenv("ENV", os.getenv("PYTHON_ENV", "development"))


def load_environment(env: Optional[str] = None) -> Optional[str]:
    """
    Load variables from the .env file matching the environment.

    Looks for ``.env.<env>`` first, then ``.env``. Variables already set in
    the process environment win.

    Returns:
        The file that was loaded, or None
    """
    env = env or ENV

    env_file = None
    if os.path.exists(f".env.{env}"):
        env_file = f".env.{env}"
    elif os.path.exists(".env"):
        env_file = ".env"

    if env_file:
        load_dotenv(env_file)
        logger.debug(f"Loaded environment from {env_file} (ENV={env})")
    return env_file


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ConverterConfig:
    """Configuration for a health export conversion."""

    output_dir: str = field(default_factory=lambda: os.path.join(os.getcwd(), DEFAULT_OUTPUT_DIRNAME))
    """Directory receiving <RecordType>.csv files (created if missing)"""

    batch_size: int = DEFAULT_BATCH_SIZE
    """Records held per type before they are flushed to disk"""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Bytes read from the input per chunk"""

    progress_every: int = PROGRESS_EVERY_RECORDS
    """Report progress every N records"""

    progress_interval: float = PROGRESS_INTERVAL_SECONDS
    """...or after this many seconds without a report"""

    debug: bool = False
    """Enable debug logging"""

    log_file: Optional[str] = None
    """Also write the conversion log to this file"""

    @classmethod
    def from_env(cls, load_dotenv_files: bool = True) -> "ConverterConfig":
        if load_dotenv_files:
            load_environment()

        config = cls(
            batch_size=_env_int("HEALTHCSV_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            chunk_size=_env_int("HEALTHCSV_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            debug=_env_bool("HEALTHCSV_DEBUG"),
            log_file=os.getenv("HEALTHCSV_LOG_FILE") or None,
        )
        output_dir = os.getenv("HEALTHCSV_OUTPUT_DIR")
        if output_dir:
            config.output_dir = output_dir
        return config

    def validate(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be positive, got {self.progress_every}")
        if self.progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")
