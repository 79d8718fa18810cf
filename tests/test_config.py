"""
Tests for environment-driven configuration.
"""

import os

import pytest

from healthcsv.config import ConverterConfig, load_environment
from healthcsv.core.constants import DEFAULT_BATCH_SIZE, DEFAULT_CHUNK_SIZE

ENV_VARS = [
    "HEALTHCSV_OUTPUT_DIR",
    "HEALTHCSV_BATCH_SIZE",
    "HEALTHCSV_CHUNK_SIZE",
    "HEALTHCSV_DEBUG",
    "HEALTHCSV_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep .env files of the working tree out of the tests
    monkeypatch.chdir(tmp_path)


def test_defaults():
    config = ConverterConfig.from_env()

    assert config.batch_size == DEFAULT_BATCH_SIZE
    assert config.chunk_size == DEFAULT_CHUNK_SIZE
    assert config.output_dir == os.path.join(os.getcwd(), "export")
    assert config.debug is False
    assert config.log_file is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("HEALTHCSV_OUTPUT_DIR", "/data/csv")
    monkeypatch.setenv("HEALTHCSV_BATCH_SIZE", "250")
    monkeypatch.setenv("HEALTHCSV_CHUNK_SIZE", "4096")
    monkeypatch.setenv("HEALTHCSV_DEBUG", "true")
    monkeypatch.setenv("HEALTHCSV_LOG_FILE", "conversion.log")

    config = ConverterConfig.from_env(load_dotenv_files=False)

    assert config.output_dir == "/data/csv"
    assert config.batch_size == 250
    assert config.chunk_size == 4096
    assert config.debug is True
    assert config.log_file == "conversion.log"


def test_invalid_integer(monkeypatch):
    monkeypatch.setenv("HEALTHCSV_BATCH_SIZE", "lots")

    with pytest.raises(ValueError, match="HEALTHCSV_BATCH_SIZE"):
        ConverterConfig.from_env(load_dotenv_files=False)


@pytest.mark.parametrize(
    "overrides",
    [
        {"batch_size": 0},
        {"chunk_size": -1},
        {"progress_every": 0},
        {"progress_interval": 0},
    ],
)
def test_validate_rejects_non_positive(overrides):
    with pytest.raises(ValueError):
        ConverterConfig(**overrides).validate()


def test_load_environment_prefers_env_specific_file(tmp_path):
    (tmp_path / ".env").write_text("HEALTHCSV_BATCH_SIZE=10\n")
    (tmp_path / ".env.test").write_text("HEALTHCSV_BATCH_SIZE=20\n")

    try:
        assert load_environment("test") == ".env.test"
        assert os.environ["HEALTHCSV_BATCH_SIZE"] == "20"
    finally:
        os.environ.pop("HEALTHCSV_BATCH_SIZE", None)


def test_load_environment_without_files():
    assert load_environment("production") is None
