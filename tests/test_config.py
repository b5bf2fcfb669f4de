"""
Tests for configuration loading and logger construction.

These tests validate that:

- the shipped config/tidycorpus.yaml loads and has its core sections
- missing files, empty files and missing sections are reported
- get_logger honours the configured level and file output
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from tidycorpus.utils.config import load_config
from tidycorpus.utils.logging_utils import get_logger


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "tidycorpus.yaml"


def test_default_config_has_required_sections():
    cfg = load_config(str(CONFIG_PATH))

    for section in ("input", "tokenize", "pairwise", "paths", "stopwords", "logging"):
        assert section in cfg

    assert cfg["tokenize"]["unit_kind"] == "word"
    assert cfg["pairwise"]["on_degenerate"] in ("error", "zero", "drop")


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_empty_config_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_missing_section(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text(yaml.safe_dump({"input": {}, "tokenize": {}, "paths": {}}), encoding="utf-8")
    with pytest.raises(KeyError):
        load_config(str(path))


def test_get_logger_writes_to_file(tmp_path):
    cfg = {
        "logging": {"level": "DEBUG", "to_file": True, "file_prefix": "unit"},
        "paths": {"logs_dir": str(tmp_path / "logs")},
    }
    logger = get_logger("tidycorpus.test_config", cfg, log_file_suffix="check")
    logger.debug("hello from the test")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    log_file = tmp_path / "logs" / "unit_check.log"
    assert "hello from the test" in log_file.read_text(encoding="utf-8")

    # second call reuses the configured logger
    assert get_logger("tidycorpus.test_config", cfg) is logger
    assert len(logger.handlers) == 2
