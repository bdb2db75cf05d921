"""Tests for logging setup."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from dumptruck.errors import ConfigurationError
from dumptruck.utils.config import Config
from dumptruck.utils.logging_setup import JSONFormatter, setup_logging


@pytest.fixture
def restore_logger():
    yield
    root = logging.getLogger("dumptruck")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_writes_rotating_log_file(config: Config, tmp_path: Path, restore_logger):
    root = setup_logging(config)
    logging.getLogger("dumptruck.smtp.session").info("receiving mail from %s", "192.0.2.1")
    for handler in root.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "dumptruck.log"
    assert log_file.exists()
    assert "receiving mail from 192.0.2.1" in log_file.read_text()
    assert root.level == logging.DEBUG


def test_repeated_setup_does_not_duplicate_handlers(config: Config, restore_logger):
    setup_logging(config)
    root = setup_logging(config)
    assert len(root.handlers) == 2


def test_console_only_when_directory_empty(config: Config, restore_logger):
    config.override("logging.directory", "")
    root = setup_logging(config)
    assert len(root.handlers) == 1


def test_json_formatter():
    record = logging.LogRecord(
        "dumptruck.app", logging.WARNING, __file__, 1, "port %d busy", (25,), None,
    )
    payload = json.loads(JSONFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "dumptruck.app"
    assert payload["msg"] == "port 25 busy"


def test_json_formatter_includes_session_context():
    record = logging.LogRecord(
        "dumptruck.smtp.session", logging.INFO, __file__, 1, "Stored %d bytes", (120,), None,
    )
    record.peer = "192.0.2.1"
    record.artifact = "c@d.com-a@b.com-192.0.2.1-1700000000.txt"
    payload = json.loads(JSONFormatter().format(record))
    assert payload["peer"] == "192.0.2.1"
    assert payload["artifact"].endswith(".txt")
    assert "zone" not in payload


def test_custom_log_filename(config: Config, tmp_path: Path, restore_logger):
    config.override("logging.filename", "smtp-sink.log")
    root = setup_logging(config)
    root.warning("hello")
    for handler in root.handlers:
        handler.flush()
    assert (tmp_path / "logs" / "smtp-sink.log").exists()
    assert not (tmp_path / "logs" / "dumptruck.log").exists()


def test_unusable_log_directory_is_configuration_error(config: Config, tmp_path: Path, restore_logger):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    config.override("logging.directory", str(blocker / "logs"))
    with pytest.raises(ConfigurationError):
        setup_logging(config)


def test_unknown_level_is_configuration_error(config: Config, restore_logger):
    config.override("logging.level", "LOUD")
    with pytest.raises(ConfigurationError):
        setup_logging(config)
