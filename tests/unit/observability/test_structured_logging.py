"""Tests for logging setup and context logging."""

import json
import logging

from convoflow.observability.logging import ContextLogger, setup_logging


def test_setup_logging_sets_package_level():
    """Test the package logger gets the requested level and stops propagating."""
    setup_logging("debug")

    logger = logging.getLogger("convoflow")
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert logger.handlers


def test_json_file_handler(tmp_path):
    """Test records are also written as JSON lines when a file is given."""
    # Arrange
    log_file = tmp_path / "convoflow.jsonl"
    setup_logging("INFO", json_file=str(log_file))

    # Act
    logging.getLogger("convoflow.engine").info("turn done")

    # Assert
    record = json.loads(log_file.read_text().splitlines()[-1])
    assert record["message"] == "turn done"
    assert record["levelname"] == "INFO"


def test_context_logger_prefixes_and_extras(caplog):
    """Test context is prepended to the message and attached to the record."""
    log = ContextLogger("convoflow.test").with_context(tenant="acme", session="s1")

    with caplog.at_level(logging.INFO, logger="convoflow.test"):
        log.info("hello")

    record = caplog.records[-1]
    assert record.getMessage() == "[tenant=acme session=s1] hello"
    assert record.tenant == "acme"
    assert record.session == "s1"


def test_context_logger_without_context(caplog):
    """Test an empty context leaves the message untouched."""
    with caplog.at_level(logging.INFO, logger="convoflow.test"):
        ContextLogger("convoflow.test").with_context().info("plain")

    assert caplog.records[-1].getMessage() == "plain"
