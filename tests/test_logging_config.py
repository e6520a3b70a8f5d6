"""
Tests for structured logging setup.
"""

import io
import json
import logging

import pytest

from cliffvest.core.logging_config import CustomJsonFormatter, setup_logging

LOGGER_NAME = "cliffvest.tests.logging"


@pytest.fixture
def fresh_logger():
    yield LOGGER_NAME
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_json_output_carries_extra_fields(fresh_logger):
    stream = io.StringIO()
    logger = setup_logging(name=fresh_logger, level="DEBUG", json_format=True, log_file="",
                           environment="test", stream=stream)

    logger.info("Tokens claimed", extra={"event": "vesting.claimed", "amount": 42})

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["message"] == "Tokens claimed"
    assert record["event"] == "vesting.claimed"
    assert record["amount"] == 42
    assert record["level"] == "info"
    assert record["environment"] == "test"
    assert record["service"] == "cliffvest"
    assert record["timestamp"]
    assert record["source"]["function"] == "test_json_output_carries_extra_fields"


def test_text_output(fresh_logger):
    stream = io.StringIO()
    logger = setup_logging(name=fresh_logger, level="INFO", json_format=False, log_file="", stream=stream)

    logger.debug("hidden")
    logger.warning("Vesting start rejected by token")

    output = stream.getvalue()
    assert "hidden" not in output
    assert "WARNING" in output
    assert "Vesting start rejected by token" in output


def test_repeated_setup_does_not_duplicate_handlers(fresh_logger):
    stream = io.StringIO()
    setup_logging(name=fresh_logger, json_format=False, log_file="", stream=stream)
    logger = setup_logging(name=fresh_logger, json_format=False, log_file="", stream=stream)
    assert len(logger.handlers) == 1


def test_log_file_is_created(fresh_logger, tmp_path):
    log_path = tmp_path / "logs" / "cliffvest.log"
    logger = setup_logging(name=fresh_logger, json_format=True, log_file=str(log_path), stream=io.StringIO())

    logger.error("Claim transfer failed", extra={"event": "vesting.claim_failed"})
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text().strip().splitlines()
    assert json.loads(lines[-1])["event"] == "vesting.claim_failed"


def test_formatter_defaults_environment_from_config():
    from cliffvest.core import config

    formatter = CustomJsonFormatter()
    assert formatter.environment == config.ENVIRONMENT
    assert formatter.service_name == "cliffvest"
