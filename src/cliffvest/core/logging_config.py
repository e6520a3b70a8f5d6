"""
cliffvest - Structured Logging Configuration

Configures logging for the vesting engine and CLI:
- JSON format (python-json-logger) for aggregation, or plain text for terminals
- Optional rotating log file
- Structured ``extra`` fields (``event``, ``account``, ``amount``...) carried
  through to the JSON output

Usage:
    from cliffvest.core.logging_config import setup_logging

    logger = setup_logging(name="cliffvest", level="DEBUG", json_format=True)
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from . import config

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with timestamp, environment,
    service and source location.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        environment: Optional[str] = None,
        service_name: str = "cliffvest",
    ):
        super().__init__(fmt=fmt)
        self.environment = environment or config.ENVIRONMENT
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["environment"] = self.environment
        log_record["service"] = self.service_name

        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "cliffvest",
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None,
    environment: Optional[str] = None,
    stream: Any = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the named logger. Unset arguments fall back to the
    CLIFFVEST_* environment settings in :mod:`cliffvest.core.config`.

    Args:
        name: Logger name, normally the package root
        level: Logging level name (DEBUG, INFO, ...)
        json_format: Emit JSON lines instead of plain text
        log_file: Optional path for a rotating file handler
        environment: Environment name stamped on JSON records
        stream: Console stream (defaults to stderr)
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance
    """
    level_name = (level or config.LOG_LEVEL).upper()
    use_json = config.LOG_JSON if json_format is None else json_format
    file_path = config.LOG_FILE if log_file is None else log_file

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level_name))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    if use_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            environment=environment,
            service_name=name.split(".")[0],
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
