"""
Structured JSON logging configuration.
"""
import json
import logging
import sys
from typing import Any, Optional

# LogRecord attributes that are not user supplied extras
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Fields passed through ``extra=`` are merged into the payload, so call
    sites can write ``logger.warning("Sign-in rejected", extra={"reason": ...})``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Install JSON handlers on the ``siwe_auth`` logger.

    Args:
        level: Log level name
        log_file: Optional path of an additional append-only log file
    """
    logger = logging.getLogger("siwe_auth")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
