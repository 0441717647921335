"""Structured JSON logger.

Outputs one JSON object per record with severity, timestamp, and message
fields, plus the benchmark-specific extras passed via ``extra=``. The
benchmark writes logs to stderr so they never interleave with the
interactive console on stdout.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

EXTRA_FIELDS = ("model", "chunk_index", "stage", "duration_seconds", "error")


class StructuredJsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    SEVERITY_MAP: dict[int, str] = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            JSON string with severity, timestamp, logger, message, and any
            recognised extra fields.
        """
        log_entry: dict[str, object] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])

        return json.dumps(log_entry)


def get_logger(name: str, stream: TextIO | None = None) -> logging.Logger:
    """Create a structured JSON logger.

    Args:
        name: Logger name, typically the module name.
        stream: Output stream (defaults to stdout).

    Returns:
        Configured logger that outputs JSON lines.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(StructuredJsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    return logger
