"""The logging configuration for the logtrim package."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from logging import DEBUG, Formatter, Logger, LogRecord, StreamHandler, getLogger

from pythonjsonlogger.json import JsonFormatter


def _structured_logs_requested() -> bool:
    return bool(os.getenv("LOGTRIM_JSON_LOGS"))


class _StructuredJsonFormatter(JsonFormatter):
    def formatTime(self, record: LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002, N802
        # RFC 3339 with microsecond precision
        isoformat = datetime.fromtimestamp(record.created).isoformat()  # noqa: DTZ006
        return f"{isoformat}Z"


logger: Logger = getLogger("logtrim")
logger.setLevel(DEBUG)
logger.handlers.clear()

stream_handler = StreamHandler(sys.stdout)

if _structured_logs_requested():
    formatter = _StructuredJsonFormatter(
        "%(asctime)s %(levelname)s %(threadName)s %(message)s",
        rename_fields={
            "levelname": "severity",
            "asctime": "timestamp",
        },
    )
else:
    # Local: human-friendly with thread name
    formatter = Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | [%(threadName)s] %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )

stream_handler.setFormatter(formatter)
logger.addHandler(stream_handler)
