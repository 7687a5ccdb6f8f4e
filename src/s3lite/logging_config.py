"""Log formatting and handler setup for s3lite.

The library only emits records on ``s3lite.*`` loggers. The CLI calls
``configure_logging`` once at startup to route them to stderr, either as
plain text or as one JSON object per line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes attached through ``extra=`` by Connection._send.
REQUEST_FIELDS = ("method", "host", "path", "status", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Render each record as a single-line JSON object.

    Keys: ``timestamp`` (ISO 8601, UTC), ``level``, ``logger``, ``message``,
    ``exception`` when one is attached, and whichever request fields the
    record carries.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(
            (field, getattr(record, field))
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        )
        return json.dumps(entry, default=str)


def _formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(level: str = "INFO", fmt: str = "text", stream: IO[str] | None = None) -> None:
    """Send all log records to one stream handler on the root logger.

    Handlers already installed on the root logger are removed first, so
    repeated calls do not duplicate output.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown
            names fall back to INFO.
        fmt: ``text`` for human-readable lines, ``json`` for structured ones.
        stream: Destination stream. Defaults to stderr.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(_formatter(fmt))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # httpx logs every request at INFO.
    httpx_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
