"""
JSON log lines for the codex.

Every record under the ``loremaker`` logger tree is rendered as one JSON
object. Warnings and above go to stderr; when ``LOG_FILE`` is configured
every record at INFO and above is also appended there.

Usage::

    from loremaker.utils.logging_config import get_logger, SheetAdapter

    logger = get_logger("sheets")                      # -> "loremaker.sheets"
    logger.info("roster loaded", extra={"count": 42})

    SheetAdapter(logger, "Characters").warning("candidate failed")
    # {"level": "WARNING", ..., "sheet": "Characters"}
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

ROOT_LOGGER = "loremaker"

# Record attributes copied into the JSON line when a caller passes them via ``extra``
RECORD_FIELDS = ("sheet", "candidate", "status", "count", "duration_ms",
                 "action", "metadata")


class JSONFormatter(logging.Formatter):
    """Renders a record as ``{"ts", "level", "logger", "message", ...extras}``."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update({
            field: getattr(record, field)
            for field in RECORD_FIELDS
            if getattr(record, field, None) is not None
        })
        if record.exc_info and record.exc_info[0] is not None:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class SheetAdapter(logging.LoggerAdapter):
    """Stamps the candidate sheet name (``"(default)"`` for none) on every record."""

    def __init__(self, logger: logging.Logger, sheet: Optional[str]):
        super().__init__(logger, {"sheet": sheet or "(default)"})

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **self.extra}
        return msg, kwargs


CONSOLE_HANDLER = f"{ROOT_LOGGER}.stderr"


def _file_handler_name(path: str) -> str:
    return f"{ROOT_LOGGER}.file:{os.path.abspath(path)}"


def _attached(root: logging.Logger, name: str) -> bool:
    return any(handler.get_name() == name for handler in root.handlers)


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    """Attach JSON handlers to the ``loremaker`` logger.

    Idempotent: a handler is only added when an equivalent one is not
    already attached, so the app lifespan and :func:`get_logger` can both
    call it.
    """
    root = logging.getLogger(ROOT_LOGGER)

    if not _attached(root, CONSOLE_HANDLER):
        root.setLevel(level)
        root.propagate = False
        console = logging.StreamHandler(sys.stderr)
        console.set_name(CONSOLE_HANDLER)
        console.setLevel(logging.WARNING)
        console.setFormatter(JSONFormatter())
        root.addHandler(console)

    if log_file and not _attached(root, _file_handler_name(log_file)):
        appender = logging.FileHandler(log_file, encoding="utf-8")
        appender.set_name(_file_handler_name(log_file))
        appender.setFormatter(JSONFormatter())
        root.addHandler(appender)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger inside the ``loremaker`` tree; bare names are prefixed."""
    setup_logging()
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
