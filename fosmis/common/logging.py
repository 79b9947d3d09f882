"""Structured logging setup for Fosmis.

Every log line includes: timestamp, level, module tag, message, and structured data.

Usage:
    from fosmis.common.logging import get_logger
    logger = get_logger("SIMULATION")
    logger.info("Run finished", extra={"data": {"events": 12, "cash_left": 0.0}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

# Module tags for structured logging
MODULE_TAGS = {
    "SERIES",
    "STRATEGY",
    "SIMULATION",
    "SUMMARY",
    "LOADER",
    "CLI",
    "SYSTEM",
    "TEST",
}

_LOGGER_NAMESPACE = "fosmis"


class StdoutHandler(logging.StreamHandler):
    """StreamHandler writing to whatever sys.stdout is at emit time, not at creation.

    ``stream`` is read-only; ``setStream()`` raises AttributeError.
    """

    def __init__(self) -> None:
        logging.Handler.__init__(self)

    @property
    def stream(self):
        return sys.stdout


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured, human-readable lines.

    Output format:
        2025-02-15T10:30:00Z | INFO | SIMULATION | Strategy finished acting | {"day": "2020-03-02"}
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        level = record.levelname
        module_tag = getattr(record, "module_tag", "SYSTEM")

        # Extract structured data from extra
        data = getattr(record, "data", None)
        if data is not None:
            try:
                data_str = json.dumps(data, default=str)
            except (TypeError, ValueError):
                data_str = str(data)
        else:
            data_str = ""

        parts = [timestamp, level, module_tag, record.getMessage()]
        if data_str:
            parts.append(data_str)

        return " | ".join(parts)


class ModuleTagLogger(logging.LoggerAdapter):
    """Logger adapter that injects module_tag and supports structured data.

    Usage:
        logger = get_logger("STRATEGY")
        logger.debug("Spent", extra={"data": {"amount": 1000.0}})
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        # Inject module_tag into the record
        extra = kwargs.get("extra", {})
        extra["module_tag"] = self.extra.get("module_tag", "SYSTEM")
        kwargs["extra"] = extra
        return msg, kwargs


# Cache loggers to avoid duplicate handlers
_loggers: dict[str, ModuleTagLogger] = {}
_level: int = logging.DEBUG


def get_logger(module_tag: str) -> ModuleTagLogger:
    """Get a structured logger with the given module tag.

    Args:
        module_tag: One of the MODULE_TAGS (SERIES, STRATEGY, SIMULATION, etc.)

    Returns:
        A logger adapter that injects the module tag into every log line.
    """
    if module_tag in _loggers:
        return _loggers[module_tag]

    logger = logging.getLogger(f"{_LOGGER_NAMESPACE}.{module_tag.lower()}")

    # Only add handler if this logger doesn't have one yet
    if not logger.handlers:
        handler = StdoutHandler()
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level)
        logger.propagate = False

    adapter = ModuleTagLogger(logger, {"module_tag": module_tag})
    _loggers[module_tag] = adapter
    return adapter


def set_log_level(level: str | int) -> None:
    """Set the level of every Fosmis logger, including ones created later.

    Args:
        level: A level name ("INFO", "debug") or a logging level int.

    Raises:
        ValueError: If the level name is not a known logging level.
    """
    global _level

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            msg = f"Unknown log level: {level}"
            raise ValueError(msg)
        level = resolved

    _level = level
    for adapter in _loggers.values():
        adapter.logger.setLevel(level)
