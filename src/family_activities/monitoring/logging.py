"""Structured logging with context injection.

Features:
- console handler on the ``family_activities`` logger
- JSON logs optional (easy ingestion)
- context injection (source_url/schema_type/stage) without a logging framework
"""

from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import dataclass
from typing import Any, TextIO

from family_activities.configs.settings import get_settings

ROOT_LOGGER_NAME = "family_activities"

# Record attributes copied into structured output when present
CONTEXT_FIELDS = ("source_url", "schema_type", "stage", "block_index")

# ---------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in CONTEXT_FIELDS:
            if hasattr(record, k):
                base[k] = getattr(record, k)

        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)

        # structured payload, e.g. a metrics dashboard
        payload = getattr(record, "payload", None)
        if isinstance(payload, dict):
            base["payload"] = payload

        return json.dumps(base, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Format log records as human-readable text."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [record.levelname, record.name]

        ctx = []
        source_url = getattr(record, "source_url", None)
        schema_type = getattr(record, "schema_type", None)
        stage = getattr(record, "stage", None)
        if source_url:
            ctx.append(f"source={source_url}")
        if schema_type:
            ctx.append(f"schema={schema_type}")
        if stage:
            ctx.append(f"stage={stage}")

        if ctx:
            parts.append("[" + " ".join(ctx) + "]")

        parts.append(record.getMessage())
        s = " ".join(parts)

        if record.exc_info:
            s += "\n" + self.formatException(record.exc_info)

        return s


# ---------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingOptions:
    """Logging behavior for a process."""

    level: str = "INFO"
    json_logs: bool = False
    enable_console: bool = True


def configure_logging(
    level: str | None = None,
    json_logs: bool | None = None,
    *,
    stream: TextIO | None = None,
    options: LoggingOptions | None = None,
) -> logging.Logger:
    """
    Install a console handler on the package logger.

    Unspecified values fall back to ``LOG_LEVEL`` / ``JSON_LOGS`` from
    settings. Calling again replaces the previous handler.

    Args:
        level: Level name, e.g. "DEBUG"
        json_logs: Emit JSON lines instead of text
        stream: Output stream; defaults to stdout
        options: Full options object; overrides ``level`` and ``json_logs``

    Returns:
        The configured ``family_activities`` logger
    """
    if options is None:
        settings = get_settings()
        options = LoggingOptions(
            level=level or settings.LOG_LEVEL,
            json_logs=settings.JSON_LOGS if json_logs is None else json_logs,
        )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, options.level.upper(), logging.INFO))
    logger.propagate = False

    for h in list(logger.handlers):
        logger.removeHandler(h)

    if options.enable_console:
        fmt = JsonFormatter() if options.json_logs else TextFormatter()
        ch = logging.StreamHandler(stream or sys.stdout)
        ch.setLevel(logger.level)
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    return logger


# ---------------------------------------------------------------------
# Context injection
# ---------------------------------------------------------------------


class ContextAdapter(logging.LoggerAdapter):
    """Inject context fields into log records."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        merged = dict(self.extra)
        merged.update(extra)
        kwargs["extra"] = merged
        return msg, kwargs


def with_context(
    logger: logging.Logger,
    *,
    source_url: str | None = None,
    schema_type: str | None = None,
    stage: str | None = None,
) -> ContextAdapter:
    """Create a context adapter carrying source, schema and stage info."""
    extra: dict[str, Any] = {}
    if source_url:
        extra["source_url"] = source_url
    if schema_type:
        extra["schema_type"] = schema_type
    if stage:
        extra["stage"] = stage
    return ContextAdapter(logger, extra)
