"""
Logging for the engine: structured JSON in production, plain text elsewhere.

Entries emitted while an attempt or a fairness analysis is being computed
carry its identifier (``analysis_id``), so one attempt's scoring, validity
and assembly lines can be grouped, as can the lines of one analysis running
on a worker thread.
"""
import json
import logging
import logging.config
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from assessment_engine.core.config import settings

# Session id of the attempt being scored, or "bias:<assessment type>"
analysis_id_context: ContextVar[Optional[str]] = ContextVar("analysis_id", default=None)

# ``extra`` keys copied onto JSON entries when present
STRUCTURED_FIELDS = (
    "assessment_type",
    "session_id",
    "duration_ms",
    "sample_size",
    "overall_validity",
    "bias_severity",
)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@contextmanager
def analysis_context(analysis_id: str) -> Iterator[None]:
    """Tag every log entry emitted inside the block with ``analysis_id``."""
    token = analysis_id_context.set(analysis_id)
    try:
        yield
    finally:
        analysis_id_context.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per entry, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        analysis_id = analysis_id_context.get()
        if analysis_id:
            entry["analysis_id"] = analysis_id

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                entry[field] = getattr(record, field)

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def build_logging_config(
    level: Optional[str] = None, json_output: Optional[bool] = None
) -> Dict[str, Any]:
    """
    dictConfig mapping for the engine's loggers.

    Args:
        level: Level name (defaults to settings.LOG_LEVEL)
        json_output: Use JSONFormatter (defaults to ENV == "production")
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    if json_output is None:
        json_output = settings.ENV == "production"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"format": TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "json" if json_output else "text",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "assessment_engine": {
                "level": logging.DEBUG if settings.DEBUG else log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Configure the ``assessment_engine`` logger hierarchy.

    The engine never calls this itself. Hosts that do not configure logging
    on their own call it once at startup; the root logger is left alone.
    """
    logging.config.dictConfig(build_logging_config(level, json_output))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
