"""JSON-lines logging for tagging runs.

Every record becomes one JSON object on stderr, stamped with the service
name and (once set) the batch run id. Per-document messages carry the
document id so a run's log can be filtered document by document.

Usage:
    run = setup_logging("tagger", "INFO")
    run.set_run_id(uuid4().hex[:8])
    log_with_context(logger, "info", "tagged", document_id="ABCD1234", tags_added=3)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# LogRecord attributes written under their own names
_CONTEXT_ATTRS = ("run_id", "document_id")
_EXTRA_PREFIX = "extra_"
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
        }

        for attr in _CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value

        for key, value in vars(record).items():
            if key.startswith(_EXTRA_PREFIX):
                entry[key[len(_EXTRA_PREFIX):]] = value

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


class RunFilter(logging.Filter):
    """Adds the current batch run id to records that lack one."""

    def __init__(self):
        super().__init__()
        self.run_id: Optional[str] = None

    def set_run_id(self, run_id: str) -> None:
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        if self.run_id and getattr(record, "run_id", None) is None:
            record.run_id = self.run_id
        return True


def setup_logging(service_name: str, level: str = "INFO", stream=None) -> RunFilter:
    """Replace root handlers with a single JSON handler.

    Args:
        service_name: Value of the ``service`` field
        level: Root log level name
        stream: Destination (stderr by default, keeping stdout for CLI output)

    Returns:
        The handler's RunFilter, for setting the run id
    """
    run_filter = RunFilter()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter(service_name))
    handler.addFilter(run_filter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return run_filter


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    document_id: Optional[str] = None,
    **fields: Any,
) -> None:
    """Log ``message`` with a document id and arbitrary extra JSON fields."""
    extra: dict[str, Any] = {f"{_EXTRA_PREFIX}{name}": value for name, value in fields.items()}
    if document_id:
        extra["document_id"] = document_id
    logger.log(getattr(logging, level.upper()), message, extra=extra)
