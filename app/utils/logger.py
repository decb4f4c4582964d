"""
Structured logging for the ad manager.

Every module logs through ``get_logger(__name__)``; keyword arguments become
fields on the JSON line written to the rotating file. Two dedicated channels
sit beside the module loggers:

* ``app.audit`` - who changed what (approvals, overrides, deletions, recoveries)
* ``app.performance`` - timings of feed resolution and admin writes
"""
import logging
import logging.config
import json
import sys
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path

SERVICE_NAME = "signage-ad-manager"

# Feed polls should be cheap; slower resolutions are logged at WARNING
SLOW_OPERATION_MS = 500.0

_RESERVED_KEYS = ("exc_info", "stack_info")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context fields are merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(getattr(record, "context", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """
    Keyword-friendly facade over ``logging.Logger``.

    ``logger.warning("Serving degraded feed", display=2, items=5)`` carries
    ``display`` and ``items`` as structured fields. ``bind`` returns a child
    that repeats fixed context on every call (e.g. a request id).
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.context: Dict[str, Any] = dict(context or {})

    def bind(self, **context: Any) -> "StructuredLogger":
        return StructuredLogger(self.logger.name, {**self.context, **context})

    def _emit(self, level: int, message: str, fields: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        flags = {key: fields.pop(key) for key in _RESERVED_KEYS if key in fields}
        context = {**self.context, **{k: v for k, v in fields.items() if v is not None}}
        self.logger.log(level, message, extra={"context": context}, **flags)

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True
) -> None:
    """
    Configure handlers for the ``app`` tree, uvicorn and SQLAlchemy.

    Args:
        log_level: Level for application loggers
        log_file: JSON lines file (rotated at 10MB, 5 backups); skipped when None
        enable_console: Human-readable lines on stdout
    """
    handlers: Dict[str, Dict[str, Any]] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "plain",
            "level": log_level,
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "level": log_level,
        }

    names = list(handlers)
    levels = {
        "app": log_level,
        "uvicorn": "INFO",
        # Players poll constantly; SQL echo would drown everything else
        "sqlalchemy.engine": "WARNING",
    }
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSONFormatter},
            "plain": {
                "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            name: {"level": level, "handlers": names, "propagate": False}
            for name, level in levels.items()
        },
        "root": {"level": log_level, "handlers": names},
    })


def get_logger(name: str) -> StructuredLogger:
    """Logger under the ``app`` namespace (``__name__`` of app modules already is)."""
    if name != "app" and not name.startswith("app."):
        name = f"app.{name}"
    return StructuredLogger(name)


def log_business_event(
    event_type: str,
    details: Dict[str, Any],
    user_id: Optional[int] = None,
    request_id: Optional[str] = None
) -> None:
    """
    Write an audit record.

    Args:
        event_type: e.g. 'campaign_approved', 'override_issued', 'campaign_soft_deleted'
        details: Event fields, flattened into the record
        user_id: Acting user, if any
        request_id: Originating request, if any
    """
    get_logger("audit").info(
        event_type,
        event_type=event_type,
        user_id=user_id,
        request_id=request_id,
        **details
    )


def log_performance(
    operation: str,
    duration_ms: float,
    additional_data: Optional[Dict[str, Any]] = None
) -> None:
    """Record how long ``operation`` took; anything over SLOW_OPERATION_MS is a warning."""
    perf = get_logger("performance")
    fields: Dict[str, Any] = dict(additional_data or {})
    fields["duration_ms"] = round(duration_ms, 2)
    if duration_ms > SLOW_OPERATION_MS:
        perf.warning(f"Slow operation: {operation}", operation=operation, **fields)
    else:
        perf.info(f"Performance: {operation}", operation=operation, **fields)
