"""
DepMatrix - Centralized Logging Configuration
Plain text in development, JSON lines in production. Every record carries the
request, user and matrix IDs of the request that produced it.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from depmatrix.core.config import settings


# Request-scoped context, reset by RequestLoggingMiddleware after each request
_CONTEXT: Dict[str, ContextVar] = {
    "request_id": ContextVar("request_id", default=""),
    "user_id": ContextVar("user_id", default=""),
    "matrix_id": ContextVar("matrix_id", default=""),
}


def set_request_id(request_id: str) -> None:
    _CONTEXT["request_id"].set(request_id)


def set_user_id(user_id: str) -> None:
    _CONTEXT["user_id"].set(user_id)


def set_matrix_id(matrix_id: str) -> None:
    _CONTEXT["matrix_id"].set(matrix_id)


def current_context() -> Dict[str, str]:
    """Context IDs that are set for the running request"""
    return {name: var.get() for name, var in _CONTEXT.items() if var.get()}


def generate_request_id() -> str:
    """Short request ID for X-Request-ID"""
    return str(uuid.uuid4())[:8]


# Attributes every LogRecord has; anything else arrived through ``extra``
_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation"""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        data.update(current_context())

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        data.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        return json.dumps(data, default=str)


class ContextualFormatter(logging.Formatter):
    """Text formatter exposing %(request_id)s, %(user_id)s and %(matrix_id)s ('-' when unset)"""

    def format(self, record: logging.LogRecord) -> str:
        for name, var in _CONTEXT.items():
            setattr(record, name, var.get() or "-")
        return super().format(record)


class DepMatrixLogger(logging.Logger):
    """Logger with one helper per structured event type"""

    def _event(self, level: int, message: str, event_type: str, **fields) -> None:
        self.log(level, message, extra={"event_type": event_type, **fields})

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float, **kwargs) -> None:
        self._event(
            logging.INFO,
            f"HTTP {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            "http_request",
            http_method=method, http_path=path, http_status=status_code, duration_ms=duration_ms, **kwargs,
        )

    def log_upstream_call(self, method: str, url: str, status_code: int, duration_ms: float, **kwargs) -> None:
        """Persistence/Auth Service call; failures are logged at WARNING"""
        self._event(
            logging.WARNING if status_code >= 400 else logging.DEBUG,
            f"Upstream {method} {url} - {status_code} ({duration_ms:.2f}ms)",
            "upstream_call",
            upstream_method=method, upstream_url=url, upstream_status=status_code, duration_ms=duration_ms,
            **kwargs,
        )

    def log_auth_event(self, event: str, success: bool, username: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        parts = [f"Auth {event}: {'success' if success else 'failed'}"]
        parts.extend(part for part in (username, reason) if part)
        self._event(
            logging.INFO if success else logging.WARNING,
            " - ".join(parts),
            "auth",
            auth_event=event, auth_success=success, username=username, failure_reason=reason, **kwargs,
        )

    def log_matrix_event(self, matrix_id: str, event: str, **kwargs) -> None:
        self._event(
            logging.INFO,
            f"Matrix {matrix_id}: {event}",
            "matrix",
            matrix_event=event, target_matrix=matrix_id, **kwargs,
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None, **kwargs) -> None:
        self.error(
            f"Error in {context}: {type(error).__name__}: {error}",
            exc_info=True,
            extra={"event_type": "error", "error_type": type(error).__name__, "error_context": context, **kwargs},
        )


def _handlers(console_formatter: logging.Formatter, file_formatter: logging.Formatter) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(console_formatter)
    handlers: List[logging.Handler] = [console]

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=10485760, backupCount=5)  # 10MB
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    return handlers


def setup_logging() -> DepMatrixLogger:
    """Configure the ``depmatrix`` logger for the current environment"""
    logging.setLoggerClass(DepMatrixLogger)
    logger = logging.getLogger("depmatrix")
    logger.__class__ = DepMatrixLogger  # may predate setLoggerClass
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    json_logging = settings.ENVIRONMENT == "production"
    if json_logging:
        formatter = JSONFormatter()
        handlers = _handlers(formatter, formatter)
    else:
        handlers = _handlers(
            ContextualFormatter("%(levelname)-8s | %(message)s"),
            ContextualFormatter(
                "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] [%(matrix_id)s] | "
                "%(funcName)s:%(lineno)d | %(message)s"
            ),
        )
    for handler in handlers:
        logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug("Logging initialized", extra={"environment": settings.ENVIRONMENT, "json_logging": json_logging})
    return logger


logger: DepMatrixLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'current_context',
    'set_request_id',
    'set_user_id',
    'set_matrix_id',
    'generate_request_id',
    'DepMatrixLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
