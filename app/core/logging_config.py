"""Centralized logging configuration for the application."""
from __future__ import annotations

import hashlib
import logging
import logging.handlers
import os
import time
from contextvars import ContextVar

from app.core.config import settings

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Set per request by RequestContextMiddleware.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being handled."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(log_dir: str | None = None, level: str | None = None) -> None:
    """Configure the root, security and uvicorn loggers."""
    log_dir = log_dir or settings.LOG_DIR
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    logging.Formatter.converter = time.gmtime
    request_filter = RequestIdFilter()

    file_handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    stream_handler = logging.StreamHandler()
    for handler in (file_handler, stream_handler):
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [file_handler, stream_handler]

    # Authentication events; filter on the logger name to audit them.
    logging.getLogger("app.security").setLevel(log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)
    # SQL echo is controlled by DEBUG on the engine, not by LOG_LEVEL.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)


def fingerprint_email(email: str | None) -> str:
    """Return a short, stable hash of an email address for log lines."""
    normalized = (email or "").strip().lower()
    if "@" not in normalized:
        return "unknown"
    return hashlib.sha256(normalized.encode()).hexdigest()[:12]


__all__ = ["fingerprint_email", "request_id_var", "setup_logging"]
