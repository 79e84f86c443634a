"""
Logging configuration for the API.

Every record logged while a request is being served carries that
request's short ID, which is also returned in the X-Request-ID header.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

from movies_pipeline.utils import LOG_DATE_FORMAT, daily_log_file

API_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s"

# Request ID of the request being served in the current task
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Add request_id to log records ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def setup_api_logger(
    name: str = "api",
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up the API logger: daily file at `level`, console at WARNING.

    Both handlers stamp records with the current request ID.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(API_LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    request_filter = RequestIdFilter()

    handlers = [
        (logging.FileHandler(daily_log_file(log_dir, name)), level),
        (logging.StreamHandler(sys.stdout), logging.WARNING),
    ]
    for handler, handler_level in handlers:
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
        logger.addHandler(handler)

    return logger


def generate_request_id() -> str:
    """Short unique request ID."""
    return uuid.uuid4().hex[:8]


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def log_request_completed(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Log a finished request at a level matching its status code."""
    message = f"Request completed: {method} {path} status={status_code} duration={duration_ms:.2f}ms"
    if status_code >= 500:
        logger.error(message)
    elif status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)


logger = setup_api_logger()
