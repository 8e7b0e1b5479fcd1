"""Logging setup: stdout handler whose records carry the current request id.

The request id is held in a context variable set by RequestIDMiddleware, so
gate decisions logged deep in a service can be matched to the HTTP request
and to the audit row written for it.
"""

import logging
import sys
from contextvars import ContextVar

from sqlgate.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

_request_id: ContextVar[str] = ContextVar("sqlgate_request_id", default="-")


def set_request_id(request_id: str) -> object:
    """Bind request_id to the running context; returns the reset token."""
    return _request_id.set(request_id)


def reset_request_id(token: object) -> None:
    _request_id.reset(token)  # type: ignore[arg-type]


def current_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Stamp each record with the request id of the context that logged it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def setup_logging() -> None:
    """Configure root logging once per process.

    Level comes from settings.log_level (DEBUG forced when settings.debug).
    SQLAlchemy engine logging stays at WARNING unless database_echo is on,
    otherwise every audited statement would be logged twice.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.
    """
    return logging.getLogger(name)
