"""Logging setup for the storefront API.

Standard-library logging, configured once at startup. Every record carries
the id of the request it was emitted under (or "-" outside a request), so
that validator warnings, promo redemptions and saved orders for one call can
be correlated.
"""
from __future__ import annotations

from contextvars import ContextVar
import logging
import os

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


def get_request_id() -> str:
    return _request_id.get()


def bind_request_id(request_id: str):
    """Set the request id for the current context. Returns a reset token."""
    return _request_id.set(request_id)


def reset_request_id(token) -> None:
    _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamp the current request id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger. Safe to call more than once."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if getattr(handler, "_storefront", False):
            return

    handler = logging.StreamHandler()
    handler._storefront = True
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)
