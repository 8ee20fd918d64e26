"""Shop and booking-session correlation context for log records.

Every record emitted through a session logger carries ``shop_id`` and
``session_id``, so a single customer's path from cart to reservation can be
followed across the pricing, availability and reservation modules.

Usage:
    from src.logging_context import get_session_logger, session_context

    logger = get_session_logger(__name__)
    with session_context("nomad-lab", "BS-1A2B3C"):
        logger.info("Quote computed")  # record.session_id == "nomad-lab/BS-1A2B3C"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

NO_SHOP = "NO_SHOP"
NO_SESSION = "NO_SESSION"

_shop_id: ContextVar[str] = ContextVar("shop_id", default=NO_SHOP)
_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_context(shop_id: str, session_id: str) -> None:
    """Bind the current context to a shop and booking session."""
    _shop_id.set(shop_id)
    _session_id.set(session_id)


def get_session_id() -> str:
    """Correlation id of the current context, ``shop/session``."""
    if _session_id.get() == NO_SESSION:
        return NO_SESSION
    return f"{_shop_id.get()}/{_session_id.get()}"


@contextmanager
def session_context(shop_id: str, session_id: str) -> Iterator[None]:
    """Scope the correlation ids to a block, restoring the previous ones after."""
    shop_token = _shop_id.set(shop_id)
    session_token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(session_token)
        _shop_id.reset(shop_token)


class SessionIdFilter(logging.Filter):
    """Stamps shop_id and session_id on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.shop_id = _shop_id.get()  # type: ignore[attr-defined]
        record.session_id = get_session_id()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached once.

    Formatters can then use ``%(shop_id)s`` and ``%(session_id)s``.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
