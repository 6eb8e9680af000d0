"""Session ID logging context for tracing one customer's intake in the logs.

The advisor sets the session ID at the start of every chat turn. A
``SessionIdFilter`` installed on the root handlers copies it onto each record,
and ``LOG_FORMAT`` prints it, so every line written during a turn (stage
machine, sizing, fact lookups, reply retries) names the session it belongs to.

Usage:
    from pump_advisor.logging_context import install_session_filter, set_session_id

    logging.basicConfig(format=LOG_FORMAT)
    install_session_filter()
    set_session_id("sess-abc123")
    logging.getLogger(__name__).info("Stage advanced")
    # 2025-06-01 12:00:00 [sess-abc123] [pump_advisor.advisor] INFO: Stage advanced
"""

import logging
from contextvars import ContextVar
from typing import Iterable, Optional

NO_SESSION = "-"

LOG_FORMAT = "%(asctime)s [%(session_id)s] [%(name)s] %(levelname)s: %(message)s"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    _session_id.set(session_id)


def get_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Stamps the current session ID on records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def install_session_filter(handlers: Optional[Iterable[logging.Handler]] = None) -> None:
    """Attach a SessionIdFilter to ``handlers`` (default: the root handlers).

    Handler-level filters see records propagated from every logger, including
    third-party ones, so ``%(session_id)s`` never fails to format.
    """
    if handlers is None:
        handlers = logging.getLogger().handlers
    for handler in handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())
