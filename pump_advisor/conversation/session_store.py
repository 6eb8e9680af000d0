"""
In-memory session store with idle expiry.

The store owns every Session. Time comes from an injected clock so expiry
is deterministic in tests; ``evict_expired`` is called explicitly, either by
a test or by the background SessionSweeper.

Usage:
    store = SessionStore(ttl=timedelta(hours=24))
    session = store.get_or_create("sess-1")
    removed = store.evict_expired()
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pump_advisor.config import settings
from pump_advisor.schemas.session_schema import Session

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Owns sessions keyed by session ID and reclaims idle ones."""

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.ttl = ttl or timedelta(hours=settings.session.ttl_hours)
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    def get_or_create(self, session_id: str) -> Session:
        """Return the session for ``session_id``, creating it if needed.

        Refreshes the last-access time either way.
        """
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id=session_id, created_at=now, last_accessed=now)
                self._sessions[session_id] = session
                logger.debug("Session created: %s", session_id)
            else:
                session.last_accessed = now
            return session

    def get(self, session_id: str) -> Optional[Session]:
        """Look up a session without refreshing its access time."""
        with self._lock:
            return self._sessions.get(session_id)

    def evict_expired(self, now: Optional[datetime] = None) -> int:
        """Drop sessions idle for longer than the TTL. Returns how many were removed."""
        now = now or self._clock()
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if now - session.last_accessed > self.ttl
            ]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Evicted %d expired session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions


class SessionSweeper:
    """Background thread that periodically evicts expired sessions."""

    def __init__(self, store: SessionStore, interval: Optional[timedelta] = None) -> None:
        self.store = store
        self.interval = interval or timedelta(minutes=settings.session.sweep_interval_minutes)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="session-sweeper", daemon=True)
        self._thread.start()
        logger.debug("Session sweeper started (every %s)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval.total_seconds()):
            self.store.evict_expired()
