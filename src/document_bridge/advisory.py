"""Concurrent-access notices for callers sharing the bridge.

When more than one caller session is active, commands from different
sessions can interleave on the same document and the last write wins.
The bridge does not lock documents; it tells each session once per
document that this can happen.

Sessions are active while they keep sending commands. A session that
has been idle for longer than the idle timeout is forgotten, as if it
had been cleared explicitly.
"""

from __future__ import annotations

import time
from collections.abc import Callable

CONCURRENT_ACCESS_WARNING = (
    "Note: Other sessions are also connected to the bridge. If they target this "
    "document, changes apply immediately (last-write-wins)."
)

DEFAULT_SESSION_IDLE_TIMEOUT = 600.0  # seconds


class ConcurrentAccessAdvisor:
    """Tracks active caller sessions and which documents each has been warned about."""

    def __init__(
        self,
        idle_timeout: float = DEFAULT_SESSION_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._warned: dict[str, set[str]] = {}
        # session id -> last seen
        self._active: dict[str, float] = {}

    @property
    def active_sessions(self) -> int:
        self._expire_idle()
        return len(self._active)

    def touch(self, session_id: str) -> None:
        """Mark a session as active."""
        self._expire_idle()
        self._active[session_id] = self._clock()

    def warning_for(self, session_id: str | None, connection_id: str) -> str | None:
        """Return the notice the first time a session targets a shared document."""
        if not session_id:
            return None
        if self.active_sessions <= 1:
            return None

        warned = self._warned.setdefault(session_id, set())
        if connection_id in warned:
            return None
        warned.add(connection_id)
        return CONCURRENT_ACCESS_WARNING

    def clear_session(self, session_id: str) -> None:
        """Forget a session that ended."""
        self._warned.pop(session_id, None)
        self._active.pop(session_id, None)

    def _expire_idle(self) -> None:
        cutoff = self._clock() - self.idle_timeout
        for session_id in [s for s, seen in self._active.items() if seen < cutoff]:
            self.clear_session(session_id)
