import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from .run import Run


class RunEntry:
    """A registered run with the lock that serialises its moves and submit."""

    def __init__(self, run: Run, now: float):
        self.run = run
        self.lock = threading.Lock()
        self.last_seen = now


class RunRegistry:
    """In-memory store of in-progress runs, bounded in size and idle time.

    Entries are kept in least-recently-used order. A run idle for longer
    than ``ttl_sec`` is dropped on the next access, and adding past
    ``max_active`` evicts the stalest runs first.
    """

    def __init__(self, ttl_sec: float = 3600, max_active: int = 10000,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_sec = ttl_sec
        self.max_active = max(1, int(max_active))
        self.clock = clock
        self._entries: 'OrderedDict[str, RunEntry]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_token):
        with self._lock:
            return session_token in self._entries

    def _expire_locked(self, now: float) -> int:
        dropped = 0
        while self._entries:
            token, entry = next(iter(self._entries.items()))
            if now - entry.last_seen < self.ttl_sec:
                break
            del self._entries[token]
            dropped += 1
        return dropped

    def add(self, run: Run) -> RunEntry:
        now = self.clock()
        with self._lock:
            self._expire_locked(now)
            self._entries.pop(run.session_token, None)
            while len(self._entries) >= self.max_active:
                self._entries.popitem(last=False)
            entry = RunEntry(run, now)
            self._entries[run.session_token] = entry
            return entry

    def get(self, session_token: str) -> Optional[RunEntry]:
        """Look up a run and mark it as recently used."""
        now = self.clock()
        with self._lock:
            self._expire_locked(now)
            entry = self._entries.get(session_token)
            if entry is None:
                return None
            entry.last_seen = now
            self._entries.move_to_end(session_token)
            return entry

    def discard(self, session_token: str) -> None:
        with self._lock:
            self._entries.pop(session_token, None)
