from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from .candidates import Candidate
from .scoring import NoveltyMode

_NEARBY_FRESH_SECONDS = 10 * 60
_SESSION_IDLE_SECONDS = 60 * 60
_MAX_SESSIONS = 1_000


@dataclass
class RequestContext:
    """Everything needed to spin again without rebuilding the pool."""

    selected_cuisines: list[str]
    max_distance_miles: float | None
    novelty_mode: NoveltyMode
    pool: list[Candidate]
    vetoed_ids: set[str] = field(default_factory=set)


@dataclass
class PickerSession:
    context: RequestContext | None = None
    picks: list[Candidate] = field(default_factory=list)
    vetoed_candidate_ids: set[str] = field(default_factory=set)
    nearby: list[Candidate] = field(default_factory=list)
    nearby_last_updated: datetime | None = None
    last_seen: float = 0.0

    def start(self, context: RequestContext, picks: list[Candidate]) -> None:
        self.context = context
        self.vetoed_candidate_ids = set()
        self.picks = picks

    def veto(self, candidate_id: str) -> None:
        self.vetoed_candidate_ids.add(candidate_id)

    def remaining_pool(self) -> list[Candidate]:
        if self.context is None:
            return []
        return [c for c in self.context.pool if c.id not in self.vetoed_candidate_ids]

    def replace_candidate(self, old_id: str, saved: Candidate) -> None:
        """Swap a nearby candidate for its newly saved counterpart."""
        self.picks = [saved if c.id == old_id else c for c in self.picks]
        if self.context is not None:
            pool = self.context.pool
            for index, candidate in enumerate(pool):
                if candidate.id == old_id:
                    pool[index] = saved
                    break
            else:
                pool.append(saved)
        self.vetoed_candidate_ids.discard(old_id)
        self.nearby = [c for c in self.nearby if c.id != old_id]

    def set_nearby(self, candidates: list[Candidate], when: datetime) -> None:
        self.nearby = candidates
        self.nearby_last_updated = when

    def clear_nearby(self) -> None:
        self.nearby = []
        self.nearby_last_updated = None

    def nearby_is_fresh(self, now: datetime) -> bool:
        if self.nearby_last_updated is None:
            return False
        return (now - self.nearby_last_updated).total_seconds() <= _NEARBY_FRESH_SECONDS


_sessions: dict[str, PickerSession] = {}
_lock = threading.Lock()


def new_session_id() -> str:
    return uuid.uuid4().hex


def _evict(now: float) -> None:
    idle = [
        sid for sid, s in _sessions.items()
        if now - s.last_seen >= _SESSION_IDLE_SECONDS
    ]
    for sid in idle:
        del _sessions[sid]


def get_session(session_id: str, now: float | None = None) -> PickerSession:
    """Return the session for *session_id*, creating it on first use.

    Sessions idle for an hour are dropped, and the least recently seen one
    makes room once ``_MAX_SESSIONS`` are live.
    """
    now = time.time() if now is None else now
    with _lock:
        _evict(now)
        session = _sessions.get(session_id)
        if session is None:
            if len(_sessions) >= _MAX_SESSIONS:
                oldest = min(_sessions, key=lambda sid: _sessions[sid].last_seen)
                del _sessions[oldest]
            session = _sessions[session_id] = PickerSession()
        session.last_seen = now
        return session


def find_session(session_id: str | None, now: float | None = None) -> PickerSession | None:
    """Like ``get_session`` but never creates one."""
    if not session_id:
        return None
    now = time.time() if now is None else now
    with _lock:
        _evict(now)
        session = _sessions.get(session_id)
        if session is not None:
            session.last_seen = now
        return session


def session_count() -> int:
    with _lock:
        return len(_sessions)


def clear_sessions() -> None:
    with _lock:
        _sessions.clear()
