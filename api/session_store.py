from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from story_survey.survey.controller import ResponseSink, SurveyController
from story_survey.survey.effects import AnalyticsSink, EffectDispatcher


class SessionNotFound(KeyError):
    pass


class CelebrationCollector:
    """Holds the burst plan of the last successful submit until the HTTP layer hands it out."""

    def __init__(self) -> None:
        self._pending: Optional[List[Dict[str, Any]]] = None

    def celebrate(self, bursts: List[Dict[str, Any]]) -> None:
        self._pending = bursts

    def drain(self) -> Optional[List[Dict[str, Any]]]:
        bursts, self._pending = self._pending, None
        return bursts


@dataclass
class SurveySession:
    session_id: str
    controller: SurveyController
    dispatcher: EffectDispatcher
    celebration: CelebrationCollector
    expires_at: float = field(default=0.0)


class SessionStore:
    """
    In-memory survey sessions keyed by session id, expiring after `ttl_sec` idle.

    A session that is mid-submission is never evicted.
    """

    def __init__(
        self,
        sink: ResponseSink,
        analytics: Sequence[AnalyticsSink] = (),
        *,
        ttl_sec: int = 7200,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sink = sink
        self._analytics = list(analytics)
        self._ttl = max(300, min(86400, int(ttl_sec or 0)))
        self._clock = clock
        self._sessions: Dict[str, SurveySession] = {}

    @property
    def analytics(self) -> List[AnalyticsSink]:
        return list(self._analytics)

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> SurveySession:
        self._evict_expired()
        session_id = uuid.uuid4().hex
        celebration = CelebrationCollector()
        dispatcher = EffectDispatcher(self._analytics, celebration, session_id=session_id)
        session = SurveySession(
            session_id=session_id,
            controller=SurveyController(self._sink, dispatcher),
            dispatcher=dispatcher,
            celebration=celebration,
        )
        self._touch(session)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> SurveySession:
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        self._touch(session)
        return session

    def _touch(self, session: SurveySession) -> None:
        session.expires_at = self._clock() + self._ttl

    def _evict_expired(self) -> None:
        now = self._clock()
        for sid, session in list(self._sessions.items()):
            if now >= session.expires_at and not session.controller.submitting:
                self._sessions.pop(sid, None)
