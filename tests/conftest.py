from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
for _p in (_SRC, _REPO_ROOT):
    if _p.exists() and str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

from story_survey.survey.errors import PersistenceError  # noqa: E402


COMPLETE_ANSWERS: Dict[str, Any] = {
    "name": "Asha",
    "email": "a@x.com",
    "relationship": "Parent",
    "duration": "1-3 years",
    "typical_day": "Appointments, meals, medication.",
    "difficulty_rating": 7,
    "difficulty_reason": "Little time for myself.",
    "emotional_challenge": "Guilt.",
    "isolation_feeling": "Often.",
    "relationship_learning": "How stubborn we both are.",
    "connection_moment": "Listening to old records together.",
    "love_memory": "Her laugh.",
    "coping_methods": "Walking.",
    "talk_to_whom": "My sister.",
    "support_systems": ["Friends/Family"],
    "missing_support": "Someone to take over for a day.",
    "extra_hour": "Sleep.",
    "lost_activity": "Painting.",
}


class RecordingSink:
    """Response sink that records inserted rows and can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.rows: List[Dict[str, Any]] = []
        self.fail = fail

    async def insert(self, row: Dict[str, Any]) -> None:
        if self.fail:
            raise PersistenceError("insert rejected")
        self.rows.append(row)


class RecordingAnalytics:
    def __init__(self) -> None:
        self.events: List[tuple] = []

    def track(self, event: str, attributes: Dict[str, Any]) -> None:
        self.events.append((event, attributes))

    def names(self) -> List[str]:
        return [e for e, _ in self.events]


@pytest.fixture
def answers() -> Dict[str, Any]:
    return dict(COMPLETE_ANSWERS, support_systems=list(COMPLETE_ANSWERS["support_systems"]))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def analytics() -> RecordingAnalytics:
    return RecordingAnalytics()
