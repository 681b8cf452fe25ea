"""
Post-submission side effects: analytics events and the celebration burst plan.

Everything here is best-effort. A sink that raises is logged and skipped;
it never reaches the submission flow or the user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from story_survey.schemas.response_draft import ResponseDraft

logger = logging.getLogger(__name__)

EVENT_CATEGORY = "engagement"

SURVEY_CLICK = "survey_click"
CALENDAR_CLICK = "calendar_click"
SURVEY_COMPLETED = "survey_completed"

_EVENT_LABELS = {
    SURVEY_CLICK: "share_story_button",
    CALENDAR_CLICK: "schedule_conversation",
    SURVEY_COMPLETED: "survey_submission",
}


class AnalyticsSink(Protocol):
    def track(self, event: str, attributes: Dict[str, Any]) -> None: ...


class CelebrationSink(Protocol):
    def celebrate(self, bursts: List[Dict[str, Any]]) -> None: ...


@dataclass(frozen=True)
class Burst:
    particle_ratio: float
    spread: int
    start_velocity: Optional[int] = None
    decay: Optional[float] = None
    scalar: Optional[float] = None

    def options(self) -> Dict[str, Any]:
        """canvas-confetti options for this burst."""
        opts: Dict[str, Any] = {
            "origin": dict(CELEBRATION_ORIGIN),
            "particleCount": int(CELEBRATION_PARTICLES * self.particle_ratio),
            "spread": self.spread,
            "shapes": list(CELEBRATION_SHAPES),
            "colors": list(CELEBRATION_COLORS),
        }
        if self.start_velocity is not None:
            opts["startVelocity"] = self.start_velocity
        if self.decay is not None:
            opts["decay"] = self.decay
        if self.scalar is not None:
            opts["scalar"] = self.scalar
        return opts


# Tunable look of the thank-you celebration.
CELEBRATION_PARTICLES = 200
CELEBRATION_ORIGIN = {"y": 0.7}
CELEBRATION_SHAPES = ("heart",)
CELEBRATION_COLORS = ("#ff69b4", "#ff1493", "#ff6347", "#ffc0cb", "#dda0dd")
CELEBRATION_BURSTS = (
    Burst(0.25, spread=26, start_velocity=55),
    Burst(0.2, spread=60),
    Burst(0.35, spread=100, decay=0.91, scalar=0.8),
    Burst(0.1, spread=120, start_velocity=25, decay=0.92, scalar=1.2),
    Burst(0.1, spread=120, start_velocity=45),
)


def celebration_plan(bursts: Sequence[Burst] = CELEBRATION_BURSTS) -> List[Dict[str, Any]]:
    return [b.options() for b in bursts]


class EffectDispatcher:
    """
    Fans analytics events out to the configured sinks and triggers the celebration.

    Both collaborators are optional; with none configured every call is a no-op.
    """

    def __init__(
        self,
        analytics: Iterable[AnalyticsSink] = (),
        celebration: Optional[CelebrationSink] = None,
        *,
        session_id: Optional[str] = None,
    ) -> None:
        self._analytics = [s for s in analytics if s is not None]
        self._celebration = celebration
        self._session_id = session_id

    def survey_click(self) -> None:
        self._emit(SURVEY_CLICK)

    def calendar_click(self) -> None:
        self._emit(CALENDAR_CLICK)

    def survey_completed(self, draft: ResponseDraft) -> None:
        self._emit(SURVEY_COMPLETED, relationship=draft.relationship)
        if self._celebration is None:
            return
        try:
            self._celebration.celebrate(celebration_plan())
        except Exception:
            logger.debug("effects.celebration_failed", exc_info=True)

    def _emit(self, event: str, **extra: Any) -> None:
        attributes: Dict[str, Any] = {
            "event_category": EVENT_CATEGORY,
            "event_label": _EVENT_LABELS[event],
            "value": 1,
        }
        attributes.update(extra)
        if self._session_id:
            attributes["session_id"] = self._session_id
        for sink in self._analytics:
            try:
                sink.track(event, dict(attributes))
            except Exception:
                logger.debug("effects.analytics_failed event=%s sink=%s", event, type(sink).__name__, exc_info=True)
