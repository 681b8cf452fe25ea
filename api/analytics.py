from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from api.supabase_client import SupabaseEventSink
from api.utils import env_csv
from story_survey.survey.effects import AnalyticsSink

logger = logging.getLogger("api.analytics")


class LoggingAnalyticsSink:
    """Writes each analytics event as a one-line JSON log record."""

    def track(self, event: str, attributes: Dict[str, Any]) -> None:
        logger.info(json.dumps({"event": event, **attributes}, ensure_ascii=False, separators=(",", ":")))


def analytics_sinks_from_env() -> List[AnalyticsSink]:
    """
    Build analytics sinks from `STORY_SURVEY_ANALYTICS` (comma-separated).

    - `supabase`: insert into the events table
    - `log`: one-line JSON log records

    Unset means no sinks; events are then dropped silently.
    """
    sinks: List[AnalyticsSink] = []
    for name in env_csv("STORY_SURVEY_ANALYTICS"):
        if name == "supabase":
            sinks.append(SupabaseEventSink())
        elif name == "log":
            sinks.append(LoggingAnalyticsSink())
        else:
            logger.warning("analytics.unknown_sink name=%s", name)
    return sinks
