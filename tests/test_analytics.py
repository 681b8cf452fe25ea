import json
import logging

from api.analytics import LoggingAnalyticsSink, analytics_sinks_from_env
from api.supabase_client import SupabaseEventSink


def test_no_sinks_by_default(monkeypatch):
    monkeypatch.delenv("STORY_SURVEY_ANALYTICS", raising=False)
    assert analytics_sinks_from_env() == []


def test_sinks_from_env(monkeypatch):
    monkeypatch.setenv("STORY_SURVEY_ANALYTICS", "supabase, LOG, bogus")
    sinks = analytics_sinks_from_env()
    assert [type(s) for s in sinks] == [SupabaseEventSink, LoggingAnalyticsSink]


def test_logging_sink_writes_json_line(caplog):
    with caplog.at_level(logging.INFO, logger="api.analytics"):
        LoggingAnalyticsSink().track("survey_click", {"value": 1})
    assert json.loads(caplog.records[-1].getMessage()) == {"event": "survey_click", "value": 1}
