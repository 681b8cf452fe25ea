from fastapi.testclient import TestClient

import api.supabase_client as sc
from api.main import create_app
from conftest import RecordingSink


def _client(sink, analytics):
    return TestClient(create_app(response_sink=sink, analytics=[analytics]))


def _open(client):
    resp = client.post("/api/survey/sessions")
    assert resp.status_code == 201
    return resp.json()["sessionId"]


def _fill_and_reach_last(client, sid, answers):
    for key, value in answers.items():
        if key == "support_systems":
            for item in value:
                r = client.put(f"/api/survey/sessions/{sid}/support-systems", json={"value": item, "included": True})
                assert r.status_code == 200
            continue
        r = client.patch(f"/api/survey/sessions/{sid}/fields", json={"field": key, "value": value})
        assert r.status_code == 200, r.json()
    for expected in (2, 3, 4, 5):
        assert client.post(f"/api/survey/sessions/{sid}/advance").json()["section"] == expected


def test_open_session_fires_survey_click(sink, analytics):
    client = _client(sink, analytics)
    resp = client.post("/api/survey/sessions")
    body = resp.json()
    assert body["section"] == 1
    assert body["sectionTitle"] == "Contact Information"
    assert body["canAdvance"] is False
    assert body["missingFields"] == ["name", "email"]
    assert analytics.names() == ["survey_click"]


def test_advance_is_gated_and_retreat_floors(sink, analytics):
    client = _client(sink, analytics)
    sid = _open(client)

    assert client.post(f"/api/survey/sessions/{sid}/advance").json()["section"] == 1
    client.patch(f"/api/survey/sessions/{sid}/fields", json={"field": "name", "value": "Asha"})
    state = client.patch(f"/api/survey/sessions/{sid}/fields", json={"field": "email", "value": "a@x.com"}).json()
    assert state["canAdvance"] is True
    assert client.post(f"/api/survey/sessions/{sid}/advance").json()["section"] == 2
    assert client.post(f"/api/survey/sessions/{sid}/retreat").json()["section"] == 1
    assert client.post(f"/api/survey/sessions/{sid}/retreat").json()["section"] == 1


def test_full_submission_returns_thank_you_and_celebration(sink, analytics, answers, monkeypatch):
    monkeypatch.setenv("STORY_SURVEY_SCHEDULE_URL", "https://example.com/book")
    client = _client(sink, analytics)
    sid = _open(client)
    _fill_and_reach_last(client, sid, answers)

    body = client.post(f"/api/survey/sessions/{sid}/submit").json()

    assert body["outcome"] == "accepted"
    assert body["completed"] is True
    assert body["toast"]["title"] == "Thank you for sharing your story!"
    assert body["thankYou"]["scheduleUrl"] == "https://example.com/book"
    assert len(body["celebration"]) == 5
    assert len(sink.rows) == 1
    assert sink.rows[0]["stress_level"] == 7
    assert analytics.names() == ["survey_click", "survey_completed"]

    again = client.post(f"/api/survey/sessions/{sid}/submit").json()
    assert again["outcome"] == "rejected"
    assert len(sink.rows) == 1


def test_failed_submission_is_recoverable(analytics, answers):
    sink = RecordingSink(fail=True)
    client = _client(sink, analytics)
    sid = _open(client)
    _fill_and_reach_last(client, sid, answers)

    body = client.post(f"/api/survey/sessions/{sid}/submit").json()
    assert body["outcome"] == "failed"
    assert body["completed"] is False
    assert body["section"] == 5
    assert body["toast"] == {"title": "Something went wrong", "description": "Please try again or contact us directly."}
    assert body["draft"]["name"] == "Asha"

    sink.fail = False
    assert client.post(f"/api/survey/sessions/{sid}/submit").json()["outcome"] == "accepted"


def test_restart_after_completion(sink, analytics, answers):
    client = _client(sink, analytics)
    sid = _open(client)
    _fill_and_reach_last(client, sid, answers)
    client.post(f"/api/survey/sessions/{sid}/submit")

    body = client.post(f"/api/survey/sessions/{sid}/restart").json()
    assert body["section"] == 1
    assert body["completed"] is False
    assert body["draft"]["name"] == ""


def test_invalid_field_value_is_422(sink, analytics):
    client = _client(sink, analytics)
    sid = _open(client)
    resp = client.patch(f"/api/survey/sessions/{sid}/fields", json={"field": "difficulty_rating", "value": 42})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"
    assert resp.json()["field"] == "difficulty_rating"


def test_malformed_body_is_422(sink, analytics):
    client = _client(sink, analytics)
    sid = _open(client)
    resp = client.put(f"/api/survey/sessions/{sid}/support-systems", json={"value": "Nothing"})
    assert resp.status_code == 422
    assert resp.json()["ok"] is False


def test_unknown_session_is_404(sink, analytics):
    client = _client(sink, analytics)
    resp = client.get("/api/survey/sessions/missing")
    assert resp.status_code == 404
    assert resp.json()["error"] == "session_not_found"


def test_calendar_click_event(sink, analytics):
    client = _client(sink, analytics)
    assert client.post("/api/survey/events/calendar-click", json={"sessionId": "abc"}).json() == {"ok": True}
    assert analytics.events == [
        (
            "calendar_click",
            {"event_category": "engagement", "event_label": "schedule_conversation", "value": 1, "session_id": "abc"},
        )
    ]


def test_health(sink, analytics, monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_SUPABASE_URL", raising=False)
    client = _client(sink, analytics)
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["service"] == "story-survey-service"


def test_unreachable_store_still_answers_with_toast(analytics, answers):
    class _Unreachable:
        async def insert(self, row):
            raise ConnectionError("connection refused")

    client = _client(_Unreachable(), analytics)
    sid = _open(client)
    _fill_and_reach_last(client, sid, answers)

    resp = client.post(f"/api/survey/sessions/{sid}/submit")
    assert resp.status_code == 200
    assert resp.json()["outcome"] == "failed"
    assert resp.json()["toast"]["title"] == "Something went wrong"


def test_completed_session_ignores_field_writes(sink, analytics, answers):
    client = _client(sink, analytics)
    sid = _open(client)
    _fill_and_reach_last(client, sid, answers)
    client.post(f"/api/survey/sessions/{sid}/submit")

    body = client.patch(f"/api/survey/sessions/{sid}/fields", json={"field": "name", "value": "Changed"}).json()
    assert body["completed"] is True
    assert body["draft"]["name"] == "Asha"


def test_shutdown_stops_event_workers(sink, analytics):
    sc._event_pool()
    with TestClient(create_app(response_sink=sink, analytics=[analytics])) as client:
        assert client.get("/health").status_code == 200
    assert sc._event_executor is None
