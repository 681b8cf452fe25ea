from __future__ import annotations

import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from api.models import (
    CalendarClickEvent,
    FieldUpdate,
    NoticeInfo,
    SessionState,
    SubmitResult,
    SupportSystemToggle,
    ThankYouInfo,
)
from api.session_store import SessionStore, SurveySession
from story_survey.survey.controller import SUBMIT_SUCCEEDED, SubmitOutcome
from story_survey.survey.effects import EffectDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/survey", tags=["survey"])


def _store(request: Request) -> SessionStore:
    return request.app.state.sessions


def _state(session: SurveySession) -> Dict[str, Any]:
    state = SessionState.from_snapshot(session.session_id, session.controller.snapshot())
    return state.model_dump(by_alias=True)


@router.post("/sessions")
async def create_session(request: Request) -> JSONResponse:
    """Open a survey from the call-to-action. Fires the `survey_click` event."""
    session = _store(request).create()
    session.dispatcher.survey_click()
    logger.info("survey.session.created session=%s", session.session_id)
    return JSONResponse(_state(session), status_code=201)


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
    return _state(_store(request).get(session_id))


@router.patch("/sessions/{session_id}/fields")
async def set_field(request: Request, session_id: str, body: FieldUpdate = Body(...)) -> Dict[str, Any]:
    session = _store(request).get(session_id)
    session.controller.set_field(body.field, body.value)
    return _state(session)


@router.put("/sessions/{session_id}/support-systems")
async def set_support_system(
    request: Request,
    session_id: str,
    body: SupportSystemToggle = Body(...),
) -> Dict[str, Any]:
    session = _store(request).get(session_id)
    session.controller.set_support_system(body.value, body.included)
    return _state(session)


@router.post("/sessions/{session_id}/advance")
async def advance(request: Request, session_id: str) -> Dict[str, Any]:
    session = _store(request).get(session_id)
    session.controller.advance()
    return _state(session)


@router.post("/sessions/{session_id}/retreat")
async def retreat(request: Request, session_id: str) -> Dict[str, Any]:
    session = _store(request).get(session_id)
    session.controller.retreat()
    return _state(session)


@router.post("/sessions/{session_id}/submit")
async def submit(request: Request, session_id: str) -> Dict[str, Any]:
    """
    Persist the draft from the last section.

    A failed insert is recoverable: the response is still 200, `outcome` is
    `failed` and `toast` carries the message. The draft is kept for a retry.
    """
    session = _store(request).get(session_id)
    outcome = await session.controller.submit()
    result: Dict[str, Any] = {"session_id": session_id, **session.controller.snapshot(), "outcome": outcome.value}

    if outcome is SubmitOutcome.ACCEPTED:
        result["toast"] = NoticeInfo(title=SUBMIT_SUCCEEDED.title, description=SUBMIT_SUCCEEDED.description)
        result["thank_you"] = ThankYouInfo(schedule_url=(os.getenv("STORY_SURVEY_SCHEDULE_URL") or None))
        result["celebration"] = session.celebration.drain()
    elif outcome is SubmitOutcome.FAILED:
        result["toast"] = result["error"]

    return SubmitResult.model_validate(result).model_dump(by_alias=True)


@router.post("/sessions/{session_id}/restart")
async def restart(request: Request, session_id: str) -> Dict[str, Any]:
    session = _store(request).get(session_id)
    session.controller.restart()
    return _state(session)


@router.post("/events/calendar-click")
async def calendar_click(request: Request, body: CalendarClickEvent = Body(default_factory=CalendarClickEvent)) -> Dict[str, Any]:
    EffectDispatcher(_store(request).analytics, session_id=body.session_id).calendar_click()
    return {"ok": True}
