from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

import anyio
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_404_NOT_FOUND, HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR


def _repo_root() -> Path:
    # `api/main.py` lives at `<repo>/api/main.py`
    return Path(__file__).resolve().parents[1]


def _ensure_src_on_path() -> None:
    src = _repo_root() / "src"
    if not src.is_dir():
        return
    s = str(src)
    if s not in sys.path:
        sys.path.insert(0, s)


_ensure_src_on_path()

from api.analytics import analytics_sinks_from_env  # noqa: E402
from api.http_logging import install_http_logging  # noqa: E402
from api.routes.health import router as health_router  # noqa: E402
from api.routes.survey import router as survey_router  # noqa: E402
from api.session_store import SessionNotFound, SessionStore  # noqa: E402
from api.supabase_client import SupabaseResponseSink, shutdown_event_pool  # noqa: E402
from api.utils import env_int, request_id  # noqa: E402
from story_survey.survey.controller import ResponseSink  # noqa: E402
from story_survey.survey.effects import AnalyticsSink  # noqa: E402
from story_survey.survey.errors import InvalidFieldError  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Flush queued analytics inserts before the worker threads go away.
    await anyio.to_thread.run_sync(shutdown_event_pool)


def create_app(
    *,
    response_sink: Optional[ResponseSink] = None,
    analytics: Optional[Sequence[AnalyticsSink]] = None,
    session_ttl_sec: Optional[int] = None,
) -> FastAPI:
    """
    Build the survey service.

    Collaborators default to the environment-configured ones (Supabase for
    persistence, `STORY_SURVEY_ANALYTICS` for analytics). Tests pass fakes.
    """
    # Load `.env` + `.env.local` when present (local dev convenience).
    load_dotenv(_repo_root() / ".env", override=False)
    load_dotenv(_repo_root() / ".env.local", override=False)

    app = FastAPI(title="story-survey-service", version="0.1.0", lifespan=_lifespan)
    app.state.sessions = SessionStore(
        response_sink if response_sink is not None else SupabaseResponseSink(),
        analytics if analytics is not None else analytics_sinks_from_env(),
        ttl_sec=session_ttl_sec if session_ttl_sec is not None else env_int("STORY_SURVEY_SESSION_TTL_SEC", 7200),
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        rid = request_id("val")
        logger.warning("422 validation_error requestId=%s path=%s errors=%s", rid, request.url.path, exc.errors())
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "ok": False,
                "error": "validation_error",
                "message": "Request body did not match expected schema.",
                "requestId": rid,
            },
        )

    @app.exception_handler(InvalidFieldError)
    async def _invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
        rid = request_id("val")
        logger.info("422 invalid_field requestId=%s path=%s field=%s", rid, request.url.path, exc.field)
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "ok": False,
                "error": "validation_error",
                "message": exc.message,
                "field": exc.field,
                "requestId": rid,
            },
        )

    @app.exception_handler(SessionNotFound)
    async def _session_not_found_handler(request: Request, exc: SessionNotFound) -> JSONResponse:
        return JSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content={"ok": False, "error": "session_not_found", "message": "Survey session not found or expired."},
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        rid = request_id("err")
        logger.error("500 internal_error requestId=%s path=%s", rid, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "ok": False,
                "error": "internal_error",
                "message": "Unhandled server error.",
                "requestId": rid,
            },
        )

    app.include_router(health_router)
    app.include_router(survey_router)
    install_http_logging(app)
    return app


app = create_app()
