"""
Supabase adapters for survey persistence and analytics.

Uses the official Supabase Python client. The survey core only needs two
write paths:

- `survey_responses`: one row per completed survey (`SupabaseResponseSink`)
- `survey_events`: fire-and-forget analytics events (`SupabaseEventSink`)
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import anyio
from supabase import Client, create_client

from story_survey.survey.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_RESPONSES_TABLE = "survey_responses"
DEFAULT_EVENTS_TABLE = "survey_events"

_client: Optional[Client] = None
_event_executor: Optional[ThreadPoolExecutor] = None
# Events past this many queued inserts are dropped.
_MAX_PENDING_EVENTS = 256
_pending_events = threading.BoundedSemaphore(_MAX_PENDING_EVENTS)


def get_supabase_client() -> Optional[Client]:
    """Get or create Supabase client (singleton). Returns None when not configured."""
    global _client

    if _client is not None:
        return _client

    # Try NEXT_PUBLIC_SUPABASE_URL first (shared with the site build), then SUPABASE_URL
    url = os.getenv("NEXT_PUBLIC_SUPABASE_URL") or os.getenv("SUPABASE_URL")
    # Service role key for the backend, then the public anon key
    key = (
        os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        or os.getenv("SUPABASE_ANON_KEY")
        or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    )

    if not url or not key:
        return None

    try:
        _client = create_client(url, key)
        return _client
    except Exception:
        logger.exception("supabase.client_create_failed")
        return None


def reset_supabase_client() -> None:
    global _client
    _client = None


def responses_table() -> str:
    return (os.getenv("STORY_SURVEY_RESPONSES_TABLE") or "").strip() or DEFAULT_RESPONSES_TABLE


def events_table() -> str:
    return (os.getenv("STORY_SURVEY_EVENTS_TABLE") or "").strip() or DEFAULT_EVENTS_TABLE


def _insert_row(table: str, row: Dict[str, Any]) -> None:
    client = get_supabase_client()
    if not client:
        raise PersistenceError("Supabase is not configured")
    try:
        client.table(table).insert([row]).execute()
    except Exception as e:
        raise PersistenceError(f"Error inserting into {table}: {e}") from e


class SupabaseResponseSink:
    """Persists one mapped survey row per completed submission."""

    def __init__(self, table: Optional[str] = None) -> None:
        self.table = table or responses_table()

    async def insert(self, row: Dict[str, Any]) -> None:
        # supabase-py is synchronous; keep the event loop free while it runs.
        await anyio.to_thread.run_sync(_insert_row, self.table, row)


def _event_pool() -> ThreadPoolExecutor:
    global _event_executor
    if _event_executor is None:
        _event_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="survey-events")
    return _event_executor


def shutdown_event_pool(wait: bool = True) -> None:
    """Drain queued event inserts and stop the worker threads."""
    global _event_executor
    executor, _event_executor = _event_executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


def _insert_event_quietly(table: str, row: Dict[str, Any]) -> None:
    try:
        _insert_row(table, row)
    except PersistenceError:
        logger.debug("supabase.event_insert_failed table=%s event=%s", table, row.get("event_type"), exc_info=True)


class SupabaseEventSink:
    """Analytics sink writing one `survey_events` row per event, off the request path."""

    def __init__(self, table: Optional[str] = None) -> None:
        self.table = table or events_table()

    def row_for(self, event: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(attributes)
        return {
            "session_id": payload.pop("session_id", None),
            "event_type": event,
            "payload_json": payload,
        }

    def track(self, event: str, attributes: Dict[str, Any]) -> None:
        slots = _pending_events
        if not slots.acquire(blocking=False):
            logger.warning("supabase.event_dropped table=%s event=%s", self.table, event)
            return
        try:
            future = _event_pool().submit(_insert_event_quietly, self.table, self.row_for(event, attributes))
        except RuntimeError:
            slots.release()
            logger.warning("supabase.event_dropped table=%s event=%s", self.table, event, exc_info=True)
            return
        future.add_done_callback(lambda _f: slots.release())
