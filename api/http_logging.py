from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.utils import env_bool, env_int

logger = logging.getLogger("api.http")


_SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "apikey",
}

# Survey answers that identify the respondent.
_PII_FIELDS = {"name", "email", "age"}


def _redact(value: Any) -> Any:
    """
    Mask respondent PII in logged JSON bodies.

    Covers draft snapshots (`{"draft": {"email": ...}}`) as well as single
    field writes (`{"field": "email", "value": ...}`).
    """
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        pii_write = str(value.get("field") or "").lower() in _PII_FIELDS
        for k, v in value.items():
            key = str(k).lower()
            if key in _PII_FIELDS or (pii_write and key == "value"):
                out[k] = "***" if v not in (None, "") else v
            else:
                out[k] = _redact(v)
        return out
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _decode_headers(headers: Optional[Iterable[Tuple[bytes, bytes]]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    if not headers:
        return out
    for k, v in headers:
        ks = k.decode("latin-1").lower()
        vs = v.decode("latin-1")
        out[ks] = "***" if ks in _SENSITIVE_HEADERS else vs
    return out


def _header(headers: Optional[Iterable[Tuple[bytes, bytes]]], name: bytes) -> Optional[str]:
    for k, v in headers or []:
        if k.lower() == name:
            return v.decode("latin-1")
    return None


def _parse_body(content_type: str, body: bytes) -> Any:
    if not body:
        return ""
    if "application/json" in (content_type or "").lower():
        try:
            return _redact(json.loads(body.decode("utf-8", errors="replace")))
        except ValueError:
            return "<invalid json>"
    return "<non-json>"


class HttpLoggingMiddleware:
    """One JSON log line per request with redacted request/response bodies."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_headers: bool,
        max_body_bytes: int,
    ) -> None:
        self.app = app
        self.log_headers = log_headers
        self.max_body_bytes = max(0, max_body_bytes)

    def _capture(self, buf: bytearray, chunk: bytes) -> bool:
        """Append up to the byte cap; returns True when the chunk was cut."""
        remaining = self.max_body_bytes - len(buf)
        if remaining > 0:
            buf.extend(chunk[:remaining])
        return len(chunk) > remaining

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        req_headers_list: List[Tuple[bytes, bytes]] = list(scope.get("headers") or [])
        request_id = _header(req_headers_list, b"x-request-id") or uuid.uuid4().hex[:12]

        req_buf = bytearray()
        res_buf = bytearray()
        truncated = {"request": False, "response": False}
        res_status: Optional[int] = None
        res_ct = ""

        async def receive_wrapped() -> Message:
            message = await receive()
            body = message.get("body") or b""
            if message.get("type") == "http.request" and body and self.max_body_bytes:
                truncated["request"] |= self._capture(req_buf, body)
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal res_status, res_ct
            if message.get("type") == "http.response.start":
                res_status = int(message.get("status") or 0)
                res_ct = _header(message.get("headers"), b"content-type") or ""
            elif message.get("type") == "http.response.body":
                body = message.get("body") or b""
                if body and self.max_body_bytes:
                    truncated["response"] |= self._capture(res_buf, body)
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - log then re-raise
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": res_status,
                "dur_ms": int((time.perf_counter() - started_at) * 1000),
                "request": {
                    "body": _parse_body(_header(req_headers_list, b"content-type") or "", bytes(req_buf)),
                    "body_truncated": truncated["request"],
                },
                "response": {
                    "body": _parse_body(res_ct, bytes(res_buf)),
                    "body_truncated": truncated["response"],
                },
            }
            if self.log_headers:
                record["request"]["headers"] = _decode_headers(req_headers_list)
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))


def install_http_logging(app: Any) -> None:
    """
    Enable request/response logging via env vars.

    - `STORY_SURVEY_HTTP_LOG=1` enables middleware
    - `STORY_SURVEY_HTTP_LOG_HEADERS=1` logs request headers (redacted)
    - `STORY_SURVEY_HTTP_LOG_BODY_MAX_BYTES=4096` caps body bytes captured per request/response
    """
    if not env_bool("STORY_SURVEY_HTTP_LOG", default=False):
        return
    log_headers = env_bool("STORY_SURVEY_HTTP_LOG_HEADERS", default=False)
    max_body_bytes = env_int("STORY_SURVEY_HTTP_LOG_BODY_MAX_BYTES", default=4096)
    app.add_middleware(HttpLoggingMiddleware, log_headers=log_headers, max_body_bytes=max_body_bytes)
