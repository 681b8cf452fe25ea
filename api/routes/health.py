from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

from api.supabase_client import get_supabase_client

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "story-survey-service",
        "supabase": get_supabase_client() is not None,
        "sessions": len(request.app.state.sessions),
        "ts": int(time.time() * 1000),
    }
