#!/usr/bin/env python3
"""
Quick check that the configured Supabase project can take survey writes.

Reads the same env vars as the service (`.env` is loaded when present) and
counts rows in the responses and events tables.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parents[1]
for _p in (_ROOT / "src", _ROOT):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

load_dotenv(_ROOT / ".env")

from api.supabase_client import events_table, get_supabase_client, responses_table  # noqa: E402


def check_connection() -> bool:
    url = os.getenv("NEXT_PUBLIC_SUPABASE_URL") or os.getenv("SUPABASE_URL")
    print(f"SUPABASE_URL: {url[:50]}..." if url else "SUPABASE_URL not set")

    client = get_supabase_client()
    if not client:
        print("Supabase client unavailable: set SUPABASE_URL and a service role or anon key")
        return False

    ok = True
    for table in (responses_table(), events_table()):
        try:
            result = client.table(table).select("id", count="exact").limit(1).execute()
            print(f"{table}: reachable ({result.count} rows)")
        except Exception as e:
            print(f"{table}: query failed: {e}")
            ok = False
    return ok


if __name__ == "__main__":
    sys.exit(0 if check_connection() else 1)
