"""
Structured events for prompt resolution and generation.

Every event is logged as one JSON line on the passage_studio.telemetry
logger. With ENABLE_TELEMETRY_DB=1 it is also inserted into the
telemetry_events table; that insert is best-effort and never raises.
"""
import asyncio
import json
import logging
import os
import time
from contextlib import contextmanager
from functools import wraps
from typing import Optional

logger = logging.getLogger("passage_studio.telemetry")

EVENT_FIELDS = ("event", "route", "prompt_id", "address", "provenance", "model",
                "error_type", "latency_ms", "ok")


def _persist(row: dict) -> None:
    if os.getenv("ENABLE_TELEMETRY_DB", "0") != "1":
        return
    try:
        from app.core.deps import get_supabase_client
        get_supabase_client().table("telemetry_events").insert(row).execute()
    except Exception as e:
        logger.error(f"[telemetry._persist] {e}", exc_info=True)


def emit_event(event: str, *, route: str, prompt_id: Optional[str] = None,
               address: Optional[str] = None, provenance: Optional[str] = None,
               model: Optional[str] = None, error_type: Optional[str] = None,
               latency_ms: Optional[int] = None, ok: Optional[bool] = None):
    row = dict(zip(EVENT_FIELDS, (event, route, prompt_id, address, provenance, model,
                                  error_type, latency_ms, ok)))
    logger.info("telemetry=%s", json.dumps({**row, "ts": time.time()}, separators=(",", ":")))
    _persist(row)


@contextmanager
def _timed(route: str):
    started = time.perf_counter()
    error_type = None
    try:
        yield
    except Exception as e:
        error_type = type(e).__name__
        raise
    finally:
        emit_event("api_call", route=route, ok=error_type is None, error_type=error_type,
                   latency_ms=int((time.perf_counter() - started) * 1000))


def instrument(route: str):
    """Emit an api_call event with latency and outcome for every call of the wrapped handler."""
    def deco(fn):
        if asyncio.iscoroutinefunction(fn):
            @wraps(fn)
            async def wrapped_async(*args, **kwargs):
                with _timed(route):
                    return await fn(*args, **kwargs)
            return wrapped_async

        @wraps(fn)
        def wrapped(*args, **kwargs):
            with _timed(route):
                return fn(*args, **kwargs)
        return wrapped
    return deco
