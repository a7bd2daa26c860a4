"""Redis connection and data-access helpers for doctor and nudge history."""

from __future__ import annotations

import json
import os

import redis


_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return a shared Redis client (lazy singleton).

    Connection settings come from ``REDIS_*`` env vars, read on first use so
    a town ``.env`` loaded at startup applies.
    """
    global _client
    if _client is None:
        _client = redis.Redis(
            host=os.environ.get("REDIS_HOST", "localhost"),
            port=int(os.environ.get("REDIS_PORT", "6379")),
            db=int(os.environ.get("REDIS_DB", "0")),
            password=os.environ.get("REDIS_PASSWORD") or None,
            decode_responses=True,
            socket_connect_timeout=2,
        )
    return _client


# ── Doctor scans ─────────────────────────────────────────────────────────────


def store_scan(scan_id: str, meta: dict) -> None:
    """Persist one doctor run and add it to the chronological index."""
    r = get_redis()
    r.hset(f"doctor:scan:{scan_id}", mapping={
        k: json.dumps(v) if isinstance(v, (dict, list)) else str(v)
        for k, v in meta.items()
    })
    timestamp = meta.get("timestamp_unix", 0)
    r.zadd("doctor:scans", {scan_id: float(timestamp)})


def get_scan(scan_id: str) -> dict:
    """Retrieve one doctor run."""
    raw = get_redis().hgetall(f"doctor:scan:{scan_id}")
    result: dict = {}
    for k, v in raw.items():
        try:
            result[k] = json.loads(v)
        except (json.JSONDecodeError, TypeError):
            result[k] = v
    return result


def get_recent_scans(limit: int = 10) -> list[str]:
    """Return the newest doctor run IDs, newest first."""
    return get_redis().zrevrange("doctor:scans", 0, limit - 1)


# ── Nudges ───────────────────────────────────────────────────────────────────


def store_nudge(session_name: str, record: dict) -> None:
    """Append a delivered nudge to the target session's log."""
    get_redis().rpush(f"nudge:{session_name}", json.dumps(record))


def get_nudges(session_name: str) -> list[dict]:
    """Return every nudge delivered to *session_name*, oldest first."""
    raw = get_redis().lrange(f"nudge:{session_name}", 0, -1)
    return [json.loads(r) for r in raw]
