"""
Run counters kept in Redis, served by /api/status.

Best-effort: a missing key (first boot) reads as zero.
"""
from typing import Optional

from screenflow.store.redis_conn import get_redis

K_RUNS_STARTED = "metrics:runs:started"        # INCR
K_RUNS_SUCCEEDED = "metrics:runs:succeeded"    # INCR
K_RUNS_FAILED = "metrics:runs:failed"          # INCR
K_RUN_LAST_MS = "metrics:runs:last_duration_ms"
K_RUN_DURATIONS = "metrics:runs:durations"     # LPUSH ms

_MAX_SAMPLES = 100


def increment_run_started() -> None:
    get_redis().incr(K_RUNS_STARTED, 1)


def increment_run_succeeded() -> None:
    get_redis().incr(K_RUNS_SUCCEEDED, 1)


def increment_run_failed() -> None:
    get_redis().incr(K_RUNS_FAILED, 1)


def record_run_duration(ms: int) -> None:
    r = get_redis()
    r.set(K_RUN_LAST_MS, int(ms))
    r.lpush(K_RUN_DURATIONS, int(ms))
    r.ltrim(K_RUN_DURATIONS, 0, _MAX_SAMPLES - 1)


def _int(value: Optional[str]) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def get_run_stats() -> dict:
    r = get_redis()
    started = _int(r.get(K_RUNS_STARTED))
    succeeded = _int(r.get(K_RUNS_SUCCEEDED))
    failed = _int(r.get(K_RUNS_FAILED))
    return {
        "runsStarted": started,
        "runsSucceeded": succeeded,
        "runsFailed": failed,
        "successRate": round(succeeded / started * 100.0, 3) if started else 0.0,
        "lastDurationMs": _int(r.get(K_RUN_LAST_MS)),
    }
