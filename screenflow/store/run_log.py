"""Per-run log entries in Redis, tailed by GET /api/logs/{run_id}."""
import json
from typing import List, Optional

from screenflow.store.redis_conn import get_redis

RUN_COMPLETE_EVENT = "run_complete"
RUN_LOG_TTL_SEC = 24 * 3600


def run_log_key(run_id: str) -> str:
    return f"run:{run_id}:log"


def append_entry(run_id: str, entry: dict, r=None) -> None:
    r = r or get_redis()
    key = run_log_key(run_id)
    r.rpush(key, json.dumps(entry, ensure_ascii=False, default=str))
    r.expire(key, RUN_LOG_TTL_SEC)


def read_entries(run_id: str, start: int = 0, r=None) -> List[dict]:
    """Entries from index `start` onwards, oldest first."""
    r = r or get_redis()
    out = []
    for raw in r.lrange(run_log_key(run_id), start, -1) or []:
        try:
            out.append(json.loads(raw))
        except (TypeError, ValueError):
            continue
    return out


def is_complete(entry: Optional[dict]) -> bool:
    return bool(entry) and entry.get("event") == RUN_COMPLETE_EVENT


class RedisRunLog:
    """LogHub observer that mirrors every entry of one run into its Redis list."""

    def __init__(self, run_id: str, r=None):
        self.run_id = run_id
        self._r = r or get_redis()

    def __call__(self, entry: dict) -> None:
        append_entry(self.run_id, dict(entry, runId=self.run_id), self._r)
