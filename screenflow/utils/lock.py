from contextlib import contextmanager
from typing import Optional

from screenflow.errors import RunAlreadyActiveError
from screenflow.settings import settings
from screenflow.store.redis_conn import get_redis

RUN_LOCK_KEY = "lock:onboarding:run"

# Delete the key only if we still own it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def acquire_run_lock(run_id: str, ttl_ms: Optional[int] = None) -> None:
    """
    Take the process-wide run slot for `run_id`. Fails fast with
    RunAlreadyActiveError if another run holds it.
    """
    r = get_redis()
    ttl = int(ttl_ms or settings.RUN_LOCK_TTL_MS)
    if not r.set(RUN_LOCK_KEY, run_id, px=ttl, nx=True):
        raise RunAlreadyActiveError(r.get(RUN_LOCK_KEY))


def release_run_lock(run_id: str) -> bool:
    r = get_redis()
    return bool(r.eval(_RELEASE_SCRIPT, 1, RUN_LOCK_KEY, run_id))


def current_run_id() -> Optional[str]:
    return get_redis().get(RUN_LOCK_KEY)


@contextmanager
def run_lock(run_id: str, ttl_ms: Optional[int] = None):
    acquire_run_lock(run_id, ttl_ms)
    try:
        yield
    finally:
        release_run_lock(run_id)
