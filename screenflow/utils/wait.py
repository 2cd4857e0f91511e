import time
from typing import Callable

from screenflow.errors import WaitTimeoutError


def wait_for(
    condition: Callable[[], bool],
    timeout_ms: int = 10_000,
    interval_ms: int = 300,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Poll `condition` until it returns True or `timeout_ms` elapses.

    The condition does its own fetching and logging; this is only the
    scheduling loop. Every failed check sleeps the full interval.
    """
    if interval_ms <= 0:
        raise ValueError(f"interval_ms must be positive, got {interval_ms}")
    start = clock()
    while True:
        if (clock() - start) * 1000 >= timeout_ms:
            raise WaitTimeoutError(timeout_ms)
        if condition():
            return
        sleep(interval_ms / 1000.0)
