import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Type, TypeVar

from screenflow.errors import ScreenflowError
from screenflow.settings import settings
from screenflow.observability.logging import EventLogger

T = TypeVar("T")

# Substrings of transient network failures (httpx/OS messages plus the
# Node-style codes some proxies echo back in bodies).
DEFAULT_RETRYABLE_ERRORS = [
    "Connection reset",
    "ECONNRESET",
    "socket hang up",
    "Server disconnected",
    "timed out",
    "timeout",
    "ETIMEDOUT",
    "Name or service not known",
    "nodename nor servname",
    "Temporary failure in name resolution",
    "ENOTFOUND",
    "Connection refused",
    "ECONNREFUSED",
]


@dataclass
class RetryOptions:
    max_attempts: int = field(default_factory=lambda: settings.RETRY_MAX_ATTEMPTS)
    backoff_base_ms: int = field(default_factory=lambda: settings.RETRY_BACKOFF_BASE_MS)
    backoff_max_ms: int = field(default_factory=lambda: settings.RETRY_BACKOFF_MAX_MS)
    retryable_errors: List[str] = field(default_factory=lambda: list(DEFAULT_RETRYABLE_ERRORS))
    on_retry: Optional[Callable[[int, BaseException], None]] = None
    # Classified failures (remote business errors, auth, config) are final
    # even when their message happens to contain a retryable fragment.
    never_retry: Tuple[Type[BaseException], ...] = (ScreenflowError,)


def calc_backoff_ms(attempt: int, base_ms: int, max_ms: int) -> int:
    """Exponential backoff, capped."""
    return min(base_ms * (2 ** (attempt - 1)), max_ms)


def is_retryable(error: BaseException, retryable_errors: List[str],
                 never_retry: Tuple[Type[BaseException], ...] = ()) -> bool:
    if never_retry and isinstance(error, never_retry):
        return False
    message = str(error)
    return any(fragment in message for fragment in retryable_errors)


def with_retry(
    fn: Callable[[], T],
    options: Optional[RetryOptions] = None,
    *,
    logger: Optional[EventLogger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `fn`, retrying transient network failures with exponential backoff.

    Non-retryable errors, and the error from the final attempt, are re-raised
    as-is so the original message reaches the caller.
    """
    opts = options or RetryOptions()
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except Exception as e:
            if attempt >= opts.max_attempts or not is_retryable(e, opts.retryable_errors, opts.never_retry):
                raise

            delay_ms = calc_backoff_ms(attempt, opts.backoff_base_ms, opts.backoff_max_ms)
            if logger is not None:
                logger.warning(
                    "retry_scheduled",
                    attempt=attempt,
                    maxAttempts=opts.max_attempts,
                    delayMs=delay_ms,
                    error=str(e)[:500],
                )
            if opts.on_retry is not None:
                opts.on_retry(attempt, e)
            sleep(delay_ms / 1000.0)
