"""Shared retry-with-backoff helper used by the extractor and the generator."""

from typing import Awaitable, Callable, Optional, TypeVar

from rich.console import Console
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

console = Console()

T = TypeVar("T")


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool],
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    label: Optional[str] = None,
) -> T:
    """
    Await ``fn`` until it succeeds, retrying only errors accepted by ``is_retryable``.

    Delays grow as ``base_delay * 2 ** (attempt - 1)`` capped at ``max_delay``.
    The last exception is re-raised unchanged once ``attempts`` are used up,
    and non-retryable exceptions propagate on the first occurrence.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        is_retryable: Predicate deciding whether an exception is transient
        attempts: Total number of attempts (>= 1)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay
        label: Prefix used in retry log lines

    Returns:
        Whatever ``fn`` returns on the first successful attempt
    """
    prefix = label or "Retry"

    def _log_retry(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        console.print(
            f"[yellow][{prefix}] Retry {state.attempt_number}/{attempts - 1} "
            f"after {delay:.1f}s ({error})[/yellow]"
        )

    async for attempt in AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await fn()

    # AsyncRetrying either returns from inside the loop or re-raises.
    raise RuntimeError(f"[{prefix}] Retry loop exited unexpectedly")
