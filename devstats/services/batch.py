"""
Batched fetching with bounded concurrency, retries and per-item timeouts.

Items are split into sequential batches of `concurrency`; calls within a batch
run concurrently and the next batch starts only after every call in the
current one has settled. A failing item yields None in its slot, so one bad
repository never sinks the whole run.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from devstats.core.numbers import percent_of
from devstats.services.github.exceptions import RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Sleeper = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff policy: delay = base_delay * backoff_multiplier ** attempt_index."""

    max_attempts: int = 3
    base_delay: float = 0.5
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt_index: int) -> float:
        """Delay (seconds) before retrying after the zero-based attempt_index failed."""
        return self.base_delay * self.backoff_multiplier**attempt_index

    def should_retry(self, error: Exception) -> bool:
        """Errors flagged `retryable = False` (auth, not found, validation) fail fast."""
        return getattr(error, "retryable", True)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Sleeper = asyncio.sleep,
    label: str = "request",
) -> T:
    """
    Call fn until it succeeds or the policy gives up.

    Raises:
        The last error raised by fn
    """
    for attempt in range(policy.max_attempts):
        try:
            return await fn()
        except Exception as e:
            is_last = attempt == policy.max_attempts - 1
            if is_last or not policy.should_retry(e):
                raise
            delay = policy.delay_for(attempt)
            logger.debug(
                f"{label} failed (attempt {attempt + 1}/{policy.max_attempts}), "
                f"retrying in {delay:.2f}s: {e}"
            )
            await sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover


async def call_with_timeout(fn: Callable[[], Awaitable[T]], timeout: float | None) -> T:
    """Await fn() with a time budget; overruns are aborted and raise RequestTimeoutError."""
    if timeout is None:
        return await fn()
    try:
        return await asyncio.wait_for(fn(), timeout)
    except TimeoutError as e:
        raise RequestTimeoutError(f"Request aborted after {timeout}s") from e


async def run_batch(
    items: Sequence[T],
    fetch: Callable[[T], Awaitable[R]],
    concurrency: int,
    *,
    timeout: float | None = 8.0,
    retry_policy: RetryPolicy | None = None,
    on_progress: ProgressCallback | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> list[R | None]:
    """
    Fetch every item with at most `concurrency` calls outstanding.

    Args:
        items: Inputs, one fetch per item
        fetch: Async per-item fetch
        concurrency: Batch size (maximum concurrent calls)
        timeout: Per-attempt time budget in seconds (None disables)
        retry_policy: Retry policy per item (defaults to RetryPolicy())
        on_progress: Called after each batch with the percentage processed
        sleep: Sleeper used between retries

    Returns:
        Results in input order; None for items that failed after retries
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    policy = retry_policy or RetryPolicy()
    total = len(items)
    results: list[R | None] = []

    async def fetch_one(item: T) -> R | None:
        try:
            return await retry_async(
                lambda: call_with_timeout(lambda: fetch(item), timeout),
                policy,
                sleep=sleep,
                label=f"Fetch for {item!r}",
            )
        except Exception as e:
            logger.warning(f"Giving up on {item!r}: {e}")
            return None

    for start in range(0, total, concurrency):
        batch = items[start : start + concurrency]
        batch_results = await asyncio.gather(*(fetch_one(item) for item in batch))
        results.extend(batch_results)

        if on_progress is not None:
            on_progress(percent_of(len(results), total))

    failed = sum(1 for r in results if r is None)
    if failed:
        logger.info(f"Batch finished: {total - failed}/{total} items succeeded")
    return results
