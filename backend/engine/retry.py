"""
Retry and polling combinators built on tenacity.

- retry(): run an async operation up to N times with exponential backoff
  (2^attempt seconds), re-raising non-retryable errors immediately.
- poll_until(): fetch repeatedly at a fixed interval until a result is
  accepted or the attempt budget runs out (returns None, never raises).

The sleep function is injectable so tests can record delays without waiting.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff for one class of remote call."""
    max_attempts: int = 3
    backoff_multiplier: float = 2.0  # delay before attempt n+1 = multiplier * 2^(n-1)
    max_delay: float = 30.0


PURCHASE_POLICY = RetryPolicy(max_attempts=3)
IMPORT_POLICY = RetryPolicy(max_attempts=3)


def _log_retry(operation_name: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"{operation_name} attempt {retry_state.attempt_number} failed: {error} "
            f"- retrying in {delay:.0f}s"
        )
        logger.info(
            f"METRIC retry_attempt operation={operation_name} "
            f"attempt={retry_state.attempt_number} delay={delay:.0f}"
        )
    return before_sleep


async def retry(
    operation: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool],
    policy: RetryPolicy = RetryPolicy(),
    sleep: SleepFn = asyncio.sleep,
    operation_name: str = "operation",
) -> T:
    """
    Run `operation` until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument callable returning an awaitable (lambdas included)
        is_retryable: Classifies an exception as transient (True) or fatal (False)
        policy: Attempt budget and backoff
        sleep: Async sleep used between attempts
        operation_name: Label for logs

    Returns:
        The operation's result

    Raises:
        The last exception when attempts are exhausted, or the first fatal one
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.backoff_multiplier, exp_base=2, max=policy.max_delay),
        retry=retry_if_exception(is_retryable),
        sleep=sleep,
        reraise=True,
        before_sleep=_log_retry(operation_name),
    )
    async def attempt() -> T:
        return await operation()

    return await retrying(attempt)


def _log_poll(operation_name: str, accept: Callable[[Any], bool]) -> Callable[[RetryCallState], None]:
    def after(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        if retry_state.outcome.failed:
            logger.warning(
                f"{operation_name} poll {retry_state.attempt_number} failed: "
                f"{retry_state.outcome.exception()}"
            )
        elif not accept(retry_state.outcome.result()):
            logger.debug(f"{operation_name} poll {retry_state.attempt_number}: not ready")
    return after


def _give_up(operation_name: str) -> Callable[[RetryCallState], None]:
    def retry_error_callback(retry_state: RetryCallState) -> None:
        logger.info(f"{operation_name} gave up after {retry_state.attempt_number} polls")
        return None
    return retry_error_callback


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    *,
    accept: Callable[[T], bool],
    max_attempts: int,
    interval: float,
    sleep: SleepFn = asyncio.sleep,
    sleep_first: bool = False,
    operation_name: str = "poll",
) -> Optional[T]:
    """
    Call `fetch` until `accept(result)` is true.

    A fetch that raises is logged and counts as one attempt; the loop continues.

    Returns:
        The accepted result, or None once `max_attempts` fetches have been made
    """
    if sleep_first:
        await sleep(interval)

    polling = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(Exception) | retry_if_result(lambda result: not accept(result)),
        sleep=sleep,
        after=_log_poll(operation_name, accept),
        retry_error_callback=_give_up(operation_name),
    )
    async def attempt() -> T:
        return await fetch()

    return await polling(attempt)
