"""
Bounded waiting for eventually consistent cluster state.

wait_until polls a predicate at a fixed interval until it succeeds or the
budget runs out, and reports the last thing the predicate said rather than a
bare "timed out". retry runs a transiently failing operation a bounded number
of times with a fixed delay between attempts. gather_all fans out node calls
so that none of them outlives the caller.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from logging import Logger
from typing import Any, TypeVar

from swarmcheck_engine.logging import get_logger
from swarmcheck_engine.swarm.errors import InputError

T = TypeVar("T")

logger = get_logger(__name__)


class ConditionNotMet(Exception):
    """The predicate ran but reported that the condition does not hold yet."""

    def __init__(self, message: str = "condition not met", observed: Any = None):
        super().__init__(message)
        self.observed = observed


class RetriesExhausted(Exception):
    """All attempts of a retried operation failed."""

    def __init__(self, attempts: int, last_error: BaseException | None):
        super().__init__(f"failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class WaitResult:
    """Outcome of wait_until."""

    ok: bool
    last_error: BaseException | None
    attempts: int
    elapsed: float
    value: Any = None

    def describe(self) -> str:
        if self.ok:
            return f"condition met after {self.attempts} attempt(s) in {self.elapsed:.2f}s"
        return (
            f"condition not met after {self.attempts} attempt(s) in {self.elapsed:.2f}s: "
            f"{self.last_error}"
        )


async def wait_until(
    predicate: Callable[[], Awaitable[Any]],
    timeout: float,
    poll_interval: float,
    *,
    jitter: float = 0.0,
    rng: random.Random | None = None,
    log: Logger | None = None,
    description: str = "condition",
) -> WaitResult:
    """
    Poll predicate until it returns a truthy value or timeout elapses.

    A falsy return is recorded as ConditionNotMet; a raised exception is
    recorded as is. Each evaluation is bounded by the remaining budget, so
    no poll outlives the wait. Cancellation of the caller propagates.

    Args:
        predicate: Async callable evaluated on each poll
        timeout: Total budget in seconds
        poll_interval: Fixed delay between evaluations in seconds
        jitter: Upper bound of a random extra delay added to each interval
        rng: Source for jitter (defaults to an unseeded Random)
        log: Logger for per-attempt diagnostics
        description: Name of the condition for logs

    Returns:
        WaitResult; on failure last_error holds the last predicate outcome.
    """
    if timeout < 0:
        raise ValueError(f"timeout must be non-negative, got {timeout}")
    if poll_interval <= 0:
        raise ValueError(f"poll interval must be positive, got {poll_interval}")

    log = log or logger
    jitter_rng = rng or random.Random()
    loop = asyncio.get_running_loop()
    start = loop.time()
    deadline = start + timeout

    attempts = 0
    last_error: BaseException | None = None
    while True:
        attempts += 1
        budget = asyncio.timeout_at(deadline)
        try:
            async with budget:
                value = await predicate()
        except TimeoutError as e:
            if not budget.expired():
                last_error = e
            elif last_error is None:
                # an evaluation cut short keeps the previous diagnostic
                last_error = ConditionNotMet(f"{description} did not finish within {timeout}s")
            log.debug("%s: attempt %d timed out", description, attempts)
        except Exception as e:
            last_error = e
            log.debug("%s: attempt %d failed: %s", description, attempts, e)
        else:
            if value:
                elapsed = loop.time() - start
                log.debug("%s: met after %d attempt(s) in %.2fs", description, attempts, elapsed)
                return WaitResult(True, None, attempts, elapsed, value)
            last_error = ConditionNotMet(f"{description} not met", observed=value)

        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        delay = poll_interval + (jitter_rng.uniform(0, jitter) if jitter > 0 else 0.0)
        await asyncio.sleep(min(delay, remaining))
        if loop.time() >= deadline:
            break

    elapsed = loop.time() - start
    log.info(
        "%s: not met after %d attempt(s) in %.2fs: %s", description, attempts, elapsed, last_error
    )
    return WaitResult(False, last_error, attempts, elapsed)


async def retry(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    delay: float,
    *,
    log: Logger | None = None,
    description: str = "operation",
) -> T:
    """
    Run operation, retrying up to `retries` more times with a fixed delay.

    Input errors are raised immediately and never retried.

    Raises:
        RetriesExhausted: every attempt failed
    """
    if retries < 0:
        raise ValueError(f"retries must be non-negative, got {retries}")

    log = log or logger
    last_error: BaseException | None = None
    for attempt in range(retries + 1):
        try:
            return await operation()
        except InputError:
            raise
        except Exception as e:
            last_error = e
            log.warning(
                "%s failed (attempt %d/%d): %s", description, attempt + 1, retries + 1, e
            )
            if attempt < retries:
                await asyncio.sleep(delay)

    raise RetriesExhausted(retries + 1, last_error)


async def gather_all(*calls: Coroutine[Any, Any, T]) -> list[T]:
    """
    Run calls concurrently and return their results in order.

    The first failure cancels the remaining calls and is raised once all of
    them have finished, unwrapped from the task group. Cancelling the caller
    cancels every call.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(call) for call in calls]
    except ExceptionGroup as group:
        raise group.exceptions[0] from None
    return [task.result() for task in tasks]
