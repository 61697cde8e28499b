"""Time-bounded retry of boolean operations."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

Operation = Callable[[], "bool | Awaitable[bool]"]


@dataclass(frozen=True)
class RetryOutcome:
    """Result of a retried operation."""

    succeeded: bool
    elapsed_ms: float
    attempts: int

    def __bool__(self) -> bool:
        return self.succeeded


async def _attempt(operation: Operation) -> bool:
    result = operation()
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def retry_operation(
    timeout_ms: int,
    pause_ms: int,
    operation: Operation,
) -> RetryOutcome:
    """Retry an operation until it succeeds or the timeout expires.

    The first attempt is made immediately. After each failed attempt the
    caller is paused for ``pause_ms`` and the operation is tried again, as long
    as less than ``timeout_ms`` has elapsed since the first attempt.

    Exceptions raised by the operation are not retried; they propagate.

    Args:
        timeout_ms: Overall time budget in milliseconds (>= 1)
        pause_ms: Pause between attempts in milliseconds (>= 1)
        operation: Callable returning True on success. May be a coroutine
            function.

    Returns:
        RetryOutcome with success flag, elapsed time and attempt count

    Raises:
        ValueError: If timeout_ms or pause_ms is less than 1
        TypeError: If operation is not callable
    """
    if timeout_ms < 1:
        raise ValueError(f"timeout_ms must be >= 1, got {timeout_ms}")
    if pause_ms < 1:
        raise ValueError(f"pause_ms must be >= 1, got {pause_ms}")
    if not callable(operation):
        raise TypeError("operation must be callable")

    logger.debug(f"Beginning retry: timeout {timeout_ms}ms, pause {pause_ms}ms")

    start = time.perf_counter()

    def elapsed_ms() -> float:
        return (time.perf_counter() - start) * 1000

    attempts = 1
    succeeded = await _attempt(operation)

    while not succeeded and elapsed_ms() < timeout_ms:
        logger.debug("Retrying operation...")
        await asyncio.sleep(pause_ms / 1000)
        attempts += 1
        succeeded = await _attempt(operation)

    elapsed = elapsed_ms()
    if succeeded:
        logger.debug(f"Operation succeeded after {attempts} attempt(s), {elapsed:.0f}ms")
    else:
        logger.debug(f"Operation failed after {attempts} attempt(s), {elapsed:.0f}ms")

    return RetryOutcome(succeeded=succeeded, elapsed_ms=elapsed, attempts=attempts)


async def retry(timeout_ms: int, pause_ms: int, operation: Operation) -> bool:
    """Retry an operation; return True if any attempt succeeded."""
    outcome = await retry_operation(timeout_ms, pause_ms, operation)
    return outcome.succeeded
