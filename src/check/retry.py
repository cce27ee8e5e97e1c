# src/check/retry.py — v1
"""Retry policy with exponential backoff and jitter for transient failures.

Transient kinds (timeout, rate limit, 5xx, connection, local I/O) are
retried; everything else fails on the first attempt. Backoff waits go
through the shared cancellation event, so a cancelled batch never sits out
a retry delay.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from acrocheck.core.cancellation import await_or_cancel, raise_if_cancelled, sleep_or_cancel
from acrocheck.core.errors import AcrocheckError, ErrorKind, OperationCancelled
from acrocheck.core.models import RetryAttempt

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(AcrocheckError):
    """An operation failed for good: non-transient error or no retries left."""

    def __init__(
        self,
        operation: str,
        kind: ErrorKind,
        attempts: int,
        last_error: BaseException,
        context: str | None = None,
    ) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"'{operation}' failed after {attempts} attempt(s): {last_error}",
            context=context,
            kind=kind,
        )


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff.

    ``max_retries`` counts retries, so an operation runs at most
    ``max_retries + 1`` times.
    """

    max_retries: int
    base_delay_s: float
    max_delay_s: float
    backoff_multiplier: float = 2.0
    jitter_ratio: float = 0.1


REMOTE_CALL_POLICY = RetryPolicy(
    max_retries=3, base_delay_s=1.0, max_delay_s=30.0, backoff_multiplier=2.0,
)
FILE_OPERATION_POLICY = RetryPolicy(
    max_retries=2, base_delay_s=0.5, max_delay_s=5.0, backoff_multiplier=1.5,
)

_FILE_ACCESS_ERRORS = (
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    PermissionError,
    UnicodeDecodeError,
)


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception into an ErrorKind.

    acrocheck errors carry their kind. Foreign exceptions are mapped by
    type only; anything unrecognised is UNKNOWN and never retried.
    """
    if isinstance(error, AcrocheckError):
        return error.kind
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(error, ConnectionError):
        return ErrorKind.CONNECTION
    if isinstance(error, _FILE_ACCESS_ERRORS):
        return ErrorKind.FILE_ACCESS
    if isinstance(error, OSError):
        return ErrorKind.IO

    return ErrorKind.UNKNOWN


def compute_delay(
    policy: RetryPolicy,
    attempt: int,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay before retrying after failed ``attempt`` (0-based).

    The exponential delay is capped at ``max_delay_s`` first, then up to
    ``jitter_ratio`` of it is added, so the result may exceed the cap by
    at most that ratio.
    """
    delay = min(policy.max_delay_s, policy.base_delay_s * (policy.backoff_multiplier ** attempt))
    return delay + delay * policy.jitter_ratio * rand()


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    operation_name: str,
    context: str | None = None,
    policy: RetryPolicy = REMOTE_CALL_POLICY,
    cancel_event: asyncio.Event | None = None,
    on_retry: Callable[[RetryAttempt], None] | None = None,
) -> T:
    """Run ``operation`` with retries on transient failures.

    Args:
        operation: Zero-argument factory returning a fresh awaitable per attempt.
        operation_name: Name used in logs and errors.
        context: Extra context for logs (usually the file path).
        policy: Retry bounds and backoff parameters.
        cancel_event: Shared cancellation event.
        on_retry: Observer called before each backoff sleep.

    Raises:
        RetryExhausted: Non-transient error, or transient errors past max_retries.
        OperationCancelled: The cancellation event fired.
    """
    attempt = 0

    while True:
        raise_if_cancelled(cancel_event, operation_name)
        logger.debug(
            "%s attempt %d/%d",
            operation_name, attempt + 1, policy.max_retries + 1,
            extra={"data": {"operation": operation_name, "context": context, "attempt": attempt}},
        )
        try:
            result = await await_or_cancel(operation(), cancel_event, operation_name)
        except OperationCancelled:
            raise
        except Exception as e:
            kind = classify_error(e)
            data = {
                "operation": operation_name,
                "context": context,
                "attempt": attempt,
                "error_kind": kind.value,
            }

            if not kind.is_transient:
                logger.error(
                    "Non-transient error in %s: %s (context: %s)",
                    operation_name, e, context, extra={"data": data},
                )
                raise RetryExhausted(operation_name, kind, attempt + 1, e, context) from e

            if attempt >= policy.max_retries:
                logger.error(
                    "Maximum retries (%d) exceeded for %s: %s (context: %s)",
                    policy.max_retries, operation_name, e, context, extra={"data": data},
                )
                raise RetryExhausted(operation_name, kind, attempt + 1, e, context) from e

            delay = compute_delay(policy, attempt)
            data["delay_s"] = round(delay, 3)
            logger.warning(
                "Transient %s in %s (attempt %d/%d), retrying in %.2fs (context: %s)",
                kind.value, operation_name, attempt + 1, policy.max_retries + 1, delay, context,
                extra={"data": data},
            )
            if on_retry is not None:
                on_retry(RetryAttempt(attempt_number=attempt, last_error=kind, next_delay_s=delay))

            await sleep_or_cancel(delay, cancel_event, operation_name)
            attempt += 1
            continue

        if attempt > 0:
            logger.info(
                "%s succeeded after %d retries (context: %s)",
                operation_name, attempt, context,
                extra={"data": {"operation": operation_name, "context": context, "attempt": attempt}},
            )
        return result
