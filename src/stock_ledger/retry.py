from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import StorageFailure

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to re-run a transaction that lost a conflict, and how long
    to wait between attempts.

    The wait doubles after every failed attempt, starting at `backoff` and
    never exceeding `max_backoff`.
    """
    attempts: int = 5
    backoff: float = 0.05
    max_backoff: float = 1.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("RetryPolicy.attempts must be >= 1")
        if self.backoff < 0 or self.max_backoff < 0:
            raise ValueError("RetryPolicy backoff values must be >= 0")


def run_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...],
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `operation` until it returns, retrying on `retry_on` exceptions.

    Each attempt calls `operation` from scratch, so a read-check-write
    sequence always starts from a fresh read; values from a failed attempt
    are never reused.

    Exceptions outside `retry_on` propagate immediately. When every attempt
    fails, StorageFailure is raised from the last error.
    """
    retrying = Retrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(multiplier=policy.backoff, max=policy.max_backoff),
        retry=retry_if_exception_type(retry_on),
        sleep=sleep,
    )
    try:
        return retrying(operation)
    except RetryError as exc:
        raise StorageFailure(
            f"Transaction could not commit after {policy.attempts} attempts"
        ) from exc.last_attempt.exception()
