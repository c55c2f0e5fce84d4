"""Retry helper for transient DB locking errors (deadlock, SQLite locked). No new dependencies."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError

logger = logging.getLogger("cdr_ingest.storage.retry")

T = TypeVar("T")


def is_transient_locking_error(exc: BaseException) -> bool:
    """True if the exception is a transient locking/deadlock error we can retry."""
    if not isinstance(exc, OperationalError):
        return False
    orig = getattr(exc, "orig", None)
    if orig is not None and type(orig).__name__ in ("DeadlockDetected", "LockNotAvailable"):
        return True
    # SQLite: database is locked / busy
    msg = str(exc).lower()
    return "database is locked" in msg or "database is busy" in msg


def run_with_retry(
    fn: Callable[[], T],
    *,
    max_attempts: int = 6,
    base_sleep: float = 0.02,
    log: logging.Logger | None = None,
) -> T:
    """Run fn() (one whole transaction); on transient locking errors retry with jittered backoff.

    fn must open and close its own session so every attempt starts clean. Non-transient errors
    are raised immediately; the last transient error is raised once attempts run out.
    """
    log = log or logger
    for attempt in range(max_attempts):
        try:
            return fn()
        except OperationalError as e:
            if not is_transient_locking_error(e):
                raise
            if attempt == max_attempts - 1:
                log.warning("Transient DB error after %s attempts; giving up: %s", max_attempts, e)
                raise
            sleep_time = base_sleep * (2**attempt) + random.random() * base_sleep
            log.debug(
                "Retrying after transient error (attempt %s/%s): %s; sleep %.3fs",
                attempt + 1,
                max_attempts,
                e,
                sleep_time,
            )
            time.sleep(sleep_time)
    raise ValueError(f"max_attempts must be positive, got {max_attempts}")
