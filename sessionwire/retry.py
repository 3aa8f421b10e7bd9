"""Back-off retry strategies used when reconnecting the data channel."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

_LOG = logging.getLogger(__name__)

_SLEEP_FACTOR = 2
_MILLISECOND = timedelta(milliseconds=1)


def retry(attempts: int, sleep: float, fn: Callable[[], Any]) -> None:
    """Call fn up to attempts times, doubling the pause (in seconds) after each failure.

    Returns once fn succeeds; re-raises the last failure when every attempt fails.
    """
    _LOG.info("Retrying connection to channel")
    last_error: Exception | None = None
    while attempts > 0:
        attempts -= 1
        try:
            fn()
        except Exception as exc:  # noqa: BLE001 - any failure is retried
            last_error = exc
            time.sleep(sleep)
            sleep *= _SLEEP_FACTOR
            _LOG.debug("%d attempts to connect web socket connection.", attempts)
            continue
        return None
    if last_error is not None:
        raise last_error
    return None


@dataclass
class RepeatableExponentialRetryer:
    """Retries a callable with exponentially growing delays that restart past a ceiling."""

    callable_func: Callable[[], Any]
    geometric_ratio: float
    initial_delay_in_milli: int
    max_delay_in_milli: int
    max_attempts: int

    def next_sleep_time(self, attempt: int) -> timedelta:
        """Delay before the retry that follows the given attempt number."""
        millis = int(float(self.initial_delay_in_milli) * self.geometric_ratio ** attempt)
        return timedelta(milliseconds=millis)

    def call(self) -> Any:
        """Call the function, retrying on failure; re-raise after max_attempts retries."""
        attempt = 0
        failed_so_far = 0
        while True:
            try:
                return self.callable_func()
            except Exception:
                if failed_so_far == self.max_attempts:
                    raise
            sleep = self.next_sleep_time(attempt)
            if sleep // _MILLISECOND > self.max_delay_in_milli:
                attempt = 0
                sleep = self.next_sleep_time(attempt)
            time.sleep(sleep.total_seconds())
            attempt += 1
            failed_so_far += 1