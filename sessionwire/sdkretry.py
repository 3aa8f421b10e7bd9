"""Delay rules for retrying service API requests."""

from __future__ import annotations

import random
from datetime import timedelta

_GET_MESSAGES = "GetMessages"
_CLIENT_TIMEOUT = "Client.Timeout"
_TIMEOUT_DELAY = timedelta(milliseconds=100)


def retry_delay(
    operation_name: str, error: BaseException | str | None, retry_count: int
) -> timedelta:
    """Delay before retrying a request that failed retry_count times so far.

    A client timeout on GetMessages is expected and retried after 100 ms; anything
    else waits at least a second, growing exponentially with the retry count.
    """
    if (
        operation_name == _GET_MESSAGES
        and error is not None
        and _CLIENT_TIMEOUT in str(error)
    ):
        return _TIMEOUT_DELAY
    jitter = random.randint(0, 499) + 1000
    return timedelta(milliseconds=int(2 ** retry_count) * jitter)