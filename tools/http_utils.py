"""tools/http_utils.py

Shared HTTP plumbing for the SonarQube and Jira clients.

Two pieces:

  - :func:`request_with_retry` : one ``requests`` call wrapped in a tenacity
    ``Retrying`` loop, parameterized by a :class:`RetryPolicy`
    (max attempts, backoff function, retryable-status predicate).
  - :class:`RateLimiter` : enforces a minimum gap between consecutive calls.
    One instance is shared by every Jira call in a run.

Contract of request_with_retry
------------------------------
* network errors (``requests.RequestException``) and retryable statuses are
  retried, sleeping ``policy.backoff(attempt)`` seconds in between
* after the last attempt the final exception is re-raised, or the final
  response is returned as-is
* non-retryable responses (2xx, most 4xx) are returned immediately

Callers therefore always check ``resp.ok`` themselves; a 404 is data, not an
exception.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def linear_backoff(attempt: int) -> float:
    """1s, 2s, 3s, ... after the 1st, 2nd, 3rd failed attempt."""
    return 1.0 * attempt


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff: Callable[[int], float] = linear_backoff
    is_retryable_status: Callable[[int], bool] = is_retryable_status


DEFAULT_RETRY_POLICY = RetryPolicy()


def _final_outcome(state: RetryCallState) -> Any:
    # Re-raises the last exception, or hands back the last response.
    assert state.outcome is not None
    return state.outcome.result()


def request_with_retry(
    session: requests.Session,
    method: str,
    url: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], None] = time.sleep,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs: Any,
) -> requests.Response:
    """Perform ``session.request(method, url, ...)`` under ``policy``."""

    def _log_retry(state: RetryCallState) -> None:
        reason = ""
        if state.outcome is not None:
            if state.outcome.failed:
                reason = f" ({state.outcome.exception()})"
            else:
                reason = f" (HTTP {state.outcome.result().status_code})"
        logger.warning(
            "🔄 Retry attempt %d/%d for %s%s",
            state.attempt_number,
            policy.max_attempts,
            url,
            reason,
        )

    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda state: policy.backoff(state.attempt_number),
        retry=(
            retry_if_exception_type(requests.RequestException)
            | retry_if_result(lambda resp: policy.is_retryable_status(resp.status_code))
        ),
        before_sleep=_log_retry,
        retry_error_callback=_final_outcome,
        sleep=sleep,
    )
    return retrying(session.request, method, url, timeout=timeout, **kwargs)


def short_text(resp: requests.Response, limit: int = 200) -> str:
    """Response body trimmed for log lines."""
    try:
        return (resp.text or "")[:limit]
    except Exception:
        return ""


class RateLimiter:
    """Minimum-interval limiter shared across calls (and worker threads).

    ``wait()`` reads ``last_call``, sleeps for the remainder of the interval if
    needed, then records the new call time. The whole read-sleep-write runs
    under a lock, so concurrent callers queue up instead of bursting.
    """

    def __init__(
        self,
        min_interval: float = 0.1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self.last_call: Optional[float] = None
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            if self.last_call is not None:
                elapsed = self._clock() - self.last_call
                if elapsed < self.min_interval:
                    self._sleep(self.min_interval - elapsed)
            self.last_call = self._clock()
