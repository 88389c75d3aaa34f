"""Exponential backoff around single account-creation attempts."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from mailtm_batch.cancel import CancelToken
from mailtm_batch.errors import BatchCancelledError
from mailtm_batch.models import ProvisionRequest
from mailtm_batch.outcomes import Outcome, PermanentFailure

DEFAULT_MAX_RETRIES = 7
DEFAULT_BASE_DELAY = 3.0
BACKOFF_FACTOR = 2

logger = logging.getLogger(__name__)

AttemptFn = Callable[[ProvisionRequest], Outcome]
SleepFn = Callable[[float], None]


def backoff_delay(base_delay: float, retry_number: int) -> float:
    """Wait before the ``retry_number``-th retry (1-based)."""
    return base_delay * BACKOFF_FACTOR ** (retry_number - 1)


def worst_case_wait(base_delay: float, max_retries: int) -> float:
    """Upper bound on backoff time for one identity, excluding the initial pacing wait."""
    return base_delay * (BACKOFF_FACTOR**max_retries - 1)


@dataclass
class RetryGovernor:
    """Drive one request to a terminal outcome.

    A fixed ``base_delay`` is always paid before the first attempt. Rate
    limits and transient errors share one retry budget; the k-th retry waits
    ``base_delay * 2**(k-1)``. When the budget runs out the request ends as
    a ``PermanentFailure`` after ``max_retries + 1`` attempts.

    ``sleep`` defaults to the cancel token's interruptible wait, or
    ``time.sleep`` when there is no token.
    """

    attempt: AttemptFn
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    sleep: SleepFn | None = None
    cancel_token: CancelToken | None = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def _check_cancelled(self, request: ProvisionRequest) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            raise BatchCancelledError(f"cancelled before {request.identity} resolved")

    def _pause(self, seconds: float, request: ProvisionRequest) -> None:
        self._check_cancelled(request)
        if self.sleep is not None:
            self.sleep(seconds)
        elif self.cancel_token is not None:
            self.cancel_token.wait(seconds)
        else:
            time.sleep(seconds)
        self._check_cancelled(request)

    def resolve(self, request: ProvisionRequest) -> tuple[Outcome, int]:
        self._pause(self.base_delay, request)

        attempts = 0
        retries_used = 0
        while True:
            outcome = self.attempt(request)
            attempts += 1
            if not outcome.is_retryable:
                return outcome, attempts

            if retries_used >= self.max_retries:
                logger.warning(
                    "giving up on %s after %d attempts: %s",
                    request.identity,
                    attempts,
                    outcome.describe(),
                )
                return (
                    PermanentFailure(
                        message=f"Max retries exceeded: {outcome.describe()}",
                        exhausted=True,
                    ),
                    attempts,
                )

            retries_used += 1
            delay = backoff_delay(self.base_delay, retries_used)
            logger.info(
                "%s on %s, retrying in %ss (retry %d/%d)",
                "rate limited" if outcome.kind == "rate_limited" else "transient error",
                request.identity,
                f"{delay:g}",
                retries_used,
                self.max_retries,
            )
            self._pause(delay, request)
