"""Terminal and intermediate outcomes of a single account-creation call."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Literal

OutcomeKind = Literal[
    "created",
    "already_exists",
    "rate_limited",
    "transient_error",
    "permanent_failure",
]

SUCCESS_KINDS: tuple[OutcomeKind, ...] = ("created", "already_exists")
RETRYABLE_KINDS: tuple[OutcomeKind, ...] = ("rate_limited", "transient_error")


@dataclass(frozen=True)
class Outcome(ABC):
    kind: ClassVar[OutcomeKind]

    @property
    def is_success(self) -> bool:
        return self.kind in SUCCESS_KINDS

    @property
    def is_retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    @abstractmethod
    def describe(self) -> str:
        """One-line diagnostic used in progress output and the report."""


@dataclass(frozen=True)
class Created(Outcome):
    kind: ClassVar[OutcomeKind] = "created"
    account_id: str | None = None

    def describe(self) -> str:
        return "Created"


@dataclass(frozen=True)
class AlreadyExists(Outcome):
    kind: ClassVar[OutcomeKind] = "already_exists"
    message: str = "Already exists"

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class RateLimited(Outcome):
    kind: ClassVar[OutcomeKind] = "rate_limited"
    retry_after: float | None = None
    message: str = "HTTP 429: rate limited"

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class TransientError(Outcome):
    kind: ClassVar[OutcomeKind] = "transient_error"
    message: str = "transient upstream error"

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class PermanentFailure(Outcome):
    kind: ClassVar[OutcomeKind] = "permanent_failure"
    message: str = "permanent failure"
    status_code: int | None = None
    exhausted: bool = False

    def describe(self) -> str:
        return self.message


__all__ = [
    "OutcomeKind",
    "SUCCESS_KINDS",
    "RETRYABLE_KINDS",
    "Outcome",
    "Created",
    "AlreadyExists",
    "RateLimited",
    "TransientError",
    "PermanentFailure",
]
