"""Request, ledger and report records."""

from __future__ import annotations

from dataclasses import dataclass, field

from mailtm_batch.outcomes import Outcome


@dataclass(frozen=True)
class ProvisionRequest:
    identity: str
    secret: str = field(repr=False)
    index: int = 1

    @property
    def local_part(self) -> str:
        return self.identity.split("@", 1)[0]


@dataclass(frozen=True)
class LedgerEntry:
    request: ProvisionRequest
    outcome: Outcome
    attempts: int

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")

    @property
    def identity(self) -> str:
        return self.request.identity

    @property
    def succeeded(self) -> bool:
        return self.outcome.is_success


@dataclass(frozen=True)
class BatchReport:
    """Ordered ledger of one run plus its success/failure partition.

    Build through ``mailtm_batch.report.aggregate`` so the counts always
    trace to the entries.
    """

    entries: tuple[LedgerEntry, ...]
    created_count: int
    failed_count: int
    requested: int = 0
    cancelled: bool = False

    def __post_init__(self) -> None:
        if self.created_count + self.failed_count != len(self.entries):
            raise ValueError("created_count + failed_count must equal the number of entries")

    @property
    def successes(self) -> tuple[LedgerEntry, ...]:
        return tuple(entry for entry in self.entries if entry.succeeded)

    @property
    def failures(self) -> tuple[LedgerEntry, ...]:
        return tuple(entry for entry in self.entries if not entry.succeeded)

    @property
    def complete(self) -> bool:
        return not self.cancelled and len(self.entries) == self.requested
