"""Sequential batch execution with pacing, progress and cancellation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from mailtm_batch.cancel import CancelToken
from mailtm_batch.errors import BatchCancelledError
from mailtm_batch.models import BatchReport, LedgerEntry, ProvisionRequest
from mailtm_batch.report import aggregate
from mailtm_batch.retry import RetryGovernor, SleepFn

DEFAULT_PACING_DELAY = 3.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    index: int
    total: int
    entry: LedgerEntry


ProgressObserver = Callable[[ProgressEvent], None]


@dataclass
class BatchRunner:
    governor: RetryGovernor
    pacing_delay: float = DEFAULT_PACING_DELAY
    on_progress: ProgressObserver | None = None
    cancel_token: CancelToken | None = None
    sleep: SleepFn | None = None

    def _cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.cancelled

    def _pace(self) -> None:
        if self.sleep is not None:
            self.sleep(self.pacing_delay)
        elif self.cancel_token is not None:
            self.cancel_token.wait(self.pacing_delay)
        else:
            time.sleep(self.pacing_delay)

    def _notify(self, event: ProgressEvent) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(event)
        except Exception:
            logger.exception("progress observer failed for %s", event.entry.identity)

    def run(self, requests: Sequence[ProvisionRequest]) -> BatchReport:
        total = len(requests)
        ledger: list[LedgerEntry] = []
        cancelled = False

        for position, request in enumerate(requests, start=1):
            if self._cancelled():
                cancelled = True
                break
            try:
                outcome, attempts = self.governor.resolve(request)
            except BatchCancelledError as exc:
                logger.info("%s", exc)
                cancelled = True
                break

            entry = LedgerEntry(request=request, outcome=outcome, attempts=attempts)
            ledger.append(entry)
            self._notify(ProgressEvent(index=position, total=total, entry=entry))

            if position < total and not self._cancelled():
                self._pace()

        if cancelled:
            logger.warning("batch cancelled after %d of %d request(s)", len(ledger), total)
        return aggregate(ledger, requested=total, cancelled=cancelled)
