from __future__ import annotations

from mailtm_batch.cancel import CancelToken
from mailtm_batch.models import ProvisionRequest
from mailtm_batch.outcomes import (
    AlreadyExists,
    Created,
    PermanentFailure,
    RateLimited,
)
from mailtm_batch.retry import RetryGovernor
from mailtm_batch.runner import BatchRunner, ProgressEvent
from mailtm_batch.sequence import generate_requests


def _runner(attempt, *, observer=None, token=None, max_retries: int = 2):  # noqa: ANN001
    waits: list[float] = []
    governor = RetryGovernor(
        attempt=attempt,
        max_retries=max_retries,
        base_delay=0.0,
        sleep=lambda seconds: None,
        cancel_token=token,
    )
    runner = BatchRunner(
        governor=governor,
        pacing_delay=3.0,
        on_progress=observer,
        cancel_token=token,
        sleep=waits.append,
    )
    return runner, waits


def test_failed_request_never_aborts_batch() -> None:
    requests = generate_requests("abc", "x.com", "pw", 10)

    def attempt(request: ProvisionRequest):
        if request.index == 4:
            return PermanentFailure(message="HTTP 400: bad address", status_code=400)
        if request.index == 7:
            return AlreadyExists()
        return Created(account_id=f"id-{request.index}")

    runner, _ = _runner(attempt)
    report = runner.run(requests)

    assert len(report.entries) == 10
    assert report.created_count + report.failed_count == 10
    assert report.created_count == 9
    assert report.failed_count == 1
    assert report.failures[0].identity == "abc04@x.com"
    assert not report.cancelled
    assert report.complete


def test_ledger_preserves_request_order() -> None:
    requests = generate_requests("abc", "x.com", "pw", 6)
    runner, _ = _runner(lambda request: Created())

    report = runner.run(requests)

    assert [entry.request for entry in report.entries] == list(requests)


def test_pacing_between_entries_but_not_after_last() -> None:
    requests = generate_requests("abc", "x.com", "pw", 4)
    runner, waits = _runner(lambda request: Created())

    runner.run(requests)

    assert waits == [3.0, 3.0, 3.0]


def test_exhausted_retries_are_recorded_with_attempt_count() -> None:
    requests = generate_requests("abc", "x.com", "pw", 2)

    def attempt(request: ProvisionRequest):
        if request.index == 1:
            return RateLimited()
        return Created()

    runner, _ = _runner(attempt, max_retries=2)
    report = runner.run(requests)

    first, second = report.entries
    assert isinstance(first.outcome, PermanentFailure)
    assert first.outcome.exhausted
    assert first.attempts == 3
    assert isinstance(second.outcome, Created)
    assert second.attempts == 1


def test_progress_events_report_position() -> None:
    requests = generate_requests("abc", "x.com", "pw", 3)
    events: list[ProgressEvent] = []
    runner, _ = _runner(lambda request: Created(), observer=events.append)

    report = runner.run(requests)

    assert [(e.index, e.total) for e in events] == [(1, 3), (2, 3), (3, 3)]
    assert [e.entry for e in events] == list(report.entries)


def test_observer_errors_do_not_change_the_run() -> None:
    requests = generate_requests("abc", "x.com", "pw", 3)

    def observer(event: ProgressEvent) -> None:
        raise RuntimeError("display broke")

    runner, _ = _runner(lambda request: Created(), observer=observer)
    report = runner.run(requests)

    assert len(report.entries) == 3
    assert report.created_count == 3


def test_cancellation_after_entry_k_yields_k_entries() -> None:
    requests = generate_requests("abc", "x.com", "pw", 8)
    token = CancelToken()
    calls: list[int] = []

    def attempt(request: ProvisionRequest):
        calls.append(request.index)
        return Created()

    def observer(event: ProgressEvent) -> None:
        if event.index == 3:
            token.cancel()

    runner, waits = _runner(attempt, observer=observer, token=token)
    report = runner.run(requests)

    assert len(report.entries) == 3
    assert report.cancelled
    assert report.requested == 8
    assert not report.complete
    assert calls == [1, 2, 3]
    assert all(entry.attempts >= 1 for entry in report.entries)
    assert waits == [3.0, 3.0]


def test_cancellation_during_retries_drops_unresolved_request() -> None:
    requests = generate_requests("abc", "x.com", "pw", 5)
    token = CancelToken()

    def attempt(request: ProvisionRequest):
        if request.index == 2:
            token.cancel()
            return RateLimited()
        return Created()

    runner, _ = _runner(attempt, token=token)
    report = runner.run(requests)

    assert [entry.identity for entry in report.entries] == ["abc01@x.com"]
    assert report.cancelled
    assert report.created_count == 1
    assert report.failed_count == 0


def test_empty_sequence_produces_empty_report() -> None:
    runner, waits = _runner(lambda request: Created())

    report = runner.run(())

    assert report.entries == ()
    assert report.created_count == 0
    assert report.failed_count == 0
    assert waits == []
