from __future__ import annotations

import types

import pytest

from mailtm_batch.attempt import ALREADY_USED_MARKER, attempt_provision, classify_response
from mailtm_batch.errors import UpstreamUnavailableError
from mailtm_batch.models import ProvisionRequest
from mailtm_batch.outcomes import (
    AlreadyExists,
    Created,
    Outcome,
    PermanentFailure,
    RateLimited,
    TransientError,
)

# Literal violation payload mail.tm returns for a duplicate address.
UPSTREAM_DUPLICATE_BODY = (
    '{"@context":"/contexts/ConstraintViolationList","@type":"ConstraintViolationList",'
    '"hydra:title":"An error occurred","hydra:description":"address: This value is already used.",'
    '"violations":[{"propertyPath":"address","message":"This value is already used."}]}'
)


def _response(status_code: int, text: str = "", headers: dict | None = None):
    return types.SimpleNamespace(status_code=status_code, text=text, headers=headers or {})


class _Client:
    def __init__(self, result) -> None:  # noqa: ANN001
        self.result = result
        self.calls: list[tuple[str, str]] = []

    def create_account(self, address: str, password: str):
        self.calls.append((address, password))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_success_captures_account_id() -> None:
    outcome = classify_response(201, '{"id":"acc-123","address":"abc01@x.com"}')
    assert outcome == Created(account_id="acc-123")
    assert outcome.is_success


def test_success_without_json_body_has_no_id() -> None:
    assert classify_response(200, "") == Created(account_id=None)
    assert classify_response(204, "not json") == Created(account_id=None)


def test_duplicate_marker_fixture_matches_upstream_text() -> None:
    assert ALREADY_USED_MARKER in UPSTREAM_DUPLICATE_BODY
    outcome = classify_response(422, UPSTREAM_DUPLICATE_BODY)
    assert isinstance(outcome, AlreadyExists)
    assert outcome.is_success


def test_plain_already_used_body_is_duplicate() -> None:
    assert isinstance(classify_response(422, "already used"), AlreadyExists)


def test_other_422_is_permanent_failure() -> None:
    outcome = classify_response(422, "address: This value is not a valid email address.")
    assert isinstance(outcome, PermanentFailure)
    assert outcome.status_code == 422
    assert "not a valid email" in outcome.describe()
    assert outcome.describe().startswith("HTTP 422:")
    assert not outcome.exhausted


def test_429_is_rate_limited_with_hint() -> None:
    outcome = classify_response(429, "Too Many Requests", {"Retry-After": "12"})
    assert isinstance(outcome, RateLimited)
    assert outcome.retry_after == 12.0
    assert outcome.is_retryable


def test_429_ignores_unparseable_retry_after() -> None:
    outcome = classify_response(429, "", {"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
    assert isinstance(outcome, RateLimited)
    assert outcome.retry_after is None


def test_5xx_is_transient() -> None:
    for status in (500, 502, 503, 504):
        outcome = classify_response(status, "upstream hiccup")
        assert isinstance(outcome, TransientError)
        assert outcome.is_retryable


def test_status_messages_keep_the_body_verbatim() -> None:
    assert classify_response(429, "slow down: ").describe() == "HTTP 429: slow down: "
    assert classify_response(503, "retry in: ").describe() == "HTTP 503: retry in: "
    assert classify_response(429, "").describe() == "HTTP 429"
    assert classify_response(502, "").describe() == "HTTP 502"
    assert classify_response(400, "").describe() == "HTTP 400"


def test_outcome_base_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        Outcome()


def test_400_is_permanent_failure() -> None:
    outcome = classify_response(400, '{"detail":"malformed"}')
    assert isinstance(outcome, PermanentFailure)
    assert "malformed" in outcome.describe()
    assert not outcome.is_retryable


def test_attempt_issues_exactly_one_call() -> None:
    client = _Client(_response(201, '{"id":"abc"}'))
    request = ProvisionRequest(identity="abc01@x.com", secret="pw")

    outcome = attempt_provision(client, request)

    assert outcome == Created(account_id="abc")
    assert client.calls == [("abc01@x.com", "pw")]


def test_attempt_maps_transport_failure_to_transient() -> None:
    client = _Client(UpstreamUnavailableError("timed out after 30.0s: read timeout"))
    request = ProvisionRequest(identity="abc01@x.com", secret="pw")

    outcome = attempt_provision(client, request)

    assert isinstance(outcome, TransientError)
    assert "timed out" in outcome.describe()
    assert len(client.calls) == 1


def test_attempt_classifies_duplicate_response() -> None:
    client = _Client(_response(422, UPSTREAM_DUPLICATE_BODY))
    outcome = attempt_provision(client, ProvisionRequest(identity="abc01@x.com", secret="pw"))
    assert isinstance(outcome, AlreadyExists)
