"""Single account-creation call and the classification of its response."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import ValidationError

from mailtm_batch.client import MailTmClient
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
from mailtm_batch.schemas import AccountRecord

# mail.tm answers a duplicate address with HTTP 422 and a violation message
# such as "address: This value is already used."; this substring is the
# whole contract for idempotent duplicates.
ALREADY_USED_MARKER = "already used"

logger = logging.getLogger(__name__)


def _parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
    if not headers:
        return None
    raw = headers.get("Retry-After")
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        # HTTP-date form is not used by mail.tm.
        return None
    return value if value >= 0 else None


def _parse_account_id(body: str) -> str | None:
    if not body:
        return None
    try:
        return AccountRecord.model_validate_json(body).id
    except ValidationError:
        return None


def _status_message(status_code: int, body: str) -> str:
    return f"HTTP {status_code}: {body}" if body else f"HTTP {status_code}"


def classify_response(
    status_code: int,
    body: str,
    headers: Mapping[str, str] | None = None,
) -> Outcome:
    if 200 <= status_code < 300:
        return Created(account_id=_parse_account_id(body))
    if status_code == 422 and ALREADY_USED_MARKER in body:
        return AlreadyExists()
    if status_code == 429:
        return RateLimited(
            retry_after=_parse_retry_after(headers),
            message=_status_message(429, body),
        )
    if status_code >= 500:
        return TransientError(message=_status_message(status_code, body))
    return PermanentFailure(message=_status_message(status_code, body), status_code=status_code)


def attempt_provision(client: MailTmClient, request: ProvisionRequest) -> Outcome:
    """Issue exactly one creation call for ``request`` and classify it."""
    try:
        response = client.create_account(request.identity, request.secret)
    except UpstreamUnavailableError as exc:
        logger.debug("transport failure creating %s: %s", request.identity, exc)
        return TransientError(message=f"Error: {exc}")

    outcome = classify_response(response.status_code, response.text, response.headers)
    logger.debug(
        "POST /accounts %s -> %s (%s)",
        request.identity,
        response.status_code,
        outcome.kind,
    )
    return outcome
