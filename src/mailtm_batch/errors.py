"""Batch provisioning error types."""

from __future__ import annotations


class MailTmBatchError(RuntimeError):
    """Base package error."""


class InvalidParameterError(MailTmBatchError, ValueError):
    """Operator parameters cannot produce a request sequence."""


class UpstreamUnavailableError(MailTmBatchError):
    """Upstream API could not be reached."""


class UpstreamRequestError(UpstreamUnavailableError):
    """Upstream API returned an HTTP error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BatchCancelledError(MailTmBatchError):
    """Cancellation was signalled while a request was still unresolved."""
