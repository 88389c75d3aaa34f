"""mailtm-batch public surface."""

from mailtm_batch.attempt import ALREADY_USED_MARKER, attempt_provision, classify_response
from mailtm_batch.cancel import CancelToken
from mailtm_batch.client import DEFAULT_API_BASE, MailTmClient
from mailtm_batch.errors import (
    BatchCancelledError,
    InvalidParameterError,
    MailTmBatchError,
    UpstreamRequestError,
    UpstreamUnavailableError,
)
from mailtm_batch.models import BatchReport, LedgerEntry, ProvisionRequest
from mailtm_batch.outcomes import (
    AlreadyExists,
    Created,
    Outcome,
    PermanentFailure,
    RateLimited,
    TransientError,
)
from mailtm_batch.probe import probe_existing
from mailtm_batch.report import aggregate, render_report_text, report_to_dict
from mailtm_batch.retry import RetryGovernor, backoff_delay, worst_case_wait
from mailtm_batch.runner import BatchRunner, ProgressEvent
from mailtm_batch.sequence import generate_requests, pad_width

__all__ = [
    "MailTmBatchError",
    "InvalidParameterError",
    "UpstreamUnavailableError",
    "UpstreamRequestError",
    "BatchCancelledError",
    "MailTmClient",
    "DEFAULT_API_BASE",
    "ProvisionRequest",
    "LedgerEntry",
    "BatchReport",
    "Outcome",
    "Created",
    "AlreadyExists",
    "RateLimited",
    "TransientError",
    "PermanentFailure",
    "generate_requests",
    "pad_width",
    "probe_existing",
    "ALREADY_USED_MARKER",
    "classify_response",
    "attempt_provision",
    "RetryGovernor",
    "backoff_delay",
    "worst_case_wait",
    "BatchRunner",
    "ProgressEvent",
    "CancelToken",
    "aggregate",
    "render_report_text",
    "report_to_dict",
]
