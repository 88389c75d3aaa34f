"""Advisory check for an already provisioned identity."""

from __future__ import annotations

import logging

from mailtm_batch.client import MailTmClient
from mailtm_batch.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


def probe_existing(client: MailTmClient, identity: str, secret: str) -> bool:
    """Return True only when ``identity``/``secret`` authenticate upstream.

    Transport errors and non-2xx responses both read as "unknown" (False).
    The result is advisory and must not influence the batch.
    """
    try:
        response = client.request_token(identity, secret)
    except UpstreamUnavailableError as exc:
        logger.debug("existence probe for %s failed: %s", identity, exc)
        return False
    return 200 <= response.status_code < 300
