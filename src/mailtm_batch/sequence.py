"""Deterministic account request sequence."""

from __future__ import annotations

from mailtm_batch.errors import InvalidParameterError
from mailtm_batch.models import ProvisionRequest

MIN_PAD_WIDTH = 2


def pad_width(count: int) -> int:
    return max(MIN_PAD_WIDTH, len(str(count)))


def format_local_part(base_identity: str, index: int, width: int) -> str:
    return f"{base_identity}{index:0{width}d}"


def generate_requests(
    base_identity: str,
    domain: str,
    secret: str,
    count: int,
) -> tuple[ProvisionRequest, ...]:
    """Return ``count`` requests ``<base><NN>@<domain>`` numbered from 1.

    The numeric suffix is zero-padded to ``max(2, digits(count))`` so the
    generated names sort the same alphabetically and numerically. Identical
    inputs always yield the identical sequence, which is what lets a partly
    finished batch be re-derived and audited.
    """
    if not base_identity:
        raise InvalidParameterError("base identity must not be empty")
    if "." not in domain:
        raise InvalidParameterError(f"domain must contain a '.' separator: {domain!r}")
    if not secret:
        raise InvalidParameterError("secret must not be empty")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidParameterError(f"count must be an integer >= 1, got {count!r}")

    width = pad_width(count)
    return tuple(
        ProvisionRequest(
            identity=f"{format_local_part(base_identity, index, width)}@{domain}",
            secret=secret,
            index=index,
        )
        for index in range(1, count + 1)
    )
