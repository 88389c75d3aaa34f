"""Operator parameter collection for the create command."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

_DISALLOWED_IDENTITY_CHARS = re.compile(r"[^a-z0-9._-]")

AskFn = Callable[[str], str]


class PromptError(ValueError):
    """Raised when operator input cannot be used."""


@dataclass(frozen=True)
class BatchParameters:
    count: int
    domain: str
    password: str = field(repr=False)
    base_identity: str


def parse_count(raw: str | int) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        count = raw
    else:
        try:
            count = int(str(raw).strip())
        except ValueError as exc:
            raise PromptError("Please enter a valid number (1 or more).") from exc
    if count < 1:
        raise PromptError("Please enter a valid number (1 or more).")
    return count


def resolve_domain(raw: str, domains: Sequence[str]) -> str:
    """Accept a 1-based position in ``domains`` or a typed domain name."""
    value = raw.strip()
    if value.isdigit():
        position = int(value)
        if 1 <= position <= len(domains):
            return domains[position - 1]
    if "." in value:
        return value.lower()
    raise PromptError("Invalid domain selection.")


def validate_password(raw: str, *, min_length: int = 1) -> str:
    if not raw:
        raise PromptError("Password cannot be empty.")
    if len(raw) < min_length:
        raise PromptError(f"Password must be at least {min_length} characters.")
    return raw


def sanitize_base_identity(raw: str) -> str:
    cleaned = _DISALLOWED_IDENTITY_CHARS.sub("", raw.strip().lower())
    if not cleaned:
        raise PromptError("Username cannot be empty.")
    return cleaned


def collect_parameters(
    *,
    domains: Sequence[str],
    ask: AskFn | None,
    stdout,
    count: str | int | None = None,
    domain: str | None = None,
    password: str | None = None,
    base_identity: str | None = None,
    min_password_length: int = 1,
) -> BatchParameters:
    """Fill in whatever the command line left out.

    With ``ask`` set to None the run is non-interactive: a missing domain
    falls back to the first listed one and any other missing value is an
    error.
    """

    def _value(current, question: str, missing: str) -> str:
        if current is not None:
            return current
        if ask is None:
            raise PromptError(missing)
        return ask(question).strip()

    resolved_count = parse_count(
        _value(count, "How many accounts do you want to create? ", "--count is required")
    )

    if domain is None and ask is None:
        if not domains:
            raise PromptError("no domains available upstream; pass --domain")
        resolved_domain = domains[0]
    else:
        if domain is None:
            print("\nAvailable domains:", file=stdout)
            for position, name in enumerate(domains, start=1):
                print(f"  {position}. {name}", file=stdout)
            print(file=stdout)
        resolved_domain = resolve_domain(
            _value(
                domain,
                "Which domain do you want to use? (enter number or type domain): ",
                "--domain is required",
            ),
            domains,
        )
    print(f"Using domain: {resolved_domain}", file=stdout)

    resolved_password = validate_password(
        _value(
            password,
            "What password do you want for all accounts? ",
            "--password is required",
        ),
        min_length=min_password_length,
    )
    resolved_base = sanitize_base_identity(
        _value(
            base_identity,
            "What base username do you want? (e.g. 'abc' -> abc01, abc02, ...): ",
            "--base-username is required",
        )
    )

    return BatchParameters(
        count=resolved_count,
        domain=resolved_domain,
        password=resolved_password,
        base_identity=resolved_base,
    )
