"""Command-line interface for mailtm-batch."""

from __future__ import annotations

import argparse
import json
import re
import signal
import sys
import threading
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Sequence

from mailtm_batch.attempt import attempt_provision
from mailtm_batch.cancel import CancelToken
from mailtm_batch.cli.config import LOG_LEVELS, CLIConfig, ConfigError, load_cli_config
from mailtm_batch.cli.export import ExportError, write_json_summary, write_report
from mailtm_batch.cli.logs import setup_logging
from mailtm_batch.cli.prompts import BatchParameters, PromptError, collect_parameters
from mailtm_batch.client import MailTmClient
from mailtm_batch.errors import InvalidParameterError, UpstreamUnavailableError
from mailtm_batch.models import BatchReport
from mailtm_batch.probe import probe_existing
from mailtm_batch.report import render_report_text, report_to_dict
from mailtm_batch.retry import RetryGovernor
from mailtm_batch.runner import BatchRunner, ProgressEvent
from mailtm_batch.sequence import format_local_part, generate_requests, pad_width

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_BATCH_FAILURES = 3
EXIT_CANCELLED = 130

_SENSITIVE_FIELDS = (
    "password",
    "secret",
    "token",
    "authorization",
)


def _sdk_version() -> str:
    try:
        return pkg_version("mailtm-batch")
    except PackageNotFoundError:
        return "0.0.0+local"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailtm-batch")
    parser.add_argument(
        "--version",
        action="version",
        version=f"mailtm-batch {_sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.mailtm_batch/config.toml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Diagnostic log level (default from config)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    domains = sub.add_parser("domains", help="List domains offered upstream")
    domains.add_argument("--api-base", default=None, help="API base URL override")
    domains.add_argument("--json", action="store_true")

    probe = sub.add_parser("probe", help="Check whether an address/password pair already exists")
    probe.add_argument("--api-base", default=None, help="API base URL override")
    probe.add_argument("--address", required=True)
    probe.add_argument("--password", required=True)
    probe.add_argument("--json", action="store_true")

    create = sub.add_parser("create", help="Create a numbered batch of accounts")
    create.add_argument("--api-base", default=None, help="API base URL override")
    create.add_argument("--count", default=None, help="Number of accounts to create")
    create.add_argument(
        "--domain",
        default=None,
        help="Domain name, or its 1-based position in the upstream list",
    )
    create.add_argument("--password", default=None, help="Password shared by every account")
    create.add_argument(
        "--base-username",
        default=None,
        help="Base local part; accounts become <base>01, <base>02, ...",
    )
    create.add_argument("--output", default=None, help="Report path (default from config)")
    create.add_argument("--json-summary", default=None, help="Also write a JSON summary here")
    create.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt; missing domain falls back to the first listed one",
    )
    create.add_argument(
        "--skip-probe",
        action="store_true",
        help="Do not check whether the base address already exists",
    )
    create.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when any account fails",
    )
    create.add_argument("--json", action="store_true")

    return parser


def _sanitize_error_text(value: str, *, secrets: Sequence[str] = ()) -> str:
    redacted = value
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, "[REDACTED]")
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)(\"?{field}\"?\s*[=:]\s*\"?)([^,\s\"}}]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def _print_error(
    stderr,
    prefix: str,
    message: str,
    *,
    code: int,
    secrets: Sequence[str] = (),
) -> int:
    print(f"{prefix}: {_sanitize_error_text(message, secrets=secrets)}", file=stderr)
    return code


def _build_client(*, api_base: str, config: CLIConfig) -> MailTmClient:
    return MailTmClient(base_url=api_base, timeout=config.request_timeout)


def _ask_from(stdin, stdout):
    def ask(question: str) -> str:
        print(question, end="", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            raise PromptError("input closed before all parameters were supplied")
        return line.rstrip("\n")

    return ask


@contextmanager
def _sigint_cancels(token: CancelToken):
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _progress_printer(stdout):
    def on_progress(event: ProgressEvent) -> None:
        entry = event.entry
        status = "ok" if entry.succeeded else "failed"
        print(
            f"[{event.index}/{event.total}] {entry.identity} ... {status}: "
            f"{entry.outcome.describe()} (attempts={entry.attempts})",
            file=stdout,
            flush=True,
        )

    return on_progress


def _run_domains(*, args, config: CLIConfig, stdout, stderr) -> int:
    api_base = args.api_base or config.api_base
    client = _build_client(api_base=api_base, config=config)
    try:
        domains = client.list_domains()
    except UpstreamUnavailableError as exc:
        return _print_error(stderr, "upstream error", str(exc), code=EXIT_NETWORK_ERROR)

    if args.json:
        print(json.dumps({"api_base": api_base, "domains": domains}, sort_keys=True), file=stdout)
        return EXIT_SUCCESS
    for position, name in enumerate(domains, start=1):
        print(f"{position}. {name}", file=stdout)
    return EXIT_SUCCESS


def _run_probe(*, args, config: CLIConfig, stdout, stderr) -> int:
    api_base = args.api_base or config.api_base
    client = _build_client(api_base=api_base, config=config)
    exists = probe_existing(client, args.address, args.password)
    if args.json:
        print(json.dumps({"address": args.address, "exists": exists}, sort_keys=True), file=stdout)
    else:
        print(f"{args.address}: {'exists' if exists else 'not found'}", file=stdout)
    return EXIT_SUCCESS


def _print_plan(params: BatchParameters, stdout) -> None:
    width = pad_width(params.count)
    first = format_local_part(params.base_identity, 1, width)
    last = format_local_part(params.base_identity, params.count, width)
    print("=" * 40, file=stdout)
    print(f"  Creating {params.count} accounts...", file=stdout)
    print(f"  Username pattern: {first} - {last}", file=stdout)
    print(f"  Domain: {params.domain}", file=stdout)
    print("=" * 40, file=stdout)


def _print_summary(
    *,
    report: BatchReport,
    report_path,
    summary_path,
    as_json: bool,
    stdout,
) -> None:
    if as_json:
        payload = report_to_dict(report)
        payload["report_path"] = str(report_path)
        payload["summary_path"] = str(summary_path) if summary_path else None
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return
    print("=" * 40, file=stdout)
    print("  CANCELLED" if report.cancelled else "  DONE!", file=stdout)
    print(f"  Created: {report.created_count}", file=stdout)
    print(f"  Failed: {report.failed_count}", file=stdout)
    if report.cancelled:
        print(f"  Processed: {len(report.entries)} of {report.requested}", file=stdout)
    print(f"  Saved to: {report_path}", file=stdout)
    print("=" * 40, file=stdout)


def _run_create(*, args, config: CLIConfig, stdout, stderr, stdin) -> int:
    api_base = args.api_base or config.api_base
    client = _build_client(api_base=api_base, config=config)
    # Human-facing chatter goes to stderr when stdout carries JSON.
    info = stderr if args.json else stdout
    secrets = (args.password,) if args.password else ()

    print("Fetching available domains...", file=info)
    try:
        domains = client.list_domains()
    except UpstreamUnavailableError as exc:
        return _print_error(
            stderr, "upstream error", f"could not fetch domains: {exc}", code=EXIT_NETWORK_ERROR
        )

    ask = None if args.no_input else _ask_from(stdin, info)
    try:
        params = collect_parameters(
            domains=domains,
            ask=ask,
            stdout=info,
            count=args.count,
            domain=args.domain,
            password=args.password,
            base_identity=args.base_username,
            min_password_length=config.min_password_length,
        )
        batch = generate_requests(
            params.base_identity, params.domain, params.password, params.count
        )
    except (PromptError, InvalidParameterError) as exc:
        return _print_error(
            stderr, "input error", str(exc), code=EXIT_VALIDATION_ERROR, secrets=secrets
        )
    except KeyboardInterrupt:
        print(file=info)
        return _print_error(
            stderr, "cancelled", "interrupted before the batch started", code=EXIT_CANCELLED
        )
    secrets = (params.password,)

    if not args.skip_probe:
        base_address = f"{params.base_identity}@{params.domain}"
        print(f"Checking if {base_address!r} already exists...", file=info)
        if probe_existing(client, base_address, params.password):
            print(
                f"warning: {base_address!r} already exists; "
                "numbered accounts will still be created.",
                file=info,
            )
        else:
            print(f"{base_address!r} is available.", file=info)

    _print_plan(params, info)

    token = CancelToken()
    governor = RetryGovernor(
        attempt=lambda request: attempt_provision(client, request),
        max_retries=config.max_retries,
        base_delay=config.base_delay,
        cancel_token=token,
    )
    runner = BatchRunner(
        governor=governor,
        pacing_delay=config.pacing_delay,
        on_progress=_progress_printer(info),
        cancel_token=token,
    )
    with _sigint_cancels(token):
        report = runner.run(batch)

    report_path = args.output or config.report_path
    try:
        written = write_report(report_path, render_report_text(report))
        summary_written = (
            write_json_summary(args.json_summary, report_to_dict(report))
            if args.json_summary
            else None
        )
    except ExportError as exc:
        return _print_error(
            stderr, "export error", str(exc), code=EXIT_VALIDATION_ERROR, secrets=secrets
        )

    _print_summary(
        report=report,
        report_path=written,
        summary_path=summary_written,
        as_json=args.json,
        stdout=stdout,
    )
    if report.cancelled:
        return EXIT_CANCELLED
    if args.strict and report.failed_count:
        return EXIT_BATCH_FAILURES
    return EXIT_SUCCESS


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    stdin=sys.stdin,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    setup_logging(args.log_level or config.log_level, stream=stderr)

    if args.command == "domains":
        return _run_domains(args=args, config=config, stdout=stdout, stderr=stderr)

    if args.command == "probe":
        return _run_probe(args=args, config=config, stdout=stdout, stderr=stderr)

    if args.command == "create":
        return _run_create(args=args, config=config, stdout=stdout, stderr=stderr, stdin=stdin)

    parser.error(f"unknown command: {args.command}")
    return EXIT_VALIDATION_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
