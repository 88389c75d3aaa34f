"""Ledger aggregation and report rendering."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from mailtm_batch.models import BatchReport, LedgerEntry
from mailtm_batch.outcomes import AlreadyExists, Created
from mailtm_batch.schemas import ReportEntrySummary, ReportSummary

RULE = "=" * 36


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def aggregate(
    entries: Iterable[LedgerEntry],
    *,
    requested: int | None = None,
    cancelled: bool = False,
) -> BatchReport:
    ordered = tuple(entries)
    created = sum(1 for entry in ordered if entry.succeeded)
    return BatchReport(
        entries=ordered,
        created_count=created,
        failed_count=len(ordered) - created,
        requested=len(ordered) if requested is None else requested,
        cancelled=cancelled,
    )


def _account_id_label(entry: LedgerEntry) -> str:
    outcome = entry.outcome
    if isinstance(outcome, Created):
        return outcome.account_id or "-"
    if isinstance(outcome, AlreadyExists):
        return "already-exists"
    return "-"


def render_report_text(report: BatchReport, *, generated_at: str | None = None) -> str:
    lines = [
        RULE,
        "  MAIL.TM ACCOUNTS - BULK EXPORT",
        f"  Generated: {generated_at or _utc_now_iso()}",
        RULE,
        "",
        f"Total Created: {report.created_count}",
        f"Total Failed: {report.failed_count}",
    ]
    if report.cancelled:
        lines.append(f"Cancelled: {len(report.entries)} of {report.requested} processed")
    lines += ["", "--- SUCCESSFUL ACCOUNTS ---", ""]

    for entry in report.successes:
        lines += [
            f"Email: {entry.identity}",
            f"Password: {entry.request.secret}",
            f"Account ID: {_account_id_label(entry)}",
            "---",
        ]

    if report.failed_count > 0:
        lines += ["", "--- FAILED ACCOUNTS ---", ""]
        for entry in report.failures:
            lines += [
                f"Email: {entry.identity}",
                f"Reason: {entry.outcome.describe()}",
                "---",
            ]

    return "\n".join(lines) + "\n"


def report_to_dict(report: BatchReport, *, generated_at: str | None = None) -> dict:
    summary = ReportSummary(
        generated_at=generated_at or _utc_now_iso(),
        requested=report.requested,
        total_created=report.created_count,
        total_failed=report.failed_count,
        cancelled=report.cancelled,
        entries=[
            ReportEntrySummary(
                index=entry.request.index,
                identity=entry.identity,
                outcome=entry.outcome.kind,
                attempts=entry.attempts,
                success=entry.succeeded,
                account_id=getattr(entry.outcome, "account_id", None),
                detail=entry.outcome.describe(),
            )
            for entry in report.entries
        ],
    )
    return summary.model_dump()
