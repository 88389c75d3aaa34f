"""Report persistence for the mailtm-batch CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class ExportError(ValueError):
    """Raised when a report cannot be persisted."""


def write_report(path: str | Path, content: str) -> Path:
    report_path = Path(path)
    try:
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"failed to write report file: {report_path}") from exc
    return report_path.resolve()


def write_json_summary(path: str | Path, payload: dict[str, Any]) -> Path:
    summary_path = Path(path)
    try:
        summary_path.parent.mkdir(parents=True, exist_ok=True)
        summary_path.write_text(
            json.dumps(payload, sort_keys=True, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise ExportError(f"failed to write summary file: {summary_path}") from exc
    return summary_path.resolve()
