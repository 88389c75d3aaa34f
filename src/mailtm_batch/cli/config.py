"""Configuration helpers for the mailtm-batch CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mailtm_batch.client import DEFAULT_API_BASE, DEFAULT_REQUEST_TIMEOUT
from mailtm_batch.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES
from mailtm_batch.runner import DEFAULT_PACING_DELAY

DEFAULT_CONFIG_PATH = Path.home() / ".mailtm_batch" / "config.toml"
DEFAULT_REPORT_PATH = "accounts.txt"
API_BASE_ENV_VAR = "MAILTM_API_BASE"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class CLIConfig:
    api_base: str = DEFAULT_API_BASE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    pacing_delay: float = DEFAULT_PACING_DELAY
    report_path: str = DEFAULT_REPORT_PATH
    min_password_length: int = 1
    log_level: str = "WARNING"


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _to_float(value: Any, field_name: str, *, minimum: float = 0.0) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a number")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a number") from exc
    if parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum:g}")
    return parsed


def _to_int(value: Any, field_name: str, *, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"{field_name} must be an integer")
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc
    if parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return parsed


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    env_api_base = os.getenv(API_BASE_ENV_VAR)
    if not config_path.exists():
        if env_api_base and env_api_base.strip():
            return CLIConfig(api_base=env_api_base.strip())
        return CLIConfig()

    parsed = _load_toml(config_path)
    section = parsed.get("batch")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[batch] must be a table")

    configured_api_base = str(source.get("api_base", DEFAULT_API_BASE)).strip()
    api_base = env_api_base.strip() if env_api_base and env_api_base.strip() else configured_api_base
    if not api_base:
        raise ConfigError("api_base must not be empty")

    request_timeout = _to_float(
        source.get("request_timeout", DEFAULT_REQUEST_TIMEOUT), "request_timeout", minimum=0.1
    )
    max_retries = _to_int(source.get("max_retries", DEFAULT_MAX_RETRIES), "max_retries")
    base_delay = _to_float(source.get("base_delay", DEFAULT_BASE_DELAY), "base_delay")
    pacing_delay = _to_float(source.get("pacing_delay", DEFAULT_PACING_DELAY), "pacing_delay")

    report_path = str(source.get("report_path", DEFAULT_REPORT_PATH)).strip()
    if not report_path:
        raise ConfigError("report_path must not be empty")

    min_password_length = _to_int(
        source.get("min_password_length", 1), "min_password_length", minimum=1
    )

    log_level = str(source.get("log_level", "WARNING")).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError("log_level must be one of: debug, info, warning, error")

    return CLIConfig(
        api_base=api_base,
        request_timeout=request_timeout,
        max_retries=max_retries,
        base_delay=base_delay,
        pacing_delay=pacing_delay,
        report_path=report_path,
        min_password_length=min_password_length,
        log_level=log_level,
    )
