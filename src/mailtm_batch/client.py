"""Thin client for the mail.tm account endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from mailtm_batch.errors import UpstreamRequestError, UpstreamUnavailableError
from mailtm_batch.schemas import DomainRecord

DEFAULT_API_BASE = "https://api.mail.tm"
DEFAULT_REQUEST_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


@dataclass
class MailTmClient:
    base_url: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    retries: int = 2

    def __post_init__(self) -> None:
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        self._session = self._mounted_session(HTTPAdapter(max_retries=retry))
        # POST /accounts is retried only by RetryGovernor, so every attempt is one connection.
        self._write_session = self._mounted_session(HTTPAdapter(max_retries=Retry(0, read=False)))

    @staticmethod
    def _mounted_session(adapter: HTTPAdapter) -> requests.Session:
        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, *, json_payload: dict | None = None):
        headers = {"Accept": "application/json"}
        session = self._session if method == "GET" else self._write_session
        try:
            return session.request(
                method,
                self._url(path),
                json=json_payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamUnavailableError(f"timed out after {self.timeout}s: {exc}") from exc
        except requests.RequestException as exc:
            raise UpstreamUnavailableError(str(exc)) from exc

    def _request(self, method: str, path: str, *, json_payload: dict | None = None) -> object:
        response = self._send(method, path, json_payload=json_payload)
        if response.status_code >= 400:
            raise UpstreamRequestError(
                f"{method} {path} failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamRequestError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def list_domains(self) -> list[str]:
        payload = self._request("GET", "/domains")
        if isinstance(payload, dict):
            payload = payload.get("hydra:member", [])
        if not isinstance(payload, list):
            raise UpstreamRequestError("GET /domains returned an unexpected payload", body=payload)
        try:
            records = [DomainRecord.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise UpstreamRequestError(f"GET /domains returned malformed records: {exc}") from exc
        domains = [record.domain for record in records if record.is_active]
        logger.debug("upstream lists %d active domain(s)", len(domains))
        return domains

    def create_account(self, address: str, password: str):
        payload = {"address": address, "password": password}
        return self._send("POST", "/accounts", json_payload=payload)

    def request_token(self, address: str, password: str):
        payload = {"address": address, "password": password}
        return self._send("POST", "/token", json_payload=payload)


__all__ = ["MailTmClient", "DEFAULT_API_BASE", "DEFAULT_REQUEST_TIMEOUT"]
