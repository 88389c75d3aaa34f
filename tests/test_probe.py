from __future__ import annotations

import types

from mailtm_batch.errors import UpstreamUnavailableError
from mailtm_batch.probe import probe_existing


class _Client:
    def __init__(self, result) -> None:  # noqa: ANN001
        self.result = result
        self.calls: list[tuple[str, str]] = []

    def request_token(self, address: str, password: str):
        self.calls.append((address, password))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_probe_true_on_2xx() -> None:
    client = _Client(types.SimpleNamespace(status_code=200, text='{"token":"t"}'))
    assert probe_existing(client, "abc@x.com", "pw") is True
    assert client.calls == [("abc@x.com", "pw")]


def test_probe_false_on_401() -> None:
    client = _Client(types.SimpleNamespace(status_code=401, text="Invalid credentials."))
    assert probe_existing(client, "abc@x.com", "pw") is False


def test_probe_false_on_rate_limit() -> None:
    client = _Client(types.SimpleNamespace(status_code=429, text=""))
    assert probe_existing(client, "abc@x.com", "pw") is False


def test_probe_never_raises_on_network_failure() -> None:
    client = _Client(UpstreamUnavailableError("dns failure"))
    assert probe_existing(client, "abc@x.com", "pw") is False
