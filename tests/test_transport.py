"""Summary: Tests for the urllib transport.

Importance: Ensures network failures map onto the ACARS error taxonomy.
Alternatives: Run against a local HTTP server fixture.
"""

from __future__ import annotations

import io
import socket
import urllib.error
import urllib.request
from typing import Any

import pytest

from acarsdispatch.codec import RequestSpec
from acarsdispatch.errors import (
    ErrorKind,
    ServerRejectedError,
    TransportTimeoutError,
    UnreachableError,
)
from acarsdispatch.transport import HttpTransport


class _FakeResponse:
    def __init__(self, body: str, status: int = 200) -> None:
        self.status = status
        self._body = body.encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *args: Any) -> None:
        return None


SPEC = RequestSpec(url="http://hoppie.test/connect.html", params={"logon": "secret", "packet": "read"})


def test_fetch_returns_body_and_uses_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify successful responses return the text body.

    Importance: The codec needs the raw body to decode messages.
    Alternatives: Return response objects to callers.
    """

    calls: list[tuple[str, float]] = []

    def fake_urlopen(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        calls.append((request.full_url, timeout))
        return _FakeResponse("ok")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    body = HttpTransport(timeout_seconds=4.0).fetch(SPEC)
    assert body == "ok"
    assert calls == [("http://hoppie.test/connect.html?logon=secret&packet=read", 4.0)]


def test_fetch_maps_http_error_to_server_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise urllib.error.HTTPError(request.full_url, 503, "Service Unavailable", {}, io.BytesIO(b""))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    with pytest.raises(ServerRejectedError) as excinfo:
        HttpTransport().fetch(SPEC)
    assert excinfo.value.status == 503
    assert excinfo.value.kind is ErrorKind.SERVER_REJECTED


def test_fetch_maps_non_2xx_status(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: _FakeResponse("", 304))
    with pytest.raises(ServerRejectedError) as excinfo:
        HttpTransport().fetch(SPEC)
    assert excinfo.value.status == 304


def test_fetch_maps_timeouts(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify connect and read timeouts become timeout errors.

    Importance: Operators see a timeout message instead of a generic failure.
    Alternatives: Treat timeouts as unreachable hosts.
    """

    def connect_timeout(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise urllib.error.URLError(socket.timeout("timed out"))

    def read_timeout(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise TimeoutError("read timed out")

    for fake in (connect_timeout, read_timeout):
        monkeypatch.setattr(urllib.request, "urlopen", fake)
        with pytest.raises(TransportTimeoutError):
            HttpTransport().fetch(SPEC)


def test_fetch_maps_connection_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    def dns_failure(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise urllib.error.URLError(socket.gaierror(-2, "Name or service not known"))

    def refused(request: urllib.request.Request, timeout: float) -> _FakeResponse:
        raise ConnectionRefusedError(111, "Connection refused")

    for fake in (dns_failure, refused):
        monkeypatch.setattr(urllib.request, "urlopen", fake)
        with pytest.raises(UnreachableError) as excinfo:
            HttpTransport().fetch(SPEC)
        assert excinfo.value.kind is ErrorKind.UNREACHABLE
