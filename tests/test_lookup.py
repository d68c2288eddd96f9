from __future__ import annotations

import logging
import threading
import time

import pytest
import requests

from ipscope.intel.lookup import CachedLookup, LookupClient
from ipscope.intel.models import ExternalLookupResult
from ipscope.storage import TTLCache

from .conftest import GOOGLE_DNS_PAYLOAD, FakeResponse, FakeSession


def _client(session: FakeSession) -> LookupClient:
    return LookupClient("secret", base_url="https://lookup.example/", timeout_seconds=2.5, session=session)  # type: ignore[arg-type]


def test_fetch_builds_request_and_parses_payload(google_session):
    result = _client(google_session).fetch("8.8.8.8")

    assert isinstance(result, ExternalLookupResult)
    assert result.ip == "8.8.8.8"
    assert result.loc == "37.4056,-122.0775"
    assert result.asn is not None and result.asn.asn == "AS15169"
    assert result.privacy is not None and result.privacy.hosting is True
    assert result.carrier is None

    call = google_session.calls[0]
    assert call["url"] == "https://lookup.example/8.8.8.8/json"
    assert call["params"] == {"token": "secret"}
    assert call["timeout"] == 2.5


def test_fetch_returns_none_on_timeout():
    session = FakeSession(default=requests.Timeout("read timed out"))
    assert _client(session).fetch("8.8.8.8") is None


def test_fetch_returns_none_on_connection_error():
    session = FakeSession(default=requests.ConnectionError("refused"))
    assert _client(session).fetch("8.8.8.8") is None


def test_fetch_returns_none_on_error_status():
    session = FakeSession(default=FakeResponse({"error": "rate limited"}, status_code=429))
    assert _client(session).fetch("8.8.8.8") is None


def test_fetch_returns_none_on_unusable_body():
    assert _client(FakeSession(default=FakeResponse(body_is_json=False))).fetch("1.1.1.1") is None
    assert _client(FakeSession(default=FakeResponse(["not", "an", "object"]))).fetch("1.1.1.1") is None


@pytest.mark.parametrize(
    ("outcome", "message"),
    [
        (requests.Timeout("read timed out"), "lookup for 8.8.8.8 timed out"),
        (requests.ConnectionError("refused"), "lookup for 8.8.8.8 failed: refused"),
        (FakeResponse(body_is_json=False), "lookup for 8.8.8.8 failed: Expecting value"),
    ],
)
def test_fetch_failures_are_logged_not_raised(outcome, message, caplog):
    with caplog.at_level(logging.WARNING, logger="ipscope.intel.lookup"):
        assert _client(FakeSession(default=outcome)).fetch("8.8.8.8") is None
    assert message in caplog.text


def test_payload_without_ip_uses_requested_address():
    session = FakeSession(default=FakeResponse({"city": "Paris"}))
    result = _client(session).fetch("9.9.9.9")
    assert result is not None
    assert result.ip == "9.9.9.9"
    assert result.city == "Paris"


def test_cached_lookup_calls_upstream_once_within_ttl(clock, google_session):
    lookup = CachedLookup(_client(google_session), TTLCache(10, clock=clock), ttl=600)

    first = lookup.fetch("8.8.8.8")
    second = lookup.fetch("8.8.8.8")

    assert first == second
    assert len(google_session.calls) == 1
    assert lookup.stats()["outbound_calls"] == 1
    assert lookup.stats()["hits"] == 1


def test_cached_lookup_refetches_after_expiry(clock, google_session):
    lookup = CachedLookup(_client(google_session), TTLCache(10, clock=clock), ttl=600)

    lookup.fetch("8.8.8.8")
    clock.advance(600)
    lookup.fetch("8.8.8.8")

    assert len(google_session.calls) == 2


def test_failed_lookup_is_cached(clock):
    session = FakeSession(default=requests.Timeout("slow"))
    lookup = CachedLookup(_client(session), TTLCache(10, clock=clock), ttl=600)

    assert lookup.fetch("8.8.8.8") is None
    assert lookup.fetch("8.8.8.8") is None
    assert len(session.calls) == 1


def test_failed_lookup_uses_null_ttl(clock):
    session = FakeSession(default=requests.Timeout("slow"))
    lookup = CachedLookup(_client(session), TTLCache(10, clock=clock), ttl=600, null_ttl=30)

    lookup.fetch("8.8.8.8")
    clock.advance(30)
    lookup.fetch("8.8.8.8")

    assert len(session.calls) == 2


class _SlowClient:
    def __init__(self) -> None:
        self.calls = 0
        self.release = threading.Event()

    def fetch(self, ip: str) -> ExternalLookupResult:
        self.calls += 1
        self.release.wait(timeout=5)
        return ExternalLookupResult.from_payload(GOOGLE_DNS_PAYLOAD)


def test_concurrent_misses_share_one_outbound_call():
    client = _SlowClient()
    lookup = CachedLookup(client, TTLCache(10), ttl=600)  # type: ignore[arg-type]
    results: list[ExternalLookupResult | None] = []

    def worker() -> None:
        results.append(lookup.fetch("8.8.8.8"))

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    deadline = time.monotonic() + 5
    while client.calls == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.05)
    client.release.set()
    for thread in threads:
        thread.join()

    assert client.calls == 1
    assert len(results) == 5
    assert all(result is not None and result.ip == "8.8.8.8" for result in results)
