from __future__ import annotations

from typing import Any

import pytest
import requests

from ipscope.config import Settings
from ipscope.service import build_service

GOOGLE_DNS_PAYLOAD = {
    "ip": "8.8.8.8",
    "hostname": "dns.google",
    "city": "Mountain View",
    "region": "California",
    "country": "US",
    "loc": "37.4056,-122.0775",
    "postal": "94043",
    "timezone": "America/Los_Angeles",
    "org": "AS15169 Google LLC",
    "asn": {
        "asn": "AS15169",
        "name": "Google LLC",
        "domain": "google.com",
        "route": "8.8.8.0/24",
        "type": "hosting",
    },
    "privacy": {
        "vpn": False,
        "proxy": False,
        "tor": False,
        "relay": False,
        "hosting": True,
        "service": "",
    },
    "company": {"name": "Google LLC", "domain": "google.com", "type": "hosting"},
}

EDGE_METADATA = {
    "country": "US",
    "region": "Texas",
    "city": "Dallas",
    "postalCode": "75201",
    "timezone": "America/Chicago",
    "latitude": "32.78306",
    "longitude": "-96.80667",
    "continent": "NA",
    "asn": 7922,
    "asOrganization": "Comcast Cable",
    "colo": "DFW",
    "httpProtocol": "HTTP/3",
    "tlsVersion": "TLSv1.3",
    "tlsCipher": "AEAD-AES128-GCM-SHA256",
    "botManagement": {"score": 85, "verifiedBot": False, "staticResource": False},
    "clientTcpRtt": 30,
}


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, body_is_json: bool = True) -> None:
        self.payload = payload
        self.status_code = status_code
        self.body_is_json = body_is_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        if not self.body_is_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    """Stands in for ``requests.Session``; records every outbound call."""

    def __init__(self, responses: dict[str, Any] | None = None, default: Any = None) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        outcome = self.default
        for ip, response in self.responses.items():
            if f"/{ip}/json" in url:
                outcome = response
                break
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return FakeResponse(status_code=404, payload={"error": "not found"})
        return outcome


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(lookup_token="test-token", lookup_url="https://lookup.example")


@pytest.fixture
def google_session() -> FakeSession:
    return FakeSession({"8.8.8.8": FakeResponse(GOOGLE_DNS_PAYLOAD)})


@pytest.fixture
def service(settings: Settings, google_session: FakeSession):
    return build_service(settings, session=google_session)  # type: ignore[arg-type]
