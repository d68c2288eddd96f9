"""Normalization of edge-supplied request metadata."""

from __future__ import annotations

from typing import Any, Mapping

from .models import EdgeMetadata

CONTINENT_NAMES = {
    "AF": "Africa",
    "AN": "Antarctica",
    "AS": "Asia",
    "EU": "Europe",
    "NA": "North America",
    "OC": "Oceania",
    "SA": "South America",
}

# Partial map of edge node codes; unknown codes are rendered generically.
DATACENTER_LOCATIONS = {
    "ATL": "Atlanta, US",
    "DFW": "Dallas, US",
    "EWR": "Newark, US",
    "IAD": "Ashburn, US",
    "LAX": "Los Angeles, US",
    "MIA": "Miami, US",
    "ORD": "Chicago, US",
    "SJC": "San Jose, US",
    "SEA": "Seattle, US",
    "LHR": "London, UK",
    "CDG": "Paris, France",
    "FRA": "Frankfurt, Germany",
    "AMS": "Amsterdam, Netherlands",
    "SIN": "Singapore",
    "NRT": "Tokyo, Japan",
    "HKG": "Hong Kong",
    "SYD": "Sydney, Australia",
    "GRU": "São Paulo, Brazil",
    "YYZ": "Toronto, Canada",
}


def continent_name(code: str | None) -> str:
    """Return the continent name for a two-letter code, or the code itself."""
    code = (code or "").strip().upper()
    return CONTINENT_NAMES.get(code, code)


def datacenter_location(colo: str | None) -> str:
    """Return a human-readable location for an edge node code."""
    colo = (colo or "").strip().upper()
    if not colo:
        return "unknown"
    return DATACENTER_LOCATIONS.get(colo, f"{colo} Datacenter")


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _integer(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _flag(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def extract_edge_metadata(raw: Mapping[str, Any] | None) -> EdgeMetadata:
    """Snapshot the edge metadata object into :class:`EdgeMetadata`.

    Every key is optional and read independently. A missing or malformed
    ``botManagement`` block yields empty security fields rather than an error.
    """
    if not isinstance(raw, Mapping):
        return EdgeMetadata()

    bot_management = raw.get("botManagement")
    if not isinstance(bot_management, Mapping):
        bot_management = {}

    return EdgeMetadata(
        country=_text(raw.get("country")),
        region=_text(raw.get("region")) or _text(raw.get("regionCode")),
        city=_text(raw.get("city")),
        postal_code=_text(raw.get("postalCode")),
        timezone=_text(raw.get("timezone")),
        latitude=_text(raw.get("latitude")),
        longitude=_text(raw.get("longitude")),
        continent=_text(raw.get("continent")),
        asn=_integer(raw.get("asn")),
        as_organization=_text(raw.get("asOrganization")),
        colo=_text(raw.get("colo")),
        http_protocol=_text(raw.get("httpProtocol")),
        tls_version=_text(raw.get("tlsVersion")),
        tls_cipher=_text(raw.get("tlsCipher")),
        bot_score=_integer(bot_management.get("score")),
        verified_bot=_flag(bot_management.get("verifiedBot")),
        static_resource=_flag(bot_management.get("staticResource")),
        client_tcp_rtt=_number(raw.get("clientTcpRtt")),
        request_priority=_text(raw.get("requestPriority")),
        edge_keepalive_status=_integer(raw.get("edgeRequestKeepAliveStatus")),
        client_accept_encoding=_text(raw.get("clientAcceptEncoding")),
    )
