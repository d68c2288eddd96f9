"""IP helpers: syntactic validation, cache keys and client address resolution."""

from __future__ import annotations

from dataclasses import dataclass
import ipaddress
from typing import Mapping

KEY_DELIMITER = "|"

REASON_REQUIRED = "IP address is required"
REASON_INVALID_FORMAT = "Invalid IP address format"


@dataclass(frozen=True, slots=True)
class IPValidation:
    """Outcome of :func:`validate_ip`."""

    valid: bool
    version: int | None = None
    reason: str = ""
    address: str = ""


def to_ip_address(value: str | None) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse ``value`` as a literal address; never resolves host names."""
    if not value:
        return None
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def validate_ip(raw: str | None) -> IPValidation:
    """Classify ``raw`` as IPv4, IPv6 or invalid.

    IPv4 must be a dotted quad without leading zeros. IPv6 accepts every
    compressed form, an embedded IPv4 suffix and a ``%zone`` id.
    """
    if raw is None or not str(raw).strip():
        return IPValidation(valid=False, reason=REASON_REQUIRED)

    parsed = to_ip_address(str(raw))
    if parsed is None:
        return IPValidation(valid=False, reason=REASON_INVALID_FORMAT)
    return IPValidation(valid=True, version=parsed.version, address=str(parsed))


def build_cache_key(namespace: str, ip: str, qualifier: str = "") -> str:
    """Return a deterministic cache key scoped to ``namespace``."""
    if not namespace or KEY_DELIMITER in namespace:
        raise ValueError(f"namespace must be non-empty and must not contain {KEY_DELIMITER!r}")
    key = f"{namespace}{KEY_DELIMITER}{ip}"
    if qualifier:
        key = f"{key}{KEY_DELIMITER}{qualifier}"
    return key


def resolve_client_ip(headers: Mapping[str, str] | None) -> str | None:
    """Return the connecting client address advertised by the edge.

    ``CF-Connecting-IP`` wins; otherwise the first ``X-Forwarded-For`` hop.
    Header names are matched case-insensitively.
    """
    if not headers:
        return None
    lowered = {str(name).lower(): str(value) for name, value in headers.items()}

    connecting_ip = lowered.get("cf-connecting-ip", "").strip()
    if connecting_ip:
        return connecting_ip

    forwarded_for = lowered.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    return first_hop or None
