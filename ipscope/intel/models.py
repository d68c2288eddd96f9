"""Typed records for edge metadata, lookup results and reconciled output."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _section(payload: Mapping[str, Any], name: str) -> Mapping[str, Any] | None:
    value = payload.get(name)
    return value if isinstance(value, Mapping) else None


class _Serializable:
    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True, slots=True)
class EdgeMetadata(_Serializable):
    """Per-request attributes attached by the edge network. All optional."""

    # geographic
    country: str | None = None
    region: str | None = None
    city: str | None = None
    postal_code: str | None = None
    timezone: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    continent: str | None = None
    # network
    asn: int | None = None
    as_organization: str | None = None
    colo: str | None = None
    http_protocol: str | None = None
    tls_version: str | None = None
    tls_cipher: str | None = None
    # security
    bot_score: int | None = None
    verified_bot: bool | None = None
    static_resource: bool | None = None
    # connection
    client_tcp_rtt: float | None = None
    request_priority: str | None = None
    edge_keepalive_status: int | None = None
    client_accept_encoding: str | None = None


@dataclass(frozen=True, slots=True)
class AsnInfo(_Serializable):
    asn: str | None = None
    name: str | None = None
    domain: str | None = None
    route: str | None = None
    type: str | None = None


@dataclass(frozen=True, slots=True)
class PrivacyInfo(_Serializable):
    vpn: bool = False
    proxy: bool = False
    tor: bool = False
    relay: bool = False
    hosting: bool = False
    service: str | None = None


@dataclass(frozen=True, slots=True)
class CompanyInfo(_Serializable):
    name: str | None = None
    domain: str | None = None
    type: str | None = None


@dataclass(frozen=True, slots=True)
class CarrierInfo(_Serializable):
    name: str | None = None
    mcc: str | None = None
    mnc: str | None = None


@dataclass(frozen=True, slots=True)
class ExternalLookupResult(_Serializable):
    """IP-intelligence payload returned by the lookup endpoint."""

    ip: str
    hostname: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    loc: str | None = None
    postal: str | None = None
    timezone: str | None = None
    org: str | None = None
    asn: AsnInfo | None = None
    privacy: PrivacyInfo | None = None
    company: CompanyInfo | None = None
    carrier: CarrierInfo | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, fallback_ip: str = "") -> ExternalLookupResult:
        """Build a result from decoded JSON, ignoring unknown keys."""
        asn = _section(payload, "asn")
        privacy = _section(payload, "privacy")
        company = _section(payload, "company")
        carrier = _section(payload, "carrier")
        return cls(
            ip=_text(payload.get("ip")) or fallback_ip,
            hostname=_text(payload.get("hostname")),
            city=_text(payload.get("city")),
            region=_text(payload.get("region")),
            country=_text(payload.get("country")),
            loc=_text(payload.get("loc")),
            postal=_text(payload.get("postal")),
            timezone=_text(payload.get("timezone")),
            org=_text(payload.get("org")),
            asn=AsnInfo(
                asn=_text(asn.get("asn")),
                name=_text(asn.get("name")),
                domain=_text(asn.get("domain")),
                route=_text(asn.get("route")),
                type=_text(asn.get("type")),
            )
            if asn is not None
            else None,
            privacy=PrivacyInfo(
                vpn=bool(privacy.get("vpn")),
                proxy=bool(privacy.get("proxy")),
                tor=bool(privacy.get("tor")),
                relay=bool(privacy.get("relay")),
                hosting=bool(privacy.get("hosting")),
                service=_text(privacy.get("service")),
            )
            if privacy is not None
            else None,
            company=CompanyInfo(
                name=_text(company.get("name")),
                domain=_text(company.get("domain")),
                type=_text(company.get("type")),
            )
            if company is not None
            else None,
            carrier=CarrierInfo(
                name=_text(carrier.get("name")),
                mcc=_text(carrier.get("mcc")),
                mnc=_text(carrier.get("mnc")),
            )
            if carrier is not None
            else None,
        )


@dataclass(frozen=True, slots=True)
class Coordinates(_Serializable):
    latitude: float = 0.0
    longitude: float = 0.0


@dataclass(frozen=True, slots=True)
class LocationSection(_Serializable):
    country: str
    country_code: str
    region: str
    city: str
    postal_code: str | None
    timezone: str
    coordinates: Coordinates
    continent: str
    accuracy: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NetworkSection(_Serializable):
    asn: int
    organization: str
    isp: str | None
    domain: str | None
    type: str
    route: str | None
    connection_quality: str


@dataclass(frozen=True, slots=True)
class SecuritySection(_Serializable):
    vpn: bool
    proxy: bool
    tor: bool
    hosting: bool
    threat_level: str
    bot_score: int | None
    verified_bot: bool | None
    malicious: bool
    risk_factors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ConnectionSection(_Serializable):
    datacenter: str
    http_protocol: str
    tls_version: str | None
    tls_cipher: str | None
    tcp_rtt: float | None
    edge_location: str


@dataclass(frozen=True, slots=True)
class SourceSummary(_Serializable):
    edge_metadata_present: bool
    external_result_present: bool
    computed_fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UnifiedRecord(_Serializable):
    """Reconciled view of one IP address."""

    ip: str
    ip_version: int
    location: LocationSection
    network: NetworkSection
    security: SecuritySection
    connection: ConnectionSection
    sources: SourceSummary
    company: CompanyInfo | None = None
    carrier: CarrierInfo | None = None


@dataclass(frozen=True, slots=True)
class GeolocationView(_Serializable):
    ip: str
    country: str
    country_code: str
    region: str
    city: str
    postal_code: str | None
    timezone: str
    coordinates: Coordinates
    continent: str
    accuracy: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SecurityView(_Serializable):
    ip: str
    vpn: bool
    proxy: bool
    tor: bool
    hosting: bool
    threat_level: str
    bot_score: int | None
    verified_bot: bool | None
    malicious: bool
    risk_factors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NetworkView(_Serializable):
    ip: str
    asn: int
    organization: str
    isp: str | None
    type: str
    route: str | None
    datacenter: str
    http_protocol: str
    tls_version: str | None
    connection_quality: str
