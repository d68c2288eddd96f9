"""Merge edge metadata and lookup results into one reconciled record.

Edge values win over lookup values field by field; whatever neither side
provides is emitted as an empty default. The focused views are projections of
the full record, so their classifications always match it.
"""

from __future__ import annotations

import math

from .edge import continent_name, datacenter_location
from .models import (
    ConnectionSection,
    Coordinates,
    EdgeMetadata,
    ExternalLookupResult,
    GeolocationView,
    LocationSection,
    NetworkSection,
    NetworkView,
    SecuritySection,
    SecurityView,
    SourceSummary,
    UnifiedRecord,
)
from .risk import (
    HIGH_ACCURACY,
    assess_connection_quality,
    assess_location_accuracy,
    assess_threat_level,
    collect_risk_factors,
    is_malicious,
)

EDGE_SOURCE = "edge"
EXTERNAL_SOURCE = "external"


def _first(*values: str | None) -> str:
    for value in values:
        if value:
            return value
    return ""


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def extract_coordinates(edge: EdgeMetadata, external: ExternalLookupResult | None) -> Coordinates:
    """Edge coordinates, else the lookup ``"lat,lon"`` string, else ``(0, 0)``."""
    latitude = _parse_float(edge.latitude)
    longitude = _parse_float(edge.longitude)
    if latitude is not None and longitude is not None:
        return Coordinates(latitude=latitude, longitude=longitude)

    if external is not None and external.loc:
        parts = external.loc.split(",")
        if len(parts) == 2:
            latitude = _parse_float(parts[0])
            longitude = _parse_float(parts[1])
            if latitude is not None and longitude is not None:
                return Coordinates(latitude=latitude, longitude=longitude)

    return Coordinates()


def resolve_asn(edge: EdgeMetadata, external: ExternalLookupResult | None) -> int:
    if edge.asn:
        return edge.asn
    identifier = external.asn.asn if external is not None and external.asn is not None else None
    if identifier and identifier.startswith("AS"):
        try:
            return int(identifier[2:])
        except ValueError:
            return 0
    return 0


def reconcile(
    ip: str,
    ip_version: int,
    edge: EdgeMetadata,
    external: ExternalLookupResult | None,
) -> UnifiedRecord:
    """Build the unified record for ``ip``. Pure and total."""
    coordinates = extract_coordinates(edge, external)

    sources: list[str] = []
    if edge.country:
        sources.append(EDGE_SOURCE)
    if external is not None:
        sources.append(EXTERNAL_SOURCE)
    accuracy = assess_location_accuracy(len(sources), coordinates.latitude, coordinates.longitude)

    computed_fields = ("location_accuracy",) if accuracy == HIGH_ACCURACY else ()

    location = LocationSection(
        country=_first(edge.country, external and external.country),
        country_code=edge.country or "",
        region=_first(edge.region, external and external.region),
        city=_first(edge.city, external and external.city),
        postal_code=edge.postal_code or (external.postal if external is not None else None),
        timezone=_first(edge.timezone, external and external.timezone),
        coordinates=coordinates,
        continent=continent_name(edge.continent),
        accuracy=accuracy,
        sources=tuple(sources),
    )

    asn_info = external.asn if external is not None else None
    network = NetworkSection(
        asn=resolve_asn(edge, external),
        organization=_first(edge.as_organization, external and external.org),
        isp=external.org if external is not None else None,
        domain=asn_info.domain if asn_info is not None else None,
        type=(asn_info.type if asn_info is not None else None) or "unknown",
        route=asn_info.route if asn_info is not None else None,
        connection_quality=assess_connection_quality(edge),
    )

    privacy = external.privacy if external is not None else None
    threat_level = assess_threat_level(edge.bot_score, privacy)
    security = SecuritySection(
        vpn=bool(privacy and privacy.vpn),
        proxy=bool(privacy and privacy.proxy),
        tor=bool(privacy and privacy.tor),
        hosting=bool(privacy and privacy.hosting),
        threat_level=threat_level,
        bot_score=edge.bot_score,
        verified_bot=edge.verified_bot,
        malicious=is_malicious(threat_level, privacy),
        risk_factors=collect_risk_factors(edge.bot_score, privacy),
    )

    connection = ConnectionSection(
        datacenter=datacenter_location(edge.colo),
        http_protocol=edge.http_protocol or "unknown",
        tls_version=edge.tls_version,
        tls_cipher=edge.tls_cipher,
        tcp_rtt=edge.client_tcp_rtt,
        edge_location=edge.colo or "unknown",
    )

    return UnifiedRecord(
        ip=ip,
        ip_version=ip_version,
        location=location,
        network=network,
        security=security,
        connection=connection,
        sources=SourceSummary(
            edge_metadata_present=bool(edge.country or edge.colo),
            external_result_present=external is not None,
            computed_fields=computed_fields,
        ),
        company=external.company if external is not None else None,
        carrier=external.carrier if external is not None else None,
    )


def geolocation_view(record: UnifiedRecord) -> GeolocationView:
    location = record.location
    return GeolocationView(
        ip=record.ip,
        country=location.country,
        country_code=location.country_code,
        region=location.region,
        city=location.city,
        postal_code=location.postal_code,
        timezone=location.timezone,
        coordinates=location.coordinates,
        continent=location.continent,
        accuracy=location.accuracy,
        sources=location.sources,
    )


def security_view(record: UnifiedRecord) -> SecurityView:
    security = record.security
    return SecurityView(
        ip=record.ip,
        vpn=security.vpn,
        proxy=security.proxy,
        tor=security.tor,
        hosting=security.hosting,
        threat_level=security.threat_level,
        bot_score=security.bot_score,
        verified_bot=security.verified_bot,
        malicious=security.malicious,
        risk_factors=security.risk_factors,
    )


def network_view(record: UnifiedRecord) -> NetworkView:
    network = record.network
    connection = record.connection
    return NetworkView(
        ip=record.ip,
        asn=network.asn,
        organization=network.organization,
        isp=network.isp,
        type=network.type,
        route=network.route,
        datacenter=connection.datacenter,
        http_protocol=connection.http_protocol,
        tls_version=connection.tls_version,
        connection_quality=network.connection_quality,
    )
