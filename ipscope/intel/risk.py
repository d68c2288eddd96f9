"""Scoring heuristics: threat level, connection quality and location accuracy."""

from __future__ import annotations

from .models import EdgeMetadata, PrivacyInfo

LOW_THREAT = "low"
MEDIUM_THREAT = "medium"
HIGH_THREAT = "high"

HIGH_ACCURACY = "high"
MEDIUM_ACCURACY = "medium"
LOW_ACCURACY = "low"

EXCELLENT_QUALITY = "excellent"
GOOD_QUALITY = "good"
FAIR_QUALITY = "fair"
POOR_QUALITY = "poor"

# Ordered most restrictive first; the first matching band wins.
BOT_SCORE_BANDS = ((30, 3), (50, 2), (80, 1))
RTT_BANDS = ((50, 2), (100, 1))

HTTP_PROTOCOL_POINTS = {"HTTP/3": 3, "HTTP/2": 2, "HTTP/1.1": 1}
TLS_VERSION_POINTS = {"TLSv1.3": 2, "TLSv1.2": 1}

PRIVACY_POINTS = (
    ("tor", 3),
    ("vpn", 2),
    ("proxy", 2),
    ("hosting", 1),
)

LOW_BOT_SCORE_THRESHOLD = 50


def _band_points(value: float | None, bands: tuple[tuple[int, int], ...]) -> int:
    if value is None:
        return 0
    for upper_bound, points in bands:
        if value < upper_bound:
            return points
    return 0


def threat_score(bot_score: int | None, privacy: PrivacyInfo | None) -> int:
    """Return the additive risk score from bot management and privacy flags."""
    score = _band_points(bot_score, BOT_SCORE_BANDS)
    if privacy is not None:
        score += sum(points for flag, points in PRIVACY_POINTS if getattr(privacy, flag))
    return score


def assess_threat_level(bot_score: int | None, privacy: PrivacyInfo | None) -> str:
    """Return a normalized threat label (low/medium/high)."""
    score = threat_score(bot_score, privacy)
    if score >= 5:
        return HIGH_THREAT
    if score >= 3:
        return MEDIUM_THREAT
    return LOW_THREAT


def is_malicious(threat_level: str, privacy: PrivacyInfo | None) -> bool:
    """Flag high threat, or Tor and proxy together whatever the score."""
    if threat_level == HIGH_THREAT:
        return True
    return privacy is not None and privacy.tor and privacy.proxy


def collect_risk_factors(bot_score: int | None, privacy: PrivacyInfo | None) -> tuple[str, ...]:
    factors: list[str] = []
    if privacy is not None:
        if privacy.vpn:
            factors.append("VPN usage detected")
        if privacy.proxy:
            factors.append("Proxy usage detected")
        if privacy.tor:
            factors.append("Tor network usage detected")
        if privacy.hosting:
            factors.append("Hosting/datacenter IP")
    # Zero is treated as unscored here, unlike in threat_score.
    if bot_score and bot_score < LOW_BOT_SCORE_THRESHOLD:
        factors.append("Low bot management score")
    return tuple(factors)


def connection_score(edge: EdgeMetadata) -> int:
    return (
        HTTP_PROTOCOL_POINTS.get(edge.http_protocol or "", 0)
        + TLS_VERSION_POINTS.get(edge.tls_version or "", 0)
        # The edge reports 0 when no RTT was measured.
        + _band_points(edge.client_tcp_rtt or None, RTT_BANDS)
    )


def assess_connection_quality(edge: EdgeMetadata) -> str:
    """Grade protocol, TLS version and round-trip time into a quality label."""
    score = connection_score(edge)
    if score >= 6:
        return EXCELLENT_QUALITY
    if score >= 4:
        return GOOD_QUALITY
    if score >= 2:
        return FAIR_QUALITY
    return POOR_QUALITY


def assess_location_accuracy(source_count: int, latitude: float, longitude: float) -> str:
    """High needs two agreeing sources and real coordinates; medium needs one."""
    if source_count >= 2 and latitude != 0 and longitude != 0:
        return HIGH_ACCURACY
    if source_count >= 1:
        return MEDIUM_ACCURACY
    return LOW_ACCURACY
