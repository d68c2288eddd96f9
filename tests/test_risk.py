from __future__ import annotations

import pytest

from ipscope.intel.models import EdgeMetadata, PrivacyInfo
from ipscope.intel.risk import (
    assess_connection_quality,
    assess_location_accuracy,
    assess_threat_level,
    collect_risk_factors,
    connection_score,
    is_malicious,
    threat_score,
)


@pytest.mark.parametrize(
    ("bot_score", "expected"),
    [(None, 0), (0, 3), (29, 3), (30, 2), (49, 2), (50, 1), (79, 1), (80, 0), (99, 0)],
)
def test_bot_score_bands_are_exclusive(bot_score, expected):
    assert threat_score(bot_score, None) == expected


def test_privacy_flags_are_additive():
    privacy = PrivacyInfo(vpn=True, proxy=True, tor=True, hosting=True)
    assert threat_score(None, privacy) == 8


def test_high_bot_score_without_privacy_flags_is_low():
    assert assess_threat_level(85, None) == "low"


def test_very_low_bot_score_alone_scores_three():
    assert threat_score(20, None) == 3
    assert assess_threat_level(20, None) == "medium"


def test_vpn_alone_is_low():
    assert assess_threat_level(None, PrivacyInfo(vpn=True)) == "low"


@pytest.mark.parametrize(
    ("bot_score", "privacy", "expected"),
    [
        (None, PrivacyInfo(tor=True), "medium"),
        (40, PrivacyInfo(vpn=True, hosting=True), "high"),
        (60, PrivacyInfo(vpn=True), "medium"),
        (None, PrivacyInfo(tor=True, vpn=True), "high"),
        (None, PrivacyInfo(hosting=True), "low"),
    ],
)
def test_threat_level_mapping(bot_score, privacy, expected):
    assert assess_threat_level(bot_score, privacy) == expected


def test_tor_and_proxy_are_malicious_regardless_of_score():
    privacy = PrivacyInfo(tor=True, proxy=True)
    assert is_malicious("low", privacy) is True
    assert is_malicious("medium", PrivacyInfo(tor=True)) is False
    assert is_malicious("high", None) is True


def test_risk_factors():
    factors = collect_risk_factors(45, PrivacyInfo(vpn=True, hosting=True))
    assert factors == ("VPN usage detected", "Hosting/datacenter IP", "Low bot management score")
    assert collect_risk_factors(None, None) == ()


def test_best_connection_is_excellent():
    edge = EdgeMetadata(http_protocol="HTTP/3", tls_version="TLSv1.3", client_tcp_rtt=30)
    assert assess_connection_quality(edge) == "excellent"


def test_no_connection_data_is_poor():
    assert assess_connection_quality(EdgeMetadata()) == "poor"


@pytest.mark.parametrize(
    ("protocol", "tls", "rtt", "expected"),
    [
        ("HTTP/2", "TLSv1.2", 80, "good"),
        ("HTTP/2", "TLSv1.3", None, "good"),
        ("HTTP/1.1", "TLSv1.2", 150, "fair"),
        ("HTTP/1.1", None, 120, "poor"),
        ("HTTP/3", "TLSv1.2", 99, "good"),
    ],
)
def test_connection_quality_mapping(protocol, tls, rtt, expected):
    edge = EdgeMetadata(http_protocol=protocol, tls_version=tls, client_tcp_rtt=rtt)
    assert assess_connection_quality(edge) == expected


@pytest.mark.parametrize(
    ("sources", "latitude", "longitude", "expected"),
    [
        (0, 0.0, 0.0, "low"),
        (0, 10.0, 20.0, "low"),
        (1, 0.0, 0.0, "medium"),
        (1, 10.0, 20.0, "medium"),
        (2, 0.0, 0.0, "medium"),
        (2, 10.0, 0.0, "medium"),
        (2, 10.0, 20.0, "high"),
    ],
)
def test_location_accuracy(sources, latitude, longitude, expected):
    assert assess_location_accuracy(sources, latitude, longitude) == expected


@pytest.mark.parametrize(
    ("rtt", "expected_score", "expected_quality"),
    [(None, 5, "good"), (0, 5, "good"), (1, 7, "excellent"), (49, 7, "excellent"), (50, 6, "excellent")],
)
def test_zero_rtt_earns_no_latency_points(rtt, expected_score, expected_quality):
    edge = EdgeMetadata(http_protocol="HTTP/3", tls_version="TLSv1.3", client_tcp_rtt=rtt)
    assert connection_score(edge) == expected_score
    assert assess_connection_quality(edge) == expected_quality


@pytest.mark.parametrize(
    ("bot_score", "expected"),
    [(None, ()), (0, ()), (1, ("Low bot management score",)), (49, ("Low bot management score",)), (50, ())],
)
def test_zero_bot_score_adds_no_risk_factor(bot_score, expected):
    assert collect_risk_factors(bot_score, None) == expected
