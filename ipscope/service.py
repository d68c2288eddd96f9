"""Request-level entry points tying validation, lookups and reconciliation together."""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import json
import logging
import secrets
import string
import time
from typing import Any, Callable, Mapping

import requests

from .analytics import AnalyticsRecord, RequestLog
from .config import Settings, load_settings
from .errors import InternalError, InvalidInputError, IPScopeError
from .intel.edge import extract_edge_metadata
from .intel.ip_utils import build_cache_key, resolve_client_ip, validate_ip
from .intel.lookup import CachedLookup, LookupClient
from .intel.models import UnifiedRecord
from .intel.reconcile import geolocation_view, network_view, reconcile, security_view
from .storage import TTLCache

logger = logging.getLogger(__name__)

RECORD_NAMESPACE = "enhanced"
MAX_RECENT_LIMIT = 200

ENHANCED_ENDPOINT = "enhanced"
GEOLOCATION_ENDPOINT = "geolocation"
SECURITY_ENDPOINT = "security"
NETWORK_ENDPOINT = "network"
OWN_IP_ENDPOINT = "own_ip"

CLIENT_HEADERS = {
    "user_agent": "User-Agent",
    "accept_language": "Accept-Language",
    "accept_encoding": "Accept-Encoding",
    "dnt": "DNT",
    "referer": "Referer",
    "origin": "Origin",
    "cf_ray": "CF-Ray",
    "cf_visitor": "CF-Visitor",
    "cf_connecting_ip": "CF-Connecting-IP",
    "cf_country": "CF-IPCountry",
}

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_request_id() -> str:
    """Return ``req_<epoch-ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def error_payload(exc: IPScopeError, request_id: str | None = None) -> dict[str, Any]:
    """Render an error in the standard ``{"error": {...}}`` envelope."""
    return {
        "error": {"code": exc.code, "message": exc.message},
        "timestamp": _utc_now_iso(),
        "request_id": request_id or exc.request_id or generate_request_id(),
    }


def _header(headers: Mapping[str, str], name: str) -> str:
    lowered = name.lower()
    for key, value in headers.items():
        if str(key).lower() == lowered:
            return str(value)
    return ""


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class IPScopeService:
    """Answer IP questions from edge metadata plus a cached external lookup.

    All shared state (caches and the request log) is passed in, so one process
    bootstrap owns its lifecycle; see :func:`build_service`.
    """

    def __init__(
        self,
        lookup: CachedLookup,
        record_cache: TTLCache[UnifiedRecord],
        request_log: RequestLog,
        *,
        record_ttl: float,
    ) -> None:
        self.lookup = lookup
        self.record_cache = record_cache
        self.request_log = request_log
        self.record_ttl = record_ttl

    def resolve_record(self, ip: str | None, edge_raw: Mapping[str, Any] | None) -> UnifiedRecord:
        """Validate ``ip`` and return its reconciled record.

        Raises :class:`InvalidInputError` for a missing or malformed address.
        """
        validation = validate_ip(ip)
        if not validation.valid:
            raise InvalidInputError(validation.reason)

        edge = extract_edge_metadata(edge_raw)
        edge_digest = hashlib.sha1(
            json.dumps(edge.to_dict(), sort_keys=True).encode("utf-8")
        ).hexdigest()
        key = build_cache_key(RECORD_NAMESPACE, validation.address, edge_digest)
        cached = self.record_cache.get(key)
        if cached is not None:
            return cached

        external = self.lookup.fetch(validation.address)
        record = reconcile(validation.address, validation.version or 4, edge, external)
        ttl = self.record_ttl
        if external is None:
            # Degraded records must not outlive the cached failed lookup.
            ttl = min(ttl, self.lookup.null_ttl)
        self.record_cache.set(key, record, ttl)
        return record

    def _execute(
        self,
        endpoint: str,
        ip: str | None,
        edge_raw: Mapping[str, Any] | None,
        render: Callable[[UnifiedRecord, str, float], dict[str, Any]],
        *,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        started = time.perf_counter()
        request_id = generate_request_id()
        record: UnifiedRecord | None = None
        status = 200
        try:
            record = self.resolve_record(ip, edge_raw)
            return render(record, request_id, started)
        except IPScopeError as exc:
            status = exc.status
            exc.request_id = request_id
            raise
        except Exception as exc:
            status = InternalError.status
            logger.exception("failed to build %s response for %s", endpoint, ip)
            raise InternalError(str(exc) or "Unknown error occurred", request_id=request_id) from exc
        finally:
            self.request_log.record(
                AnalyticsRecord(
                    ip=str(ip or ""),
                    endpoint=endpoint,
                    status=status,
                    processing_time_ms=_elapsed_ms(started),
                    request_id=request_id,
                    country=(record.location.country_code or None) if record else None,
                    datacenter=record.connection.edge_location if record else None,
                    user_agent=user_agent,
                )
            )

    def enhanced(
        self,
        ip: str | None,
        edge_raw: Mapping[str, Any] | None = None,
        *,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        """Full reconciled record wrapped with request metadata."""

        def render(record: UnifiedRecord, request_id: str, started: float) -> dict[str, Any]:
            return {
                "request_id": request_id,
                "timestamp": _utc_now_iso(),
                "processing_time_ms": _elapsed_ms(started),
                **record.to_dict(),
            }

        return self._execute(ENHANCED_ENDPOINT, ip, edge_raw, render, user_agent=user_agent)

    def geolocation(
        self,
        ip: str | None,
        edge_raw: Mapping[str, Any] | None = None,
        *,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        return self._execute(
            GEOLOCATION_ENDPOINT,
            ip,
            edge_raw,
            lambda record, _request_id, _started: geolocation_view(record).to_dict(),
            user_agent=user_agent,
        )

    def security(
        self,
        ip: str | None,
        edge_raw: Mapping[str, Any] | None = None,
        *,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        return self._execute(
            SECURITY_ENDPOINT,
            ip,
            edge_raw,
            lambda record, _request_id, _started: security_view(record).to_dict(),
            user_agent=user_agent,
        )

    def network(
        self,
        ip: str | None,
        edge_raw: Mapping[str, Any] | None = None,
        *,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        return self._execute(
            NETWORK_ENDPOINT,
            ip,
            edge_raw,
            lambda record, _request_id, _started: network_view(record).to_dict(),
            user_agent=user_agent,
        )

    def own_ip(
        self,
        headers: Mapping[str, str] | None,
        edge_raw: Mapping[str, Any] | None = None,
        *,
        method: str = "GET",
        url: str = "",
    ) -> dict[str, Any]:
        """Describe the caller's own address plus what its request reveals."""
        headers = headers or {}
        user_agent = _header(headers, "User-Agent") or None
        client_ip = resolve_client_ip(headers)
        if not client_ip:
            request_id = generate_request_id()
            self.request_log.record(
                AnalyticsRecord(
                    ip="",
                    endpoint=OWN_IP_ENDPOINT,
                    status=InvalidInputError.status,
                    processing_time_ms=0.0,
                    request_id=request_id,
                    user_agent=user_agent,
                )
            )
            raise InvalidInputError(
                "Unable to determine client IP address",
                code="NO_CLIENT_IP",
                request_id=request_id,
            )

        def render(record: UnifiedRecord, request_id: str, started: float) -> dict[str, Any]:
            header_analysis = {field: _header(headers, name) for field, name in CLIENT_HEADERS.items()}
            bot_score = record.security.bot_score
            return {
                "request_id": request_id,
                "timestamp": _utc_now_iso(),
                "processing_time_ms": _elapsed_ms(started),
                **record.to_dict(),
                "client": {
                    "headers": header_analysis,
                    "is_bot": bot_score is not None and bot_score < 30,
                    "is_verified_bot": bool(record.security.verified_bot),
                    "request_method": method,
                    "url": url,
                    "cf_ray": header_analysis["cf_ray"],
                },
                "performance": {
                    "processing_time_ms": _elapsed_ms(started),
                    "edge_location": record.connection.edge_location,
                    "protocol": record.connection.http_protocol,
                    "tls_version": record.connection.tls_version,
                    "tcp_rtt": record.connection.tcp_rtt,
                },
            }

        return self._execute(OWN_IP_ENDPOINT, client_ip, edge_raw, render, user_agent=user_agent)

    def cache_stats(self) -> dict[str, dict[str, int]]:
        return {"enhanced": self.record_cache.stats(), "lookup": self.lookup.stats()}

    def analytics_summary(self) -> dict[str, Any]:
        return {
            "analytics": self.request_log.summary(),
            "cache": self.cache_stats(),
            "timestamp": _utc_now_iso(),
        }

    def recent_requests(self, limit: int = 50) -> dict[str, Any]:
        """Most recent requests first; ``limit`` is clamped to 200."""
        items = self.request_log.recent(min(max(0, int(limit)), MAX_RECENT_LIMIT))
        return {
            "recent_requests": [item.to_dict() for item in items],
            "count": len(items),
            "timestamp": _utc_now_iso(),
        }

    def health(self) -> dict[str, Any]:
        summary = self.request_log.summary()
        stats = self.cache_stats()
        return {
            "status": "healthy",
            "requests_processed": summary.get("summary", {}).get("total_requests", 0),
            "cache_efficiency": {
                name: f"{values['size']}/{values['capacity']}" for name, values in stats.items()
            },
            "average_response_time": summary.get("performance", {}).get("average_response_time", 0),
            "timestamp": _utc_now_iso(),
        }

    def reset(self) -> dict[str, str]:
        """Drop the request log and both caches."""
        self.request_log.clear()
        self.record_cache.clear()
        self.lookup.cache.clear()
        logger.info("request log and caches cleared")
        return {"message": "Analytics and cache cleared successfully", "timestamp": _utc_now_iso()}


def build_service(
    settings: Settings | None = None,
    *,
    session: requests.Session | None = None,
) -> IPScopeService:
    """Construct the caches, lookup client and request log for one process."""
    settings = settings or load_settings()
    if not settings.lookup_token:
        logger.warning("no lookup token configured; upstream lookups may be rate limited")

    client = LookupClient(
        settings.lookup_token,
        base_url=settings.lookup_url,
        timeout_seconds=settings.lookup_timeout,
        session=session,
    )
    lookup = CachedLookup(
        client,
        TTLCache(settings.lookup_cache_size),
        ttl=settings.lookup_ttl,
        null_ttl=settings.effective_null_ttl,
    )
    return IPScopeService(
        lookup,
        TTLCache(settings.record_cache_size),
        RequestLog(settings.request_log_size),
        record_ttl=settings.record_ttl,
    )
