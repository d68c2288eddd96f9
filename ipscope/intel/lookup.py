"""External IP-intelligence lookups and their cached, de-duplicated wrapper."""

from __future__ import annotations

from concurrent.futures import Future
import logging
import threading

import requests

from ..storage import TTLCache
from .ip_utils import build_cache_key
from .models import ExternalLookupResult

logger = logging.getLogger(__name__)

LOOKUP_NAMESPACE = "lookup"
DEFAULT_BASE_URL = "https://ipinfo.io"
DEFAULT_TIMEOUT_SECONDS = 4.0
DEFAULT_CACHE_TTL_SECONDS = 600.0

_MISSING = object()


class LookupClient:
    """Thin client for an ipinfo-style ``/<ip>/json`` endpoint.

    :meth:`fetch` never raises: transport errors, timeouts, non-2xx statuses
    and unusable bodies all come back as ``None``.
    """

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def fetch(self, ip: str) -> ExternalLookupResult | None:
        """Return lookup data for a validated ``ip`` or ``None`` on failure."""
        params = {"token": self.token} if self.token else {}
        try:
            response = self.session.get(
                f"{self.base_url}/{ip}/json",
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout:
            logger.warning("lookup for %s timed out", ip)
            return None
        except (requests.RequestException, ValueError) as exc:
            logger.warning("lookup for %s failed: %s", ip, exc)
            return None

        if not isinstance(payload, dict) or not payload:
            logger.warning("lookup for %s returned an unusable payload", ip)
            return None
        return ExternalLookupResult.from_payload(payload, fallback_ip=ip)


class CachedLookup:
    """Serve lookups from a TTL cache, sharing in-flight calls per key.

    Failed lookups (``None``) are cached as well, under ``null_ttl``. This
    bounds retry pressure on a failing upstream at the cost of hiding a
    recovery until the entry expires.
    """

    def __init__(
        self,
        client: LookupClient,
        cache: TTLCache[ExternalLookupResult | None],
        *,
        ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        null_ttl: float | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl = ttl
        self.null_ttl = ttl if null_ttl is None else null_ttl
        self.calls = 0
        self.hits = 0
        self._inflight: dict[str, Future[ExternalLookupResult | None]] = {}
        self._lock = threading.Lock()

    def fetch(self, ip: str) -> ExternalLookupResult | None:
        key = build_cache_key(LOOKUP_NAMESPACE, ip)
        cached = self.cache.get(key, _MISSING)
        if cached is not _MISSING:
            with self._lock:
                self.hits += 1
            return cached

        with self._lock:
            # A flight may have completed between the first read and the lock.
            cached = self.cache.get(key, _MISSING)
            if cached is not _MISSING:
                self.hits += 1
                return cached
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future
                self.calls += 1

        if not owner:
            return future.result()

        try:
            result = self.client.fetch(ip)
            self.cache.set(key, result, self.ttl if result is not None else self.null_ttl)
            future.set_result(result)
            return result
        except BaseException as exc:
            future.set_exception(exc)
            raise
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def stats(self) -> dict[str, int]:
        with self._lock:
            counters = {"hits": self.hits, "outbound_calls": self.calls, "in_flight": len(self._inflight)}
        return {**self.cache.stats(), **counters}
