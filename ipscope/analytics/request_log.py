"""Rolling in-memory log of completed requests and its usage summary."""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any

DEFAULT_MAX_ENTRIES = 1000
TOP_N = 10


@dataclass(frozen=True, slots=True)
class AnalyticsRecord:
    """One completed top-level operation."""

    ip: str
    endpoint: str
    status: int
    processing_time_ms: float
    request_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    country: str | None = None
    datacenter: str | None = None
    user_agent: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


def _top(counter: Counter[str], label: str) -> list[dict[str, Any]]:
    # Ties keep first-seen order.
    return [{label: key, "count": count} for key, count in counter.most_common(TOP_N)]


class RequestLog:
    """Keeps the newest ``max_entries`` records; older ones fall off."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.max_entries = max(1, int(max_entries))
        self._records: deque[AnalyticsRecord] = deque(maxlen=self.max_entries)
        self._lock = Lock()

    def record(self, entry: AnalyticsRecord) -> None:
        with self._lock:
            self._records.append(entry)

    def snapshot(self) -> list[AnalyticsRecord]:
        """Return every retained record, oldest first."""
        with self._lock:
            return list(self._records)

    def recent(self, limit: int = 50) -> list[AnalyticsRecord]:
        """Return up to ``limit`` records, newest first."""
        items = self.snapshot()
        if limit <= 0:
            return []
        return list(reversed(items[-limit:]))

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self, *, now: datetime | None = None) -> dict[str, Any]:
        """Aggregate volume, endpoints, countries, statuses and timings."""
        items = self.snapshot()
        if not items:
            return {"total_requests": 0, "message": "No analytics data available yet"}

        current = now or datetime.now(timezone.utc)
        hour_ago = current - timedelta(hours=1)
        day_ago = current - timedelta(days=1)

        endpoints = Counter(item.endpoint for item in items)
        countries = Counter(item.country for item in items if item.country)
        status_codes = Counter(item.status for item in items)
        timings = [item.processing_time_ms for item in items]
        average = round(sum(timings) / len(timings))

        return {
            "summary": {
                "total_requests": len(items),
                "requests_last_hour": sum(1 for item in items if item.timestamp > hour_ago),
                "requests_last_24_hours": sum(1 for item in items if item.timestamp > day_ago),
                "average_processing_time": average,
                "data_retention_limit": self.max_entries,
            },
            "endpoints": _top(endpoints, "endpoint"),
            "countries": _top(countries, "country"),
            "status_codes": dict(sorted(status_codes.items())),
            "performance": {
                "average_response_time": average,
                "fastest_request": min(timings),
                "slowest_request": max(timings),
            },
        }
