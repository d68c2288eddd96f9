"""Analytics utilities: rolling request log and usage summaries."""

from .request_log import AnalyticsRecord, RequestLog

__all__ = [
    "AnalyticsRecord",
    "RequestLog",
]
