"""Storage helpers: process-local TTL caches."""

from .ttl_cache import CacheEntry, TTLCache

__all__ = [
    "CacheEntry",
    "TTLCache",
]
