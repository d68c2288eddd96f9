"""Runtime settings loaded from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_LOOKUP_URL = "https://ipinfo.io"
DEFAULT_LOOKUP_TIMEOUT_SECONDS = 4.0
DEFAULT_LOOKUP_TTL_SECONDS = 10 * 60
DEFAULT_RECORD_TTL_SECONDS = 5 * 60
DEFAULT_LOOKUP_CACHE_SIZE = 500
DEFAULT_RECORD_CACHE_SIZE = 200
DEFAULT_REQUEST_LOG_SIZE = 1000


@dataclass(frozen=True, slots=True)
class Settings:
    """Everything the process bootstrap needs to wire a service."""

    lookup_token: str = ""
    lookup_url: str = DEFAULT_LOOKUP_URL
    lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS
    lookup_ttl: float = DEFAULT_LOOKUP_TTL_SECONDS
    # Failed lookups are cached too; ``None`` means "same as lookup_ttl".
    null_ttl: float | None = None
    record_ttl: float = DEFAULT_RECORD_TTL_SECONDS
    lookup_cache_size: int = DEFAULT_LOOKUP_CACHE_SIZE
    record_cache_size: int = DEFAULT_RECORD_CACHE_SIZE
    request_log_size: int = DEFAULT_REQUEST_LOG_SIZE

    @property
    def effective_null_ttl(self) -> float:
        return self.lookup_ttl if self.null_ttl is None else self.null_ttl


def _env_number(name: str, default: float | None, cast: type = float) -> float | int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_settings(env_prefix: str = "IPSCOPE_") -> Settings:
    """Build :class:`Settings` from ``IPSCOPE_*`` variables.

    The lookup token falls back to ``IPINFO_TOKEN`` when the prefixed variable
    is not set.
    """
    token = os.getenv(f"{env_prefix}LOOKUP_TOKEN", "") or os.getenv("IPINFO_TOKEN", "")
    return Settings(
        lookup_token=token.strip(),
        lookup_url=(os.getenv(f"{env_prefix}LOOKUP_URL", "") or DEFAULT_LOOKUP_URL).rstrip("/"),
        lookup_timeout=_env_number(f"{env_prefix}LOOKUP_TIMEOUT", DEFAULT_LOOKUP_TIMEOUT_SECONDS),
        lookup_ttl=_env_number(f"{env_prefix}LOOKUP_TTL", DEFAULT_LOOKUP_TTL_SECONDS),
        null_ttl=_env_number(f"{env_prefix}NULL_TTL", None),
        record_ttl=_env_number(f"{env_prefix}RECORD_TTL", DEFAULT_RECORD_TTL_SECONDS),
        lookup_cache_size=_env_number(f"{env_prefix}LOOKUP_CACHE_SIZE", DEFAULT_LOOKUP_CACHE_SIZE, int),
        record_cache_size=_env_number(f"{env_prefix}RECORD_CACHE_SIZE", DEFAULT_RECORD_CACHE_SIZE, int),
        request_log_size=_env_number(f"{env_prefix}REQUEST_LOG_SIZE", DEFAULT_REQUEST_LOG_SIZE, int),
    )
