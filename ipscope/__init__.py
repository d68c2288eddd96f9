"""ipscope: reconcile edge request metadata with IP-intelligence lookups."""

from .config import Settings, load_settings
from .errors import InternalError, InvalidInputError, IPScopeError
from .service import IPScopeService, build_service, error_payload

__version__ = "0.1.0"

__all__ = [
    "IPScopeError",
    "IPScopeService",
    "InternalError",
    "InvalidInputError",
    "Settings",
    "build_service",
    "error_payload",
    "load_settings",
]
