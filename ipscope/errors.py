"""Exception types raised by ipscope."""

from __future__ import annotations


class IPScopeError(Exception):
    """Base error carrying a machine-readable code and an HTTP-like status."""

    code = "IPSCOPE_ERROR"
    status = 500

    def __init__(self, message: str, *, code: str | None = None, request_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        if code is not None:
            self.code = code


class InvalidInputError(IPScopeError, ValueError):
    """Missing or malformed IP address. Never retried."""

    code = "INVALID_IP"
    status = 400


class InternalError(IPScopeError):
    """Unexpected fault while building a response."""

    code = "PROCESSING_ERROR"
    status = 500
