"""
Error types raised along the proxy pipeline.

Every error carries the HTTP status it maps to; the handler turns it into the
``{"error": ..., "details": ...}`` envelope in one place.
"""
from typing import Optional


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(ProxyError):
    status_code = 500


class ClientInputError(ProxyError):
    status_code = 400


class AuthorizationError(ProxyError):
    status_code = 401


class UpstreamError(ProxyError):
    """Non-2xx answer from the provider; status is relayed unchanged."""


class MalformedUpstreamError(ProxyError):
    status_code = 500


class TransportError(ProxyError):
    status_code = 502
