"""
Exception classes for the RDAP lookup tool.

All exceptions inherit from RdapLookupError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional

from .enums import FetchErrorCode


class RdapLookupError(Exception):
    """Base exception for all RDAP lookup errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ClassificationError(RdapLookupError):
    """Raised when a query matches no known identifier shape."""

    pass


class CacheError(RdapLookupError):
    """Raised when a cache entry cannot be written or removed."""

    pass


class FetchError(RdapLookupError):
    """Base class for terminal failures of a single lookup."""

    pass


class StatusError(FetchError):
    """Raised when the RDAP service answers with a non-2xx status. Never retried."""

    def __init__(
        self,
        status_code: int,
        body: str,
        url: str,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(
            code=FetchErrorCode.HTTP_STATUS.value,
            message=f"RDAP error: HTTP {status_code}",
            details={"status_code": status_code, "url": url, "body": body},
        )


class TransportError(FetchError):
    """Raised when the request fails below HTTP (connect, timeout, DNS)."""

    pass


class InvalidURLError(FetchError):
    """Raised when the request URL is rejected before sending. Never retried."""

    pass


class DocumentError(FetchError):
    """Raised when a 2xx response body is not a JSON document."""

    pass


class InputError(RdapLookupError):
    """Raised when the bulk query list cannot be read."""

    pass


class ConfigError(RdapLookupError):
    """Raised when a configuration file cannot be loaded."""

    pass
