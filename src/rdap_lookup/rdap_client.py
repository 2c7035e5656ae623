"""
RDAP HTTP client.

This module provides an async HTTP client that performs exactly one GET
attempt per call and classifies the outcome:

- 2xx: the raw body is returned
- any other status: StatusError (terminal, carries status and body)
- connection, timeout, DNS or TLS failure: TransportError (retryable)
- a URL httpx refuses to build (control characters, excessive length):
  InvalidURLError (terminal)

Retrying is the caller's job (see retry_manager).
"""

import time
from dataclasses import dataclass
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .config import DEFAULT_BASE_URL, DEFAULT_USER_AGENT
from .enums import FetchErrorCode, LogLevel
from .exceptions import InvalidURLError, StatusError, TransportError


@dataclass
class RDAPResponse:
    """A successful RDAP response."""

    url: str
    http_status_code: int
    content: bytes
    response_time_ms: float = 0.0


class RDAPClient:
    """
    Async RDAP client.

    Each request carries its own timeout; a retried query therefore gets a
    fresh timeout per attempt.
    """

    COMPONENT = "RDAPClient"

    ACCEPT_HEADER = "application/rdap+json, application/json"

    # Longest response body kept on a StatusError
    MAX_ERROR_BODY_CHARS = 2000

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 8.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the RDAP client.

        Args:
            base_url: RDAP service root used to build request URLs
            timeout: Per-attempt request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            logger: Optional logger; requests are logged at debug level
        """
        self._base_url = base_url
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._logger = logger
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RDAPClient":
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers={
                    "Accept": self.ACCEPT_HEADER,
                    "User-Agent": self._user_agent,
                },
                transport=self._transport,
            )
        return self._client

    async def get(self, url: str) -> RDAPResponse:
        """
        Perform one GET attempt.

        Args:
            url: Fully-qualified request URL

        Returns:
            RDAPResponse for a 2xx answer

        Raises:
            StatusError: On any non-2xx status
            TransportError: On connection, timeout, DNS or TLS failure
            InvalidURLError: If httpx rejects the URL before sending
        """
        client = self._ensure_client()
        if self._logger and self._logger.is_enabled_for(LogLevel.DEBUG):
            self._logger.debug(
                self.COMPONENT,
                "Sending request",
                {"url": url, "headers": dict(client.headers)},
            )
        start_time = time.perf_counter()

        try:
            response = await client.get(url)
        except httpx.InvalidURL as e:
            raise InvalidURLError(
                code=FetchErrorCode.INVALID_URL.value,
                message=f"Invalid request URL: {e}",
                details={"url": url},
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                code=FetchErrorCode.TIMEOUT.value,
                message=f"RDAP request timed out after {self._timeout}s",
                details={"url": url, "error": str(e)},
            )
        except httpx.ConnectError as e:
            error_msg = str(e)
            code = FetchErrorCode.NETWORK_ERROR
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                code = FetchErrorCode.TLS_ERROR
            raise TransportError(
                code=code.value,
                message=f"Connection error: {error_msg}",
                details={"url": url},
            )
        except httpx.RequestError as e:
            raise TransportError(
                code=FetchErrorCode.NETWORK_ERROR.value,
                message=f"Request failed: {type(e).__name__}: {e}",
                details={"url": url},
            )

        if not response.is_success:
            raise StatusError(
                status_code=response.status_code,
                body=response.text[: self.MAX_ERROR_BODY_CHARS],
                url=url,
            )

        return RDAPResponse(
            url=url,
            http_status_code=response.status_code,
            content=response.content,
            response_time_ms=self._elapsed_ms(start_time),
        )

    def _elapsed_ms(self, start_time: float) -> float:
        """Calculate elapsed time in milliseconds."""
        return (time.perf_counter() - start_time) * 1000

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
