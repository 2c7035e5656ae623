"""
Fetcher: resolves one identifier to a JSON document.

Order of work for one query, strictly sequential:
1. Resolve the identifier to its endpoint URL
2. If caching is on, serve a fresh cache entry without touching the network
3. Otherwise fetch under the retry policy
4. Parse the body; if caching is on, store the raw bytes (best effort)
"""

import json
from typing import Any, Optional

from .audit_logger import AuditLogger
from .cache_store import CacheStore
from .endpoints import resolve
from .enums import FetchErrorCode
from .exceptions import CacheError, DocumentError
from .models import Identifier
from .rdap_client import RDAPClient, RDAPResponse
from .retry_manager import RetryManager


class Fetcher:
    """
    Cache-aware, retrying fetch of a single RDAP document.

    The cache is an optimization only: an unusable cache never stops a
    lookup, and a failed cache write never fails one.
    """

    COMPONENT = "Fetcher"

    def __init__(
        self,
        client: RDAPClient,
        retry_manager: RetryManager,
        cache_store: Optional[CacheStore] = None,
        use_cache: bool = True,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            client: HTTP client performing single attempts
            retry_manager: Retry policy for the network phase
            cache_store: Optional cache; ignored when use_cache is False
            use_cache: When False no cache entry is read or written
            logger: Optional logger
        """
        self._client = client
        self._retry_manager = retry_manager
        self._cache_store = cache_store
        self._use_cache = use_cache and cache_store is not None
        self._logger = logger

    @property
    def use_cache(self) -> bool:
        return self._use_cache

    def endpoint_for(self, identifier: Identifier) -> str:
        return resolve(identifier, self._client.base_url)

    async def fetch(self, identifier: Identifier) -> Any:
        """
        Fetch the RDAP document for an identifier.

        Args:
            identifier: A classified identifier

        Returns:
            The parsed JSON document

        Raises:
            StatusError: The service answered with a non-2xx status
            TransportError: Every attempt failed at the transport level
            DocumentError: The 2xx body is not JSON
            InvalidURLError: The endpoint URL was rejected before sending
        """
        endpoint = self.endpoint_for(identifier)

        if self._use_cache:
            cached = self._read_cache(endpoint)
            if cached is not None:
                return cached

        retry_result = await self._retry_manager.execute_with_retry(
            lambda: self._client.get(endpoint),
            context={"endpoint": endpoint},
        )
        if not retry_result.success:
            self._log_failure(endpoint, retry_result.last_error, retry_result.attempts)
        response: RDAPResponse = retry_result.unwrap()

        document = self._parse(response)

        if self._use_cache:
            self._write_cache(endpoint, response.content)

        return document

    def _read_cache(self, endpoint: str) -> Optional[Any]:
        if self._cache_store is None:
            return None
        data = self._cache_store.lookup(endpoint)
        if data is None:
            return None
        try:
            document = json.loads(data)
        except ValueError:
            # Corrupt entry: fall through to the network, which overwrites it
            if self._logger:
                self._logger.debug(
                    self.COMPONENT,
                    "Cache entry is not JSON, refetching",
                    {"endpoint": endpoint},
                )
            return None
        if self._logger:
            self._logger.debug(self.COMPONENT, "Cache hit", {"endpoint": endpoint})
        return document

    def _write_cache(self, endpoint: str, content: bytes) -> None:
        if self._cache_store is None:
            return
        try:
            self._cache_store.store(endpoint, content)
        except CacheError as e:
            if self._logger:
                self._logger.warn(
                    self.COMPONENT,
                    "Cache write failed, continuing",
                    {"endpoint": endpoint, "error": e.message},
                )

    def _parse(self, response: RDAPResponse) -> Any:
        try:
            return json.loads(response.content)
        except ValueError as e:
            raise DocumentError(
                code=FetchErrorCode.PARSE_ERROR.value,
                message=f"Failed to parse RDAP response: {e}",
                details={"url": response.url, "http_status_code": response.http_status_code},
            )

    def _log_failure(self, endpoint: str, error, attempts: int) -> None:
        # Reported to the user by the caller; logged at info for diagnostics only
        if self._logger and error is not None:
            self._logger.info(
                self.COMPONENT,
                "Lookup failed",
                {
                    "endpoint": endpoint,
                    "attempts": attempts,
                    "error_type": type(error).__name__,
                    "error_message": error.message,
                },
            )
