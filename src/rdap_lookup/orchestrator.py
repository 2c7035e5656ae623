"""
Lookup Orchestrator for the RDAP lookup tool.

Wires the pipeline together from configuration:
classifier -> endpoint resolver -> fetcher (cache store, HTTP client,
retry manager) for single lookups, and the bulk scheduler for lists.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx

from .audit_logger import AuditLogger
from .bulk import BulkScheduler, OutcomeCallback
from .cache_store import CacheStore, default_cache_dir
from .classifier import classify
from .config import LookupConfig
from .fetcher import Fetcher
from .models import FetchOutcome
from .rdap_client import RDAPClient
from .retry_manager import RetryManager


def build_cache_store(config: LookupConfig, logger: Optional[AuditLogger] = None) -> CacheStore:
    """Cache store for the configured (or default per-user) directory."""
    directory = config.cache.directory or default_cache_dir()
    return CacheStore(directory, config.cache.ttl_seconds, logger=logger)


class LookupOrchestrator:
    """
    Main entry point for single and bulk lookups.

    Owns one HTTP client for its lifetime; use as an async context manager.
    """

    COMPONENT = "LookupOrchestrator"

    def __init__(
        self,
        config: LookupConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Lookup configuration
            logger: Optional logger shared by all components
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            sleep: Coroutine used for the inter-retry delay
        """
        self._config = config
        self._logger = logger

        self._client = RDAPClient(
            base_url=config.http.base_url,
            timeout=config.http.timeout_seconds,
            user_agent=config.http.user_agent,
            transport=transport,
            logger=logger,
        )
        self._cache_store = (
            build_cache_store(config, logger) if config.cache.enabled else None
        )
        self._fetcher = Fetcher(
            client=self._client,
            retry_manager=RetryManager(config.retry, sleep=sleep, logger=logger),
            cache_store=self._cache_store,
            use_cache=config.cache.enabled,
            logger=logger,
        )

    async def __aenter__(self) -> "LookupOrchestrator":
        """Async context manager entry."""
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self._client.close()

    @property
    def cache_store(self) -> Optional[CacheStore]:
        return self._cache_store

    @property
    def fetcher(self) -> Fetcher:
        return self._fetcher

    async def lookup(self, query: str) -> Any:
        """
        Classify and fetch one query.

        Args:
            query: Raw query text

        Returns:
            The resolved JSON document

        Raises:
            ClassificationError: If the query cannot be classified
            FetchError: If the fetch fails terminally
        """
        identifier = classify(query)
        if self._logger:
            self._logger.debug(
                self.COMPONENT,
                "Query classified",
                {"query": query, "kind": identifier.kind.value, "normalized": identifier.normalized},
            )
        return await self._fetcher.fetch(identifier)

    async def lookup_many(
        self,
        queries: list[str],
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> list[FetchOutcome]:
        """
        Run a bulk lookup under the configured concurrency.

        Args:
            queries: Already-filtered queries
            on_outcome: Called as each outcome resolves

        Returns:
            Outcomes in completion order
        """
        scheduler = BulkScheduler(
            self.lookup,
            self._config.concurrency,
            on_outcome=on_outcome,
            logger=self._logger,
        )
        return await scheduler.run(queries)
