"""
Property-based tests for the cache-aware, retrying fetcher.

HTTP is served by httpx.MockTransport; inter-attempt sleeps are recorded
instead of awaited.
"""

import asyncio
import io
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from rdap_lookup.audit_logger import AuditLogger
from rdap_lookup.cache_store import CacheStore
from rdap_lookup.classifier import classify
from rdap_lookup.config import RetryConfig
from rdap_lookup.enums import FetchErrorCode, LogLevel
from rdap_lookup.exceptions import DocumentError, InvalidURLError, StatusError, TransportError
from rdap_lookup.fetcher import Fetcher
from rdap_lookup.rdap_client import RDAPClient
from rdap_lookup.retry_manager import RetryManager


BASE_URL = "https://rdap.test"


# Helpers

class CountingHandler:
    """MockTransport handler that counts requests and delegates the answer."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self._respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)


def json_answer(document: dict) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(200, content=json.dumps(document).encode("utf-8"))


async def _no_sleep(delay: float) -> None:
    return None


def run_fetches(
    handler: CountingHandler,
    queries: list[str],
    cache_store: Optional[CacheStore] = None,
    use_cache: bool = True,
    retry_count: int = 2,
    logger: Optional[AuditLogger] = None,
    between: Optional[Callable[[], None]] = None,
) -> list:
    """Fetch each query in turn with one client, returning documents or errors."""

    async def _run() -> list:
        results = []
        async with RDAPClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
            fetcher = Fetcher(
                client=client,
                retry_manager=RetryManager(RetryConfig(retry_count=retry_count), sleep=_no_sleep),
                cache_store=cache_store,
                use_cache=use_cache,
                logger=logger,
            )
            for i, query in enumerate(queries):
                if i and between:
                    between()
                try:
                    results.append(await fetcher.fetch(classify(query)))
                except Exception as e:
                    results.append(e)
        return results

    return asyncio.run(_run())


# Strategies for generating test data

document_strategy = st.fixed_dictionaries({
    "objectClassName": st.sampled_from(["domain", "ip network", "autnum"]),
    "handle": st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-", min_size=1, max_size=20),
    "status": st.lists(st.sampled_from(["active", "locked", "client transfer prohibited"]), max_size=3),
})

query_strategy = st.sampled_from(["example.com", "1.1.1.1", "AS13335", "2606:4700::1111", "15169"])


class TestCacheIdempotenceProperty:
    """A second lookup within the TTL does not touch the network."""

    @given(document=document_strategy, query=query_strategy)
    @settings(max_examples=30, deadline=None)
    def test_second_lookup_served_from_cache(self, document: dict, query: str) -> None:
        """
        *For any* document and query, two lookups within the TTL SHALL make
        exactly one network request and return equal documents.
        """
        handler = CountingHandler(json_answer(document))
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CacheStore(Path(tmpdir), ttl_seconds=3600)

            first, second = run_fetches(handler, [query, query], cache_store=store)

            assert len(handler.requests) == 1
            assert first == document
            assert second == first

    def test_cached_bytes_are_the_response_body(self, tmp_path: Path) -> None:
        body = b'{"objectClassName": "domain",  "handle": "EX-1"}'
        handler = CountingHandler(lambda request: httpx.Response(200, content=body))
        store = CacheStore(tmp_path, ttl_seconds=3600)

        run_fetches(handler, ["example.com"], cache_store=store)

        assert store.lookup(f"{BASE_URL}/domain/example.com") == body

    def test_hit_never_contacts_network(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=3600)
        store.store(f"{BASE_URL}/ip/1.1.1.1", b'{"handle": "CACHED"}')

        def refuse(request: httpx.Request) -> httpx.Response:
            raise AssertionError("network must not be used on a cache hit")

        handler = CountingHandler(refuse)
        (result,) = run_fetches(handler, ["1.1.1.1"], cache_store=store)

        assert result == {"handle": "CACHED"}
        assert handler.requests == []


class TestTtlExpiryProperty:
    """Entries older than the TTL are refetched and replaced."""

    def test_stale_entry_refetched(self, tmp_path: Path) -> None:
        handler = CountingHandler(json_answer({"handle": "FRESH"}))
        store = CacheStore(tmp_path, ttl_seconds=60)
        endpoint = f"{BASE_URL}/autnum/13335"

        def age_entry() -> None:
            past = time.time() - 600
            os.utime(store.path_for(endpoint), (past, past))

        run_fetches(handler, ["AS13335", "AS13335"], cache_store=store, between=age_entry)

        assert len(handler.requests) == 2
        # The refetch rewrote the entry, so it is fresh again
        assert store.lookup(endpoint) is not None

    def test_corrupt_entry_refetched_and_overwritten(self, tmp_path: Path) -> None:
        handler = CountingHandler(json_answer({"handle": "GOOD"}))
        store = CacheStore(tmp_path, ttl_seconds=3600)
        endpoint = f"{BASE_URL}/domain/example.com"
        store.store(endpoint, b"not json{")

        (result,) = run_fetches(handler, ["example.com"], cache_store=store)

        assert result == {"handle": "GOOD"}
        assert len(handler.requests) == 1
        assert json.loads(store.lookup(endpoint)) == {"handle": "GOOD"}


class TestNoCacheMode:
    """With caching disabled no entry is read or written."""

    def test_no_cache_writes_nothing(self, tmp_path: Path) -> None:
        handler = CountingHandler(json_answer({"handle": "X"}))
        directory = tmp_path / "cache"
        store = CacheStore(directory, ttl_seconds=3600)

        run_fetches(handler, ["example.com", "example.com"], cache_store=store, use_cache=False)

        assert len(handler.requests) == 2
        assert not directory.exists()

    def test_no_cache_ignores_existing_entry(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=3600)
        store.store(f"{BASE_URL}/domain/example.com", b'{"handle": "OLD"}')
        handler = CountingHandler(json_answer({"handle": "NEW"}))

        (result,) = run_fetches(handler, ["example.com"], cache_store=store, use_cache=False)

        assert result == {"handle": "NEW"}

    def test_missing_store_disables_cache(self) -> None:
        handler = CountingHandler(json_answer({}))

        async def _build() -> bool:
            async with RDAPClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)) as client:
                return Fetcher(client, RetryManager(RetryConfig()), cache_store=None).use_cache

        assert asyncio.run(_build()) is False


class TestFailureClassification:
    """Status failures are single-shot, transport failures are retried."""

    @given(status=st.sampled_from([400, 404, 422, 429, 500, 503]))
    @settings(max_examples=20, deadline=None)
    def test_status_failure_single_attempt(self, status: int) -> None:
        """
        *For any* non-2xx status, the fetch SHALL make exactly one request
        and fail with a StatusError carrying that status.
        """
        handler = CountingHandler(lambda request: httpx.Response(status, text="nope"))

        (result,) = run_fetches(handler, ["example.com"], use_cache=False)

        assert isinstance(result, StatusError)
        assert result.status_code == status
        assert result.body == "nope"
        assert len(handler.requests) == 1

    def test_connect_failure_retried_then_reported(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        handler = CountingHandler(refuse)
        (result,) = run_fetches(handler, ["1.1.1.1"], use_cache=False, retry_count=2)

        assert isinstance(result, TransportError)
        assert result.code == FetchErrorCode.NETWORK_ERROR.value
        assert len(handler.requests) == 3

    def test_timeout_reported_as_timeout(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        handler = CountingHandler(slow)
        (result,) = run_fetches(handler, ["1.1.1.1"], use_cache=False, retry_count=1)

        assert isinstance(result, TransportError)
        assert result.code == FetchErrorCode.TIMEOUT.value
        assert len(handler.requests) == 2

    def test_transient_failure_then_success(self, tmp_path: Path) -> None:
        calls = {"n": 0}

        def flaky(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json={"handle": "OK"})

        handler = CountingHandler(flaky)
        store = CacheStore(tmp_path, ttl_seconds=3600)
        (result,) = run_fetches(handler, ["example.com"], cache_store=store)

        assert result == {"handle": "OK"}
        assert len(handler.requests) == 2
        assert len(store.list_entries()) == 1

    def test_failed_lookup_writes_no_cache(self, tmp_path: Path) -> None:
        handler = CountingHandler(lambda request: httpx.Response(404))
        store = CacheStore(tmp_path, ttl_seconds=3600)

        run_fetches(handler, ["example.com"], cache_store=store)

        assert store.list_entries() == []

    def test_non_json_body_is_document_error(self, tmp_path: Path) -> None:
        handler = CountingHandler(lambda request: httpx.Response(200, text="<html>"))
        store = CacheStore(tmp_path, ttl_seconds=3600)

        (result,) = run_fetches(handler, ["example.com"], cache_store=store)

        assert isinstance(result, DocumentError)
        assert result.code == FetchErrorCode.PARSE_ERROR.value
        assert len(handler.requests) == 1
        assert store.list_entries() == []

    @pytest.mark.parametrize("query", ["bad\x7f.example", "tab\tseparated.example"])
    def test_rejected_url_is_terminal(self, query: str, tmp_path: Path) -> None:
        handler = CountingHandler(json_answer({"handle": "never"}))
        store = CacheStore(tmp_path, ttl_seconds=3600)

        (result,) = run_fetches(handler, [query], cache_store=store, retry_count=2)

        assert isinstance(result, InvalidURLError)
        assert result.code == FetchErrorCode.INVALID_URL.value
        assert result.details["url"] == f"{BASE_URL}/domain/{query}"
        assert handler.requests == []
        assert store.list_entries() == []


class TestRequestShape:
    """Requests go to the resolved endpoint with RDAP headers."""

    @pytest.mark.parametrize(
        "query, path",
        [
            ("example.com", "/domain/example.com"),
            ("8.8.8.8", "/ip/8.8.8.8"),
            ("as15169", "/autnum/15169"),
        ],
    )
    def test_request_url_and_headers(self, query: str, path: str) -> None:
        handler = CountingHandler(json_answer({}))

        run_fetches(handler, [query], use_cache=False)

        (request,) = handler.requests
        assert str(request.url) == BASE_URL + path
        assert "application/rdap+json" in request.headers["accept"]
        assert request.headers["user-agent"].startswith("rdap-lookup/")


class TestCacheWriteFailure:
    """A failed cache write never fails the lookup."""

    def test_unwritable_cache_still_returns_document(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file-not-dir"
        blocker.write_text("x")
        store = CacheStore(blocker, ttl_seconds=3600)
        logger = AuditLogger(output_stream=io.StringIO(), min_level=LogLevel.WARN)
        handler = CountingHandler(json_answer({"handle": "X"}))

        (result,) = run_fetches(handler, ["example.com"], cache_store=store, logger=logger)

        assert result == {"handle": "X"}
        warnings = [e for e in logger.entries if e.level is LogLevel.WARN]
        assert warnings and warnings[0].message == "Cache write failed, continuing"


class TestRequestLogging:
    """Outgoing requests are logged at debug level with masked headers."""

    def _get(self, logger: AuditLogger, extra_headers: dict) -> None:
        async def _run() -> None:
            handler = CountingHandler(json_answer({}))
            async with RDAPClient(
                base_url=BASE_URL, transport=httpx.MockTransport(handler), logger=logger,
            ) as client:
                client._ensure_client().headers.update(extra_headers)
                await client.get(BASE_URL + "/domain/example.com")

        asyncio.run(_run())

    def test_debug_entry_carries_headers(self) -> None:
        stream = io.StringIO()
        logger = AuditLogger(output_format="json", output_stream=stream, min_level=LogLevel.DEBUG)

        self._get(logger, {"Authorization": "Bearer s3cr3t-value"})

        (entry,) = [e for e in logger.entries if e.message == "Sending request"]
        assert entry.data["url"] == BASE_URL + "/domain/example.com"
        assert entry.data["headers"]["user-agent"].startswith("rdap-lookup/")
        assert entry.data["headers"]["authorization"] == AuditLogger.MASK_VALUE
        assert "s3cr3t-value" not in stream.getvalue()

    def test_nothing_logged_above_debug(self) -> None:
        logger = AuditLogger(output_stream=io.StringIO(), min_level=LogLevel.INFO)

        self._get(logger, {})

        assert logger.entries == []
