"""
Property-based tests for the on-disk cache store.

Uses Hypothesis for property-based testing of key derivation and the
store/lookup contract, plus focused tests for TTL expiry and clearing.
"""

import io
import os
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from rdap_lookup.audit_logger import AuditLogger
from rdap_lookup.cache_store import CacheStore, ENTRY_SUFFIX
from rdap_lookup.enums import LogLevel
from rdap_lookup.exceptions import CacheError


# Strategies for generating test data

endpoint_strategy = st.builds(
    lambda kind, value: f"https://rdap.org/{kind}/{value}",
    st.sampled_from(["domain", "ip", "autnum"]),
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789.:-", min_size=1, max_size=40),
)

payload_strategy = st.binary(min_size=0, max_size=2048)


def _age(path: Path, seconds: float) -> None:
    """Set an entry's modification time ``seconds`` into the past."""
    past = time.time() - seconds
    os.utime(path, (past, past))


class TestCacheKeyProperty:
    """Keys are fixed-width, deterministic and distinct per endpoint."""

    @given(endpoint=endpoint_strategy)
    @settings(max_examples=100)
    def test_key_is_deterministic_hex(self, endpoint: str) -> None:
        """
        *For any* endpoint, key_for SHALL return the same 64-character hex
        digest on every call.
        """
        key = CacheStore.key_for(endpoint)

        assert key == CacheStore.key_for(endpoint)
        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)

    @given(a=endpoint_strategy, b=endpoint_strategy)
    @settings(max_examples=100)
    def test_distinct_endpoints_distinct_keys(self, a: str, b: str) -> None:
        if a != b:
            assert CacheStore.key_for(a) != CacheStore.key_for(b)


class TestStoreLookupProperty:
    """Fresh entries are returned byte-identical."""

    @given(endpoint=endpoint_strategy, payload=payload_strategy)
    @settings(max_examples=50)
    def test_fresh_entry_returned_unchanged(self, endpoint: str, payload: bytes) -> None:
        """
        *For any* endpoint and payload, a lookup right after store SHALL
        return exactly the stored bytes.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CacheStore(Path(tmpdir), ttl_seconds=3600)
            store.store(endpoint, payload)

            assert store.lookup(endpoint) == payload

    @given(endpoint=endpoint_strategy, first=payload_strategy, second=payload_strategy)
    @settings(max_examples=50)
    def test_store_replaces_whole_entry(self, endpoint: str, first: bytes, second: bytes) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CacheStore(Path(tmpdir), ttl_seconds=3600)
            store.store(endpoint, first)
            store.store(endpoint, second)

            assert store.lookup(endpoint) == second
            assert len(store.list_entries()) == 1

    def test_absent_entry_is_miss(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path / "missing", ttl_seconds=3600)
        assert store.lookup("https://rdap.org/domain/example.com") is None

    def test_store_creates_directory(self, tmp_path: Path) -> None:
        directory = tmp_path / "a" / "b"
        store = CacheStore(directory, ttl_seconds=3600)
        store.store("https://rdap.org/ip/1.1.1.1", b"{}")

        assert directory.is_dir()
        assert store.path_for("https://rdap.org/ip/1.1.1.1").name.endswith(ENTRY_SUFFIX)


class TestTtlExpiry:
    """Entries older than the TTL are bypassed but not deleted."""

    def test_stale_entry_is_miss(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/domain/example.com"
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store(endpoint, b'{"handle":"X"}')
        _age(store.path_for(endpoint), 120)

        assert store.lookup(endpoint) is None
        assert store.path_for(endpoint).exists()

    def test_entry_within_ttl_is_hit(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/domain/example.com"
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store(endpoint, b'{"handle":"X"}')
        _age(store.path_for(endpoint), 30)

        assert store.lookup(endpoint) == b'{"handle":"X"}'

    def test_zero_ttl_expires_aged_entry(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/autnum/13335"
        store = CacheStore(tmp_path, ttl_seconds=0)
        store.store(endpoint, b"{}")
        _age(store.path_for(endpoint), 1)

        assert store.lookup(endpoint) is None

    def test_future_mtime_counts_as_fresh(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/autnum/13335"
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store(endpoint, b"{}")
        _age(store.path_for(endpoint), -3600)

        assert store.lookup(endpoint) == b"{}"


class TestUnreadableEntries:
    """Read problems are misses, write problems are CacheErrors."""

    def test_unreadable_entry_is_miss(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/domain/example.com"
        store = CacheStore(tmp_path, ttl_seconds=3600)
        # A directory where the entry file should be cannot be read as bytes
        store.path_for(endpoint).mkdir()

        assert store.lookup(endpoint) is None

    def test_unwritable_directory_raises_cache_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        store = CacheStore(blocker, ttl_seconds=3600)

        with pytest.raises(CacheError) as exc_info:
            store.store("https://rdap.org/domain/example.com", b"{}")
        assert exc_info.value.code == "write_failed"

    def test_failed_write_leaves_no_temp_files(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/domain/example.com"
        store = CacheStore(tmp_path, ttl_seconds=3600)
        # os.replace onto a non-empty directory fails after the temp file is written
        target = store.path_for(endpoint)
        target.mkdir()
        (target / "occupied").write_text("x")

        with pytest.raises(CacheError):
            store.store(endpoint, b"{}")
        assert [p.name for p in tmp_path.iterdir()] == [target.name]


class TestConcurrentWriters:
    """Concurrent writers to one key leave one complete entry."""

    def test_last_writer_wins_with_complete_entry(self, tmp_path: Path) -> None:
        endpoint = "https://rdap.org/ip/8.8.8.8"
        store = CacheStore(tmp_path, ttl_seconds=3600)
        payloads = [bytes([i]) * 4096 for i in range(16)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda data: store.store(endpoint, data), payloads))

        assert store.lookup(endpoint) in payloads
        assert not any(p.name.startswith(".tmp-") for p in tmp_path.iterdir())


class TestListAndClear:
    """Clearing removes every entry regardless of age."""

    def test_clear_removes_fresh_and_stale(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store("https://rdap.org/domain/a.example", b"{}")
        store.store("https://rdap.org/domain/b.example", b"{}")
        _age(store.path_for("https://rdap.org/domain/b.example"), 3600)

        assert len(store.list_entries()) == 2
        assert store.clear() == 2
        assert store.list_entries() == []

    def test_clear_is_idempotent(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store("https://rdap.org/domain/a.example", b"{}")

        store.clear()
        assert store.clear() == 0

    def test_clear_missing_directory(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path / "never-created", ttl_seconds=60)
        assert store.clear() == 0

    def test_list_ignores_foreign_files(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store("https://rdap.org/domain/a.example", b"{}")
        (tmp_path / "notes.txt").write_text("keep me")
        (tmp_path / ".tmp-abandoned.json").write_text("{}")

        assert len(store.list_entries()) == 1
        store.clear()
        assert (tmp_path / "notes.txt").exists()

    def test_clear_sweeps_abandoned_temp_files(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path, ttl_seconds=60)
        store.store("https://rdap.org/domain/a.example", b"{}")
        (tmp_path / ".tmp-abandoned.json").write_bytes(b'{"partial"')

        assert store.clear() == 1
        assert list(tmp_path.iterdir()) == []

    def test_clear_logs_count(self, tmp_path: Path) -> None:
        logger = AuditLogger(output_stream=io.StringIO(), min_level=LogLevel.INFO)
        store = CacheStore(tmp_path, ttl_seconds=60, logger=logger)
        store.store("https://rdap.org/domain/a.example", b"{}")

        store.clear()

        entry = logger.entries[-1]
        assert entry.message == "Cache cleared"
        assert entry.data == {"removed": 1}
