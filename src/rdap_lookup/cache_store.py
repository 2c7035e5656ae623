"""
Cache Store module for RDAP responses.

One file per request URL, named by the SHA-256 digest of the URL. Freshness
is the file's modification time compared against a TTL; there is no index
or manifest, the directory listing is the enumeration.

Reads never fail: any I/O problem is a miss. Writes go to a temporary file
in the same directory and are moved into place with ``os.replace``, so
concurrent writers to one key leave one complete entry (last writer wins).
"""

import hashlib
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

import platformdirs

from .audit_logger import AuditLogger
from .exceptions import CacheError


APP_NAME = "rdap-lookup"
ENTRY_SUFFIX = ".json"
TEMP_PREFIX = ".tmp-"


def default_cache_dir() -> Path:
    """Per-user cache directory for this tool (XDG/macOS/Windows aware)."""
    return Path(platformdirs.user_cache_dir(APP_NAME))


class CacheStore:
    """
    Age-based on-disk cache keyed by request URL.

    The store holds no business logic: it maps a URL to bytes and back.
    """

    COMPONENT = "CacheStore"

    def __init__(
        self,
        directory: Path,
        ttl_seconds: float,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the cache store.

        Args:
            directory: Directory holding the cache files (created on first write)
            ttl_seconds: Maximum entry age that still counts as a hit
            logger: Optional logger for miss/write diagnostics
        """
        self._directory = Path(directory)
        self._ttl_seconds = ttl_seconds
        self._logger = logger

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @staticmethod
    def key_for(endpoint: str) -> str:
        """Fixed-width hex digest of the endpoint URL."""
        return hashlib.sha256(endpoint.encode("utf-8")).hexdigest()

    def path_for(self, endpoint: str) -> Path:
        return self._directory / (self.key_for(endpoint) + ENTRY_SUFFIX)

    def lookup(self, endpoint: str) -> Optional[bytes]:
        """
        Return the cached bytes for an endpoint if present and fresh.

        Stale entries are bypassed, not deleted.

        Args:
            endpoint: Request URL

        Returns:
            Stored bytes, or None on a miss (absent, stale or unreadable)
        """
        path = self.path_for(endpoint)
        try:
            age = time.time() - path.stat().st_mtime
            if age > self._ttl_seconds:
                self._debug("Stale cache entry bypassed", endpoint, {"age_seconds": age})
                return None
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._debug("Unreadable cache entry treated as miss", endpoint, {"error": str(e)})
            return None

    def store(self, endpoint: str, data: bytes) -> None:
        """
        Write bytes for an endpoint, replacing any previous entry whole.

        Args:
            endpoint: Request URL
            data: Raw response bytes

        Raises:
            CacheError: If the entry cannot be written
        """
        path = self.path_for(endpoint)
        tmp_name: Optional[str] = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self._directory,
                prefix=TEMP_PREFIX,
                suffix=ENTRY_SUFFIX,
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheError(
                code="write_failed",
                message=f"Failed to write cache entry: {e}",
                details={"endpoint": endpoint, "path": str(path)},
            )
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        self._debug("Cache entry written", endpoint, {"bytes": len(data)})

    def list_entries(self) -> list[Path]:
        """
        List all cache entry files, fresh or stale.

        Returns:
            Sorted entry paths; empty if the directory does not exist
        """
        try:
            return sorted(
                p for p in self._directory.iterdir()
                if p.is_file() and p.suffix == ENTRY_SUFFIX and not p.name.startswith(TEMP_PREFIX)
            )
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CacheError(
                code="list_failed",
                message=f"Failed to list cache directory: {e}",
                details={"directory": str(self._directory)},
            )

    def clear(self) -> int:
        """
        Remove every cache entry regardless of age.

        Temporary files left behind by interrupted writes are swept too but
        not counted.

        Returns:
            Number of entries removed (0 for an empty or missing cache)

        Raises:
            CacheError: If an entry cannot be removed
        """
        removed = 0
        for path in self.list_entries():
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise CacheError(
                    code="remove_failed",
                    message=f"Failed to remove cache entry: {e}",
                    details={"path": str(path), "removed": removed},
                )
            removed += 1

        self._sweep_temp_files()

        if self._logger:
            self._logger.info(self.COMPONENT, "Cache cleared", {"removed": removed})
        return removed

    def _sweep_temp_files(self) -> None:
        try:
            leftovers = list(self._directory.glob(TEMP_PREFIX + "*" + ENTRY_SUFFIX))
        except OSError:
            return
        for path in leftovers:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise CacheError(
                    code="remove_failed",
                    message=f"Failed to remove temporary cache file: {e}",
                    details={"path": str(path)},
                )

    def _debug(self, message: str, endpoint: str, data: dict) -> None:
        if self._logger:
            self._logger.debug(self.COMPONENT, message, {"endpoint": endpoint, **data})
