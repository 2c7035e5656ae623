"""
Bulk Scheduler for many independent lookups.

Fans a list of queries out to a lookup coroutine under a concurrency cap:

- An asyncio.Semaphore bounds the number of lookups in flight
- Every query gets its own FetchOutcome; a failure never stops the others
- Outcomes are reported as they complete, not in input order
"""

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Optional

from .audit_logger import AuditLogger
from .exceptions import InputError, RdapLookupError
from .models import FetchOutcome


COMMENT_MARKER = "#"

LookupFn = Callable[[str], Awaitable[Any]]
OutcomeCallback = Callable[[FetchOutcome], None]


def parse_query_lines(lines: Iterable[str]) -> list[str]:
    """
    Turn raw lines into queries.

    Lines are trimmed; empty lines and lines starting with '#' are dropped.
    """
    queries = []
    for line in lines:
        text = line.strip()
        if not text or text.startswith(COMMENT_MARKER):
            continue
        queries.append(text)
    return queries


def read_queries(path: Path) -> list[str]:
    """
    Read queries from a file, one per line.

    Args:
        path: Path to the query list

    Returns:
        Filtered queries in file order

    Raises:
        InputError: If the file cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_query_lines(f)
    except FileNotFoundError:
        raise InputError(
            code="not_found",
            message=f"File not found: {path}",
            details={"path": str(path)},
        )
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(
            code="unreadable",
            message=f"Error reading file: {e}",
            details={"path": str(path)},
        )


def sort_outcomes(outcomes: Iterable[FetchOutcome]) -> list[FetchOutcome]:
    """Restore input order for consumers that need it."""
    return sorted(outcomes, key=lambda outcome: outcome.index)


class BulkScheduler:
    """
    Runs lookups concurrently with a strict upper bound on in-flight work.
    """

    COMPONENT = "BulkScheduler"

    def __init__(
        self,
        lookup_fn: LookupFn,
        concurrency: int,
        on_outcome: Optional[OutcomeCallback] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            lookup_fn: Coroutine classifying and fetching one query
            concurrency: Maximum lookups in flight (clamped to at least 1)
            on_outcome: Called with each outcome as soon as it resolves
            logger: Optional logger
        """
        self._lookup_fn = lookup_fn
        self._concurrency = max(1, concurrency)
        self._on_outcome = on_outcome
        self._logger = logger

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run(self, queries: list[str]) -> list[FetchOutcome]:
        """
        Look up every query, isolating failures per query.

        Only RdapLookupError is captured into an outcome; any other
        exception is a programming error and propagates.

        Args:
            queries: Already-filtered queries

        Returns:
            One outcome per query, in completion order
        """
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _run_one(index: int, query: str) -> FetchOutcome:
            async with semaphore:
                try:
                    document = await self._lookup_fn(query)
                    outcome = FetchOutcome(query=query, index=index, document=document)
                except RdapLookupError as e:
                    outcome = FetchOutcome(query=query, index=index, error=e)
            if self._on_outcome:
                self._on_outcome(outcome)
            return outcome

        if self._logger:
            self._logger.info(
                self.COMPONENT,
                "Starting bulk run",
                {"queries": len(queries), "concurrency": self._concurrency},
            )

        outcomes: list[FetchOutcome] = []
        tasks = [_run_one(index, query) for index, query in enumerate(queries)]
        for next_done in asyncio.as_completed(tasks):
            outcomes.append(await next_done)

        if self._logger:
            failures = sum(1 for outcome in outcomes if not outcome.ok)
            self._logger.info(
                self.COMPONENT,
                "Bulk run completed",
                {"queries": len(queries), "failures": failures},
            )

        return outcomes


async def run_bulk(
    queries: list[str],
    concurrency: int,
    lookup_fn: LookupFn,
    on_outcome: Optional[OutcomeCallback] = None,
) -> list[FetchOutcome]:
    """Convenience wrapper around BulkScheduler.run."""
    return await BulkScheduler(lookup_fn, concurrency, on_outcome=on_outcome).run(queries)
