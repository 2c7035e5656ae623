"""
Data models for the RDAP lookup tool.

This module defines the identifier produced by classification and the
per-query outcome produced by bulk runs.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .enums import IdentifierKind
from .exceptions import RdapLookupError


@dataclass(frozen=True)
class Identifier:
    """A classified query with its normalized form."""

    kind: IdentifierKind
    normalized: str
    raw: str  # Query text as given


@dataclass
class FetchOutcome:
    """Result of one query in a bulk run."""

    query: str
    index: int
    document: Optional[Any] = None
    error: Optional[RdapLookupError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
