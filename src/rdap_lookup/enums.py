"""
Enumeration types for the RDAP lookup tool.

These enums provide type-safe constants for identifier kinds, error codes,
output formats and retry states throughout the system.
"""

from enum import Enum


class IdentifierKind(Enum):
    """Kind of registration object a query refers to."""

    DOMAIN = "domain"
    IP_ADDRESS = "ip"
    AUTONOMOUS_SYSTEM_NUMBER = "autnum"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class OutputFormat(Enum):
    """How a resolved document is rendered."""

    COMPACT = "compact"
    PRETTY = "pretty"
    NDJSON = "ndjson"
    TABLE = "table"


class ClassificationErrorCode(Enum):
    """Error codes for query classification failures."""

    EMPTY_QUERY = "empty_query"
    UNCLASSIFIABLE = "unclassifiable"


class FetchErrorCode(Enum):
    """Error codes for fetch failures."""

    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    HTTP_STATUS = "http_status"
    INVALID_URL = "invalid_url"
    PARSE_ERROR = "parse_error"


class AttemptState(Enum):
    """States of the per-query retry state machine."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_STATUS = "failed_status"
    FAILED_TRANSPORT = "failed_transport"
