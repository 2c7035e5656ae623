"""
RDAP Lookup - RDAP-first lookup for domains, IP addresses and AS numbers.

This package classifies a query, resolves it to an RDAP endpoint, and
fetches the registration record with an on-disk cache, retry on transport
failures, and a bounded-concurrency bulk mode.
"""

__version__ = "0.1.0"
__author__ = "RDAP Lookup Team"

from rdap_lookup.exceptions import (
    RdapLookupError,
    ClassificationError,
    CacheError,
    FetchError,
    StatusError,
    TransportError,
    DocumentError,
    InputError,
    ConfigError,
)
from rdap_lookup.enums import (
    IdentifierKind,
    LogLevel,
    OutputFormat,
    ClassificationErrorCode,
    FetchErrorCode,
    AttemptState,
)
from rdap_lookup.config import (
    HTTPConfig,
    RetryConfig,
    CacheConfig,
    DisplayConfig,
    LoggingConfig,
    LookupConfig,
    apply_env_overrides,
    load_config_from_file,
    save_config_to_file,
)
from rdap_lookup.models import (
    Identifier,
    FetchOutcome,
)
from rdap_lookup.classifier import classify
from rdap_lookup.endpoints import resolve
from rdap_lookup.audit_logger import (
    AuditLogger,
    LogEntry,
)
from rdap_lookup.cache_store import (
    CacheStore,
    default_cache_dir,
)
from rdap_lookup.rdap_client import (
    RDAPClient,
    RDAPResponse,
)
from rdap_lookup.retry_manager import (
    RetryManager,
    RetryResult,
)
from rdap_lookup.fetcher import Fetcher
from rdap_lookup.bulk import (
    BulkScheduler,
    parse_query_lines,
    read_queries,
    run_bulk,
    sort_outcomes,
)
from rdap_lookup.presenter import (
    Presenter,
    summarize,
)
from rdap_lookup.orchestrator import LookupOrchestrator
from rdap_lookup.i18n import (
    get_message,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from rdap_lookup.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "RdapLookupError",
    "ClassificationError",
    "CacheError",
    "FetchError",
    "StatusError",
    "TransportError",
    "DocumentError",
    "InputError",
    "ConfigError",
    # Enums
    "IdentifierKind",
    "LogLevel",
    "OutputFormat",
    "ClassificationErrorCode",
    "FetchErrorCode",
    "AttemptState",
    # Configuration
    "HTTPConfig",
    "RetryConfig",
    "CacheConfig",
    "DisplayConfig",
    "LoggingConfig",
    "LookupConfig",
    "apply_env_overrides",
    "load_config_from_file",
    "save_config_to_file",
    # Models
    "Identifier",
    "FetchOutcome",
    # Pipeline
    "classify",
    "resolve",
    "CacheStore",
    "default_cache_dir",
    "RDAPClient",
    "RDAPResponse",
    "RetryManager",
    "RetryResult",
    "Fetcher",
    "BulkScheduler",
    "parse_query_lines",
    "read_queries",
    "run_bulk",
    "sort_outcomes",
    "LookupOrchestrator",
    # Presentation
    "Presenter",
    "summarize",
    # Logging
    "AuditLogger",
    "LogEntry",
    # I18n
    "get_message",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # CLI
    "cli_main",
    "create_parser",
]
