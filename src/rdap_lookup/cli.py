"""
Command-line interface for the RDAP lookup tool.

This module provides the main CLI entry point with commands for:
- lookup: Look up a single domain, IP address or AS number
- bulk: Look up every query listed in a file, concurrently
- cache: Inspect or clear the on-disk response cache
- config: Configuration management

Exit codes: 0 on success, 1 when a single lookup fails or the bulk list
cannot be read, 2 on usage or configuration errors. Failed items in bulk
mode are reported but do not change the exit code.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .bulk import read_queries, sort_outcomes
from .config import (
    LookupConfig,
    apply_env_overrides,
    load_config_from_file,
    save_config_to_file,
)
from .enums import LogLevel, OutputFormat
from .exceptions import ConfigError, InputError, RdapLookupError
from .i18n import get_message
from .models import FetchOutcome
from .orchestrator import LookupOrchestrator, build_cache_store
from .presenter import Presenter


DEFAULT_CONFIG_PATH = Path.home() / ".rdap_lookup" / "config.json"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_config(args: argparse.Namespace) -> LookupConfig:
    """
    Build the effective configuration for a command.

    Defaults, then the config file (if given), then the environment, then
    any flag the user actually passed.

    Raises:
        ConfigError: If the config file cannot be loaded
    """
    config_path = getattr(args, "config", None)
    config = load_config_from_file(Path(config_path)) if config_path else LookupConfig()
    apply_env_overrides(config)

    overrides = {
        "timeout": ("http", "timeout_seconds"),
        "base_url": ("http", "base_url"),
        "retries": ("retry", "retry_count"),
        "retry_delay": ("retry", "retry_delay_seconds"),
        "cache_ttl": ("cache", "ttl_seconds"),
        "cache_dir": ("cache", "directory"),
    }
    for arg_name, (section, attr) in overrides.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(getattr(config, section), attr, value)

    if getattr(args, "no_cache", False):
        config.cache.enabled = False
    if getattr(args, "concurrency", None) is not None:
        config.concurrency = args.concurrency
    if getattr(args, "language", None):
        config.language = args.language
    if getattr(args, "no_color", False):
        config.display.color = False

    verbosity = getattr(args, "verbose", 0) or 0
    if verbosity >= 2:
        config.logging.level = "debug"
    elif verbosity == 1:
        config.logging.level = "info"

    output_format = getattr(args, "output_format", None)
    if output_format:
        config.display.output_format = OutputFormat(output_format)

    return config


def _load_config_or_report(args: argparse.Namespace) -> Optional[LookupConfig]:
    try:
        return build_config(args)
    except ConfigError as e:
        language = getattr(args, "language", None)
        print(
            get_message("config.load_failed", language, path=args.config, error=e.message),
            file=sys.stderr,
        )
        return None


async def lookup_single(
    query: str,
    config: LookupConfig,
    presenter: Presenter,
    logger: Optional[AuditLogger] = None,
) -> int:
    """
    Look up one query and print the document.

    Returns:
        Exit code (0 on success, 1 on any lookup error)
    """
    async with LookupOrchestrator(config, logger=logger) as orchestrator:
        try:
            document = await orchestrator.lookup(query)
        except RdapLookupError as e:
            print(get_message("cli.error", config.language, error=e.message), file=sys.stderr)
            return EXIT_FAILURE

    presenter.show(document)
    return EXIT_OK


async def lookup_file(
    queries_file: Path,
    config: LookupConfig,
    presenter: Presenter,
    ordered: bool = False,
    logger: Optional[AuditLogger] = None,
) -> int:
    """
    Look up every query in a file.

    Each failure is reported as soon as it resolves. Documents are printed
    as they arrive, or in input order at the end when ``ordered`` is set.

    Returns:
        Exit code (1 only when the file cannot be read)
    """
    language = config.language

    try:
        queries = read_queries(queries_file)
    except InputError as e:
        print(get_message("cli.error", language, error=e.message), file=sys.stderr)
        return EXIT_FAILURE

    if not queries:
        message = get_message("bulk.no_queries", language, path=queries_file)
        print(get_message("cli.note", language, message=message), file=sys.stderr)
        return EXIT_OK

    ndjson = config.display.output_format is OutputFormat.NDJSON
    failed_label = get_message("cli.failed", language)

    def on_outcome(outcome: FetchOutcome) -> None:
        if not outcome.ok:
            presenter.show_failure(outcome.query, outcome.error, label=failed_label)
            if ndjson and not ordered:
                presenter.show_failure_record(outcome.query, outcome.error)
        elif not ordered:
            presenter.show(outcome.document)

    async with LookupOrchestrator(config, logger=logger) as orchestrator:
        outcomes = await orchestrator.lookup_many(queries, on_outcome=on_outcome)

    if ordered:
        for outcome in sort_outcomes(outcomes):
            if outcome.ok:
                presenter.show(outcome.document)
            elif ndjson:
                presenter.show_failure_record(outcome.query, outcome.error)

    if logger and logger.is_enabled_for(LogLevel.INFO):
        ok = sum(1 for outcome in outcomes if outcome.ok)
        print(get_message("bulk.summary", language, ok=ok, total=len(outcomes)), file=sys.stderr)

    return EXIT_OK


def _make_logger(config: LookupConfig) -> AuditLogger:
    return AuditLogger.from_config(config.logging.level, config.logging.output_format)


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle the 'lookup' command."""
    config = _load_config_or_report(args)
    if config is None:
        return EXIT_USAGE

    presenter = Presenter(config.display)
    return asyncio.run(lookup_single(
        query=args.query,
        config=config,
        presenter=presenter,
        logger=_make_logger(config),
    ))


def cmd_bulk(args: argparse.Namespace) -> int:
    """Handle the 'bulk' command."""
    if not args.output_format:
        args.output_format = OutputFormat.NDJSON.value

    config = _load_config_or_report(args)
    if config is None:
        return EXIT_USAGE

    presenter = Presenter(config.display)
    return asyncio.run(lookup_file(
        queries_file=Path(args.file),
        config=config,
        presenter=presenter,
        ordered=args.ordered,
        logger=_make_logger(config),
    ))


def cmd_cache(args: argparse.Namespace) -> int:
    """Handle the 'cache' command."""
    config = _load_config_or_report(args)
    if config is None:
        return EXIT_USAGE

    language = config.language
    cache_store = build_cache_store(config, _make_logger(config))

    if args.action == "path":
        print(cache_store.directory)
        return EXIT_OK

    try:
        if args.action == "list":
            entries = cache_store.list_entries()
            print(get_message("cache.location", language, path=cache_store.directory))
            for entry in entries:
                print(entry)
            print(get_message("cache.entries", language, count=len(entries)))
            return EXIT_OK

        if args.action == "clear":
            removed = cache_store.clear()
            print(get_message("cache.cleared", language, count=removed))
            return EXIT_OK
    except RdapLookupError as e:
        print(get_message("cli.error", language, error=e.message), file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_USAGE


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH
    language = args.language

    if args.action == "init":
        if config_path.exists() and not args.force:
            print(get_message("config.exists", language, path=config_path))
            return EXIT_FAILURE
        try:
            save_config_to_file(LookupConfig(language=language or "en"), config_path)
        except ConfigError as e:
            print(get_message("cli.error", language, error=e.message), file=sys.stderr)
            return EXIT_FAILURE
        print(get_message("config.created", language, path=config_path))
        return EXIT_OK

    try:
        config = load_config_from_file(config_path)
    except ConfigError as e:
        if e.code == "not_found":
            print(get_message("config.not_found", language, path=config_path))
            print(get_message("config.init_hint", language))
        else:
            print(
                get_message("config.load_failed", language, path=config_path, error=e.message),
                file=sys.stderr,
            )
        return EXIT_FAILURE

    if args.action == "show":
        print(get_message("config.from", language, path=config_path))
        print(f"  Base URL: {config.http.base_url}")
        print(f"  Timeout: {config.http.timeout_seconds}s")
        print(f"  Retries: {config.retry.retry_count} (delay {config.retry.retry_delay_seconds}s)")
        print(f"  Cache: {'on' if config.cache.enabled else 'off'}, TTL {config.cache.ttl_seconds}s")
        print(f"  Cache directory: {config.cache.directory or build_cache_store(config).directory}")
        print(f"  Concurrency: {config.concurrency}")
        print(f"  Language: {config.language}")
        print(f"  Log level: {config.logging.level}")
        return EXIT_OK

    print(get_message("config.valid", language, path=config_path))
    return EXIT_OK


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Output language (default: en)",
    )


def _add_lookup_options(parser: argparse.ArgumentParser) -> None:
    _add_common_options(parser)
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-attempt timeout in seconds (default: 8)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="RDAP service root (default: https://rdap.org)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Retries after a transport failure (default: 2)",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=None,
        help="Seconds to wait between attempts (default: 1)",
    )
    parser.add_argument(
        "--cache-ttl",
        type=float,
        default=None,
        help="Cache TTL in seconds (default: 86400 = 24h)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable cache (always fetch fresh)",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Cache directory (default: per-user cache directory)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug detail)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="rdap-lookup",
        description="RDAP lookup for domains, IP addresses and AS numbers, with bulk mode and on-disk caching",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'lookup' command
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up a single domain, IP or ASN",
    )
    lookup_parser.add_argument(
        "query",
        help="Domain (example.com), IP (1.1.1.1), or ASN (AS13335 or 13335)",
    )
    lookup_format = lookup_parser.add_mutually_exclusive_group()
    lookup_format.add_argument(
        "--pretty",
        dest="output_format",
        action="store_const",
        const=OutputFormat.PRETTY.value,
        help="Pretty-print JSON",
    )
    lookup_format.add_argument(
        "--table",
        dest="output_format",
        action="store_const",
        const=OutputFormat.TABLE.value,
        help="Short summary instead of JSON",
    )
    _add_lookup_options(lookup_parser)
    lookup_parser.set_defaults(func=cmd_lookup)

    # 'bulk' command
    bulk_parser = subparsers.add_parser(
        "bulk",
        help="Look up one query per line from a file",
    )
    bulk_parser.add_argument(
        "file",
        help="Query list (blank lines and lines starting with # are ignored)",
    )
    bulk_parser.add_argument(
        "--concurrency", "-j",
        type=int,
        default=None,
        help="How many lookups to run in parallel (default: 8)",
    )
    bulk_parser.add_argument(
        "--ordered",
        action="store_true",
        help="Print documents in input order once all lookups finish",
    )
    bulk_format = bulk_parser.add_mutually_exclusive_group()
    bulk_format.add_argument(
        "--ndjson",
        dest="output_format",
        action="store_const",
        const=OutputFormat.NDJSON.value,
        help="One compact JSON document per line (default)",
    )
    bulk_format.add_argument(
        "--pretty",
        dest="output_format",
        action="store_const",
        const=OutputFormat.PRETTY.value,
        help="Pretty-print JSON",
    )
    bulk_format.add_argument(
        "--table",
        dest="output_format",
        action="store_const",
        const=OutputFormat.TABLE.value,
        help="Short summary per document",
    )
    _add_lookup_options(bulk_parser)
    bulk_parser.set_defaults(func=cmd_bulk)

    # 'cache' command
    cache_parser = subparsers.add_parser(
        "cache",
        help="Inspect or clear the response cache",
    )
    cache_parser.add_argument(
        "action",
        choices=["list", "clear", "path"],
        help="Cache action",
    )
    cache_parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Cache directory (default: per-user cache directory)",
    )
    _add_common_options(cache_parser)
    cache_parser.set_defaults(func=cmd_cache)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Output language",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
