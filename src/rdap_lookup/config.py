"""
Configuration dataclasses for the RDAP lookup tool.

This module defines the configuration structures used throughout the
system (HTTP access, retry policy, on-disk cache, display, logging) and
the loaders that fill them from a JSON file and from the environment.

Precedence, lowest first: defaults, JSON config file, environment
(including a ``.env`` file), command-line flags.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .enums import OutputFormat
from .exceptions import ConfigError


DEFAULT_BASE_URL = "https://rdap.org"
DEFAULT_USER_AGENT = "rdap-lookup/0.1 (+https://github.com/rdap-lookup/rdap-lookup)"
LOG_OUTPUT_FORMATS = ("json", "text", "both")


@dataclass
class HTTPConfig:
    """Remote RDAP service access."""

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RetryConfig:
    """Retry behavior for transport failures."""

    retry_count: int = 2
    retry_delay_seconds: float = 1.0


@dataclass
class CacheConfig:
    """On-disk response cache configuration."""

    enabled: bool = True
    ttl_seconds: float = 86400.0
    directory: Optional[Path] = None


@dataclass
class DisplayConfig:
    """Rendering options passed to the presenter."""

    output_format: OutputFormat = OutputFormat.COMPACT
    color: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "warn"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class LookupConfig:
    """Main configuration combining all sub-configurations."""

    http: HTTPConfig = field(default_factory=HTTPConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    concurrency: int = 8
    language: str = "en"  # 'de' or 'en'


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: LookupConfig, dotenv_path: Optional[Path] = None) -> LookupConfig:
    """
    Apply ``RDAP_*`` environment variables on top of a configuration.

    A ``.env`` file is loaded first (without overriding variables that are
    already set). Malformed numeric values leave the current value in place.

    Args:
        config: Configuration to update in place
        dotenv_path: Optional explicit path to a .env file

    Returns:
        The same configuration object, for chaining
    """
    load_dotenv(dotenv_path=dotenv_path)

    config.http.base_url = os.getenv("RDAP_BASE_URL", config.http.base_url)
    config.http.timeout_seconds = _float_env("RDAP_TIMEOUT", config.http.timeout_seconds)
    config.retry.retry_count = _int_env("RDAP_RETRY_COUNT", config.retry.retry_count)
    config.retry.retry_delay_seconds = _float_env(
        "RDAP_RETRY_DELAY", config.retry.retry_delay_seconds
    )
    config.cache.ttl_seconds = _float_env("RDAP_CACHE_TTL", config.cache.ttl_seconds)
    config.cache.enabled = not _bool_env("RDAP_NO_CACHE", not config.cache.enabled)

    cache_dir = os.getenv("RDAP_CACHE_DIR")
    if cache_dir:
        config.cache.directory = Path(cache_dir).expanduser()

    config.concurrency = _int_env("RDAP_CONCURRENCY", config.concurrency)
    config.language = os.getenv("RDAP_LANG", config.language)
    config.logging.level = os.getenv("RDAP_LOG_LEVEL", config.logging.level)
    return config


def load_config_from_file(config_path: Path) -> LookupConfig:
    """
    Load configuration from a JSON file.

    Missing sections and keys keep their defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        LookupConfig built from the file

    Raises:
        ConfigError: If the file cannot be read or has the wrong shape
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(
            code="not_found",
            message=f"Configuration file not found: {config_path}",
            details={"path": str(config_path)},
        )
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(
            code="unreadable",
            message=f"Could not read configuration: {e}",
            details={"path": str(config_path)},
        )

    if not isinstance(data, dict):
        raise ConfigError(
            code="invalid",
            message="Configuration root must be a JSON object",
            details={"path": str(config_path)},
        )

    try:
        http_data = data.get("http", {})
        http = HTTPConfig(
            base_url=http_data.get("base_url", DEFAULT_BASE_URL),
            timeout_seconds=float(http_data.get("timeout_seconds", 8.0)),
            user_agent=http_data.get("user_agent", DEFAULT_USER_AGENT),
        )

        retry_data = data.get("retry", {})
        retry = RetryConfig(
            retry_count=int(retry_data.get("retry_count", 2)),
            retry_delay_seconds=float(retry_data.get("retry_delay_seconds", 1.0)),
        )

        cache_data = data.get("cache", {})
        directory = cache_data.get("directory")
        cache = CacheConfig(
            enabled=bool(cache_data.get("enabled", True)),
            ttl_seconds=float(cache_data.get("ttl_seconds", 86400.0)),
            directory=Path(directory).expanduser() if directory else None,
        )

        display_data = data.get("display", {})
        display = DisplayConfig(
            output_format=OutputFormat(display_data.get("output_format", "compact")),
            color=bool(display_data.get("color", True)),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "warn"),
            output_format=logging_data.get("output_format", "text"),
        )
        if logging_config.output_format not in LOG_OUTPUT_FORMATS:
            raise ValueError(f"unknown log output format {logging_config.output_format!r}")

        return LookupConfig(
            http=http,
            retry=retry,
            cache=cache,
            display=display,
            logging=logging_config,
            concurrency=int(data.get("concurrency", 8)),
            language=data.get("language", "en"),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigError(
            code="invalid",
            message=f"Invalid configuration: {e}",
            details={"path": str(config_path)},
        )


def save_config_to_file(config: LookupConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: LookupConfig to save
        config_path: Path to save the configuration

    Raises:
        ConfigError: If the file cannot be written
    """
    data = {
        "http": {
            "base_url": config.http.base_url,
            "timeout_seconds": config.http.timeout_seconds,
            "user_agent": config.http.user_agent,
        },
        "retry": {
            "retry_count": config.retry.retry_count,
            "retry_delay_seconds": config.retry.retry_delay_seconds,
        },
        "cache": {
            "enabled": config.cache.enabled,
            "ttl_seconds": config.cache.ttl_seconds,
            "directory": str(config.cache.directory) if config.cache.directory else None,
        },
        "display": {
            "output_format": config.display.output_format.value,
            "color": config.display.color,
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
        "concurrency": config.concurrency,
        "language": config.language,
    }

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(
            code="unwritable",
            message=f"Could not write configuration: {e}",
            details={"path": str(config_path)},
        )
