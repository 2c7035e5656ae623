"""
Internationalization (i18n) module for the RDAP lookup tool.

Provides translations for all user-facing CLI messages in German (de) and
English (en). Log entries and JSON output are not translated.
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"de", "en"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Generic CLI messages
    "cli.error": {
        "de": "Fehler: {error}",
        "en": "Error: {error}",
    },
    "cli.note": {
        "de": "Hinweis: {message}",
        "en": "Note: {message}",
    },
    "cli.failed": {
        "de": "Fehlgeschlagen",
        "en": "Failed",
    },

    # Bulk mode
    "bulk.no_queries": {
        "de": "keine Abfragen in {path} gefunden",
        "en": "no queries found in {path}",
    },
    "bulk.summary": {
        "de": "{ok}/{total} Abfragen erfolgreich",
        "en": "{ok}/{total} lookups succeeded",
    },

    # Cache administration
    "cache.location": {
        "de": "Cache-Verzeichnis: {path}",
        "en": "Cache directory: {path}",
    },
    "cache.entries": {
        "de": "{count} Cache-Einträge",
        "en": "{count} cache entries",
    },
    "cache.cleared": {
        "de": "{count} Cache-Einträge entfernt",
        "en": "Removed {count} cache entries",
    },

    # Configuration management
    "config.load_failed": {
        "de": "Konfiguration konnte nicht aus {path} geladen werden: {error}",
        "en": "Could not load config from {path}: {error}",
    },
    "config.not_found": {
        "de": "Keine Konfiguration gefunden unter: {path}",
        "en": "No configuration found at: {path}",
    },
    "config.init_hint": {
        "de": "Mit 'config init' eine Standardkonfiguration anlegen.",
        "en": "Use 'config init' to create a default configuration.",
    },
    "config.exists": {
        "de": "Konfiguration existiert bereits unter: {path} (--force zum Überschreiben)",
        "en": "Configuration already exists at: {path} (use --force to overwrite)",
    },
    "config.created": {
        "de": "Konfiguration angelegt unter: {path}",
        "en": "Configuration created at: {path}",
    },
    "config.valid": {
        "de": "Konfiguration unter {path} ist gültig.",
        "en": "Configuration at {path} is valid.",
    },
    "config.from": {
        "de": "Konfiguration aus: {path}",
        "en": "Configuration from: {path}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'cache.cleared')
        language: Language code ('de' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('cache.cleared', 'en', count=3)
        'Removed 3 cache entries'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # Missing argument: return the template unformatted
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {key for key, translations in TRANSLATIONS.items() if language not in translations}
