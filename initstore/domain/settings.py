"""Server parameter, text-search and authentication choices recorded at bootstrap."""

from __future__ import annotations

import re
from typing import Final, Iterable, Mapping

from initstore.engine.errors import ConfigError
from initstore.engine.reason_codes import (
    DETAIL_KEY_AUTH_METHOD_UNKNOWN,
    DETAIL_KEY_SETTING_SYNTAX,
    DETAIL_KEY_SETTING_UNKNOWN,
    DETAIL_KEY_TEXT_SEARCH_UNKNOWN,
)

DEFAULT_TEXT_SEARCH_CONFIG: Final[str] = "simple"
DEFAULT_AUTH_METHOD: Final[str] = "trust"

TEXT_SEARCH_CONFIGS: Final[frozenset[str]] = frozenset(
    {
        "simple",
        "arabic",
        "armenian",
        "basque",
        "catalan",
        "danish",
        "dutch",
        "english",
        "finnish",
        "french",
        "german",
        "greek",
        "hindi",
        "hungarian",
        "indonesian",
        "irish",
        "italian",
        "lithuanian",
        "nepali",
        "norwegian",
        "portuguese",
        "romanian",
        "russian",
        "serbian",
        "spanish",
        "swedish",
        "tamil",
        "turkish",
        "yiddish",
    }
)

_TEXT_SEARCH_BY_LANGUAGE: Final[dict[str, str]] = {
    "ar": "arabic",
    "ca": "catalan",
    "da": "danish",
    "de": "german",
    "el": "greek",
    "en": "english",
    "es": "spanish",
    "eu": "basque",
    "fi": "finnish",
    "fr": "french",
    "ga": "irish",
    "hi": "hindi",
    "hu": "hungarian",
    "hy": "armenian",
    "id": "indonesian",
    "it": "italian",
    "lt": "lithuanian",
    "nb": "norwegian",
    "ne": "nepali",
    "nl": "dutch",
    "nn": "norwegian",
    "no": "norwegian",
    "pt": "portuguese",
    "ro": "romanian",
    "ru": "russian",
    "sr": "serbian",
    "sv": "swedish",
    "ta": "tamil",
    "tr": "turkish",
    "yi": "yiddish",
}

AUTH_METHODS: Final[frozenset[str]] = frozenset(
    {"trust", "reject", "scram-sha-256", "md5", "password", "peer", "ident", "cert", "ldap", "radius", "pam"}
)

# Parameters accepted by -c/--set. Names are matched case-insensitively.
KNOWN_PARAMETERS: Final[frozenset[str]] = frozenset(
    {
        "archive_mode",
        "autovacuum",
        "checkpoint_timeout",
        "client_encoding",
        "cluster_name",
        "datestyle",
        "default_text_search_config",
        "dynamic_shared_memory_type",
        "effective_cache_size",
        "fsync",
        "full_page_writes",
        "huge_pages",
        "lc_messages",
        "lc_monetary",
        "lc_numeric",
        "lc_time",
        "listen_addresses",
        "log_destination",
        "log_line_prefix",
        "log_timezone",
        "logging_collector",
        "maintenance_work_mem",
        "max_connections",
        "max_wal_senders",
        "max_wal_size",
        "min_wal_size",
        "port",
        "shared_buffers",
        "shared_preload_libraries",
        "synchronous_commit",
        "timezone",
        "unix_socket_directories",
        "wal_buffers",
        "wal_level",
        "wal_sync_method",
        "work_mem",
    }
)

_PARAMETER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


def default_text_search_config(language: str) -> str:
    return _TEXT_SEARCH_BY_LANGUAGE.get(language, DEFAULT_TEXT_SEARCH_CONFIG)


def check_text_search_config(name: str) -> str:
    normalized = name.strip().lower()
    if normalized not in TEXT_SEARCH_CONFIGS:
        raise ConfigError(
            f'text search configuration "{name}" does not exist',
            detail_key=DETAIL_KEY_TEXT_SEARCH_UNKNOWN,
            observed_value=name,
        )
    return normalized


def check_auth_method(method: str) -> str:
    normalized = method.strip().lower()
    if normalized not in AUTH_METHODS:
        raise ConfigError(
            f'invalid authentication method "{method}"',
            detail_key=DETAIL_KEY_AUTH_METHOD_UNKNOWN,
            observed_value=method,
        )
    return normalized


def parse_setting_assignment(raw: str) -> tuple[str, str]:
    """Split one `name=value` assignment as given to -c/--set."""

    name, sep, value = raw.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ConfigError(
            f'-c {raw} requires a value',
            detail_key=DETAIL_KEY_SETTING_SYNTAX,
            observed_value=raw,
        )
    return name, value.strip()


def parse_setting_assignments(items: Iterable[str]) -> dict[str, str]:
    settings: dict[str, str] = {}
    for item in items:
        name, value = parse_setting_assignment(item)
        settings[name] = value
    return settings


def check_settings(settings: Mapping[str, str]) -> dict[str, str]:
    checked: dict[str, str] = {}
    for name, value in settings.items():
        normalized = str(name).strip().lower()
        if not _PARAMETER_NAME.match(normalized) or normalized not in KNOWN_PARAMETERS:
            raise ConfigError(
                f'unrecognized configuration parameter "{name}"',
                detail_key=DETAIL_KEY_SETTING_UNKNOWN,
                observed_value=name,
            )
        checked[normalized] = str(value)
    return checked
