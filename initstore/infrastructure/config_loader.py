"""Loader for YAML bootstrap configuration files.

Fail-closed: unreadable files, non-mapping documents, unknown keys and wrongly
typed values are configuration errors. Nothing is defaulted here; defaults are
resolved by the request builder.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from initstore.domain.bootstrap_config import LOCALE_CATEGORIES
from initstore.engine.errors import ConfigError
from initstore.engine.reason_codes import DETAIL_KEY_CONFIG_FILE_INVALID

_STRING_KEYS = frozenset(
    {
        "data_directory",
        "wal_directory",
        "superuser",
        "encoding",
        "locale",
        "locale_provider",
        "icu_locale",
        "sync_method",
        "text_search_config",
        "auth_method",
        "timezone",
        *LOCALE_CATEGORIES,
    }
)
_BOOL_KEYS = frozenset({"data_checksums", "allow_group_access", "no_sync"})
_MAPPING_KEYS = frozenset({"settings"})
ALLOWED_KEYS = _STRING_KEYS | _BOOL_KEYS | _MAPPING_KEYS


def _invalid(path: Path, message: str) -> ConfigError:
    return ConfigError(
        f"bootstrap config {path}: {message}",
        detail_key=DETAIL_KEY_CONFIG_FILE_INVALID,
        observed_value=str(path),
    )


def _check_settings(path: Path, value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise _invalid(path, "settings must be a mapping of parameter names to values")
    settings: dict[str, str] = {}
    for name, item in value.items():
        if isinstance(item, (dict, list)) or item is None:
            raise _invalid(path, f"settings.{name} must be a scalar value")
        if isinstance(item, bool):
            item = "on" if item else "off"
        settings[str(name)] = str(item)
    return settings


def parse_bootstrap_document(data: Any, *, path: Path) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise _invalid(path, "document must be a mapping")
    unknown = sorted(str(key) for key in data if key not in ALLOWED_KEYS)
    if unknown:
        raise _invalid(path, f"unknown keys: {', '.join(unknown)}")

    parsed: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key in _BOOL_KEYS:
            if not isinstance(value, bool):
                raise _invalid(path, f"{key} must be true or false")
            parsed[key] = value
        elif key in _MAPPING_KEYS:
            parsed[key] = _check_settings(path, value)
        else:
            if isinstance(value, (dict, list, bool)):
                raise _invalid(path, f"{key} must be a string")
            parsed[key] = str(value)
    return parsed


def load_bootstrap_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise _invalid(path, f"cannot read file: {exc.strerror or exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise _invalid(path, f"parse failed: {exc}") from exc
    return parse_bootstrap_document(data, path=path)
