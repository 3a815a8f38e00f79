"""Merge command-line options, a YAML bootstrap file and the environment.

Precedence, per key: command line > bootstrap file > environment > default.
"""

from __future__ import annotations

from dataclasses import dataclass
import getpass
from pathlib import Path
from typing import Any, Mapping, Sequence

from initstore.application.use_cases.initialize_datadir import InitRequest
from initstore.domain.bootstrap_config import (
    LOCALE_CATEGORIES,
    PROVIDER_ICU,
    PROVIDER_LIBC,
    SYNC_METHOD_FSYNC,
    BootstrapConfig,
    DirectoryPlan,
    LocaleCategories,
)
from initstore.domain.settings import parse_setting_assignments
from initstore.infrastructure.config_loader import load_bootstrap_file

ENV_DATA_DIRECTORY = "INITSTORE_DATA"
ENV_ERROR_LOG_DIR = "INITSTORE_ERROR_LOG_DIR"
DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class RunOptions:
    request: InitRequest
    error_log_dir: Path | None
    config_file: Path | None = None


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _env_value(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


def locale_defaults_from_env(env: Mapping[str, str]) -> dict[str, str]:
    """LC_ALL > LC_<CATEGORY> > LANG > "C", evaluated per category."""
    everything = _env_value(env, "LC_ALL")
    fallback = _env_value(env, "LANG") or "C"
    return {
        category: everything or _env_value(env, category.upper()) or fallback
        for category in LOCALE_CATEGORIES
    }


def timezone_from_env(env: Mapping[str, str]) -> str:
    value = _env_value(env, "TZ")
    if value is None:
        return DEFAULT_TIMEZONE
    return value.lstrip(":") or DEFAULT_TIMEZONE


def effective_user_name() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def _resolve_categories(cli: Mapping[str, Any], file_values: Mapping[str, Any], env: Mapping[str, str]) -> LocaleCategories:
    env_defaults = locale_defaults_from_env(env)
    resolved = {
        category: _first(
            cli.get(category),
            cli.get("locale"),
            file_values.get(category),
            file_values.get("locale"),
            env_defaults[category],
        )
        for category in LOCALE_CATEGORIES
    }
    return LocaleCategories(**resolved)


def _resolve_icu_locale(provider: str, cli: Mapping[str, Any], file_values: Mapping[str, Any]) -> str | None:
    explicit = _first(cli.get("icu_locale"), file_values.get("icu_locale"))
    if explicit is not None or provider != PROVIDER_ICU:
        return explicit
    return _first(cli.get("locale"), file_values.get("locale"))


def _resolve_settings(cli_assignments: Sequence[str] | None, file_values: Mapping[str, Any]) -> dict[str, str]:
    settings = dict(file_values.get("settings") or {})
    settings.update(parse_setting_assignments(cli_assignments or ()))
    return settings


def build_config(
    cli: Mapping[str, Any],
    file_values: Mapping[str, Any],
    env: Mapping[str, str],
) -> BootstrapConfig:
    provider = _first(cli.get("locale_provider"), file_values.get("locale_provider"), PROVIDER_LIBC)
    return BootstrapConfig(
        superuser=_first(cli.get("superuser"), file_values.get("superuser"), effective_user_name()),
        locale_provider=provider,
        categories=_resolve_categories(cli, file_values, env),
        icu_locale=_resolve_icu_locale(provider, cli, file_values),
        encoding=_first(cli.get("encoding"), file_values.get("encoding")),
        data_checksums=bool(_first(cli.get("data_checksums"), file_values.get("data_checksums"), False)),
        allow_group_access=bool(_first(cli.get("allow_group_access"), file_values.get("allow_group_access"), False)),
        text_search_config=_first(cli.get("text_search_config"), file_values.get("text_search_config")),
        auth_method=_first(cli.get("auth_method"), file_values.get("auth_method")),
        settings=_resolve_settings(cli.get("settings"), file_values),
        timezone=_first(file_values.get("timezone"), timezone_from_env(env)),
    )


def build_plan(cli: Mapping[str, Any], file_values: Mapping[str, Any], env: Mapping[str, str]) -> DirectoryPlan:
    return DirectoryPlan(
        data_directory=_first(
            cli.get("data_directory"),
            file_values.get("data_directory"),
            _env_value(env, ENV_DATA_DIRECTORY),
            "",
        ),
        wal_directory=_first(cli.get("wal_directory"), file_values.get("wal_directory")),
    )


def build_run_options(cli: Mapping[str, Any], env: Mapping[str, str]) -> RunOptions:
    """Build the full run description; a bootstrap file named on the command line is loaded here."""
    config_file = cli.get("config_file")
    file_values: Mapping[str, Any] = {}
    if config_file is not None:
        config_file = Path(config_file)
        file_values = load_bootstrap_file(config_file)

    request = InitRequest(
        config=build_config(cli, file_values, env),
        plan=build_plan(cli, file_values, env),
        sync_method=_first(cli.get("sync_method"), file_values.get("sync_method"), SYNC_METHOD_FSYNC),
        sync_only=bool(cli.get("sync_only")),
        no_sync=bool(_first(cli.get("no_sync"), file_values.get("no_sync"), False)),
    )
    log_dir = _first(cli.get("error_log_dir"), _env_value(env, ENV_ERROR_LOG_DIR))
    return RunOptions(
        request=request,
        error_log_dir=Path(log_dir).expanduser() if log_dir is not None else None,
        config_file=config_file,
    )
