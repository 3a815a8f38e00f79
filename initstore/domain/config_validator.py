"""Fail-closed validation of a requested bootstrap configuration.

Rules run in a fixed order so that a conflicting input always reports the same
first violation:

1. superuser naming policy
2. locale provider is recognized
3. icu provider has a locale
4. libc provider has no icu locale
5. encoding is known, server-capable and compatible with provider and locales
6. the icu locale resolves (language, full identifier, collator arguments)
7. per-category locale names are well formed
8. text search configuration, authentication method and parameters

Nothing here touches the filesystem.
"""

from __future__ import annotations

from typing import Final

from initstore.domain.bootstrap_config import (
    LOCALE_CATEGORIES,
    LOCALE_PROVIDERS,
    PROVIDER_ICU,
    BootstrapConfig,
    InternationalLocale,
    LocaleSetup,
    PlatformLocale,
    ValidatedConfig,
)
from initstore.domain.encodings import SQL_ASCII, UTF8, Encoding, lookup_encoding
from initstore.domain.locale_resolver import (
    check_platform_locale_name,
    is_c_locale,
    language_of,
    platform_locale_encoding,
    resolve_icu_locale,
)
from initstore.domain.settings import (
    DEFAULT_AUTH_METHOD,
    check_auth_method,
    check_settings,
    check_text_search_config,
    default_text_search_config,
)
from initstore.engine.errors import ConfigError
from initstore.engine.reason_codes import (
    DETAIL_KEY_ENCODING_MISMATCH,
    DETAIL_KEY_ENCODING_NOT_SERVER,
    DETAIL_KEY_ENCODING_UNKNOWN,
    DETAIL_KEY_LOCALE_REQUIRED,
    DETAIL_KEY_OPTION_COMBINATION,
    DETAIL_KEY_PROVIDER_UNKNOWN,
    DETAIL_KEY_ROLE_NAME_EMPTY,
    DETAIL_KEY_ROLE_NAME_RESERVED,
)

RESERVED_ROLE_PREFIX: Final[str] = "pg_"


def check_role_name(name: str) -> str:
    token = str(name or "").strip()
    if not token:
        raise ConfigError("superuser name must not be empty", detail_key=DETAIL_KEY_ROLE_NAME_EMPTY, observed_value=name)
    if token.startswith(RESERVED_ROLE_PREFIX):
        raise ConfigError(
            f'superuser name "{token}" is disallowed; role names cannot begin with "{RESERVED_ROLE_PREFIX}"',
            detail_key=DETAIL_KEY_ROLE_NAME_RESERVED,
            observed_value=token,
        )
    return token


def check_provider(config: BootstrapConfig) -> str:
    provider = str(config.locale_provider or "").strip().lower()
    if provider not in LOCALE_PROVIDERS:
        raise ConfigError(
            f'unrecognized locale provider: {config.locale_provider}',
            detail_key=DETAIL_KEY_PROVIDER_UNKNOWN,
            observed_value=config.locale_provider,
        )
    icu_locale = (config.icu_locale or "").strip()
    if provider == PROVIDER_ICU and not icu_locale:
        raise ConfigError(
            "ICU locale must be specified",
            detail_key=DETAIL_KEY_LOCALE_REQUIRED,
            observed_value=None,
        )
    if provider != PROVIDER_ICU and icu_locale:
        raise ConfigError(
            f'--icu-locale cannot be specified unless locale provider "icu" is chosen (got "{icu_locale}")',
            detail_key=DETAIL_KEY_OPTION_COMBINATION,
            observed_value=icu_locale,
        )
    return provider


def _default_encoding(config: BootstrapConfig, provider: str) -> Encoding:
    if provider == PROVIDER_ICU:
        return UTF8
    ctype = config.categories.lc_ctype
    implied = platform_locale_encoding(ctype)
    if implied is not None:
        return implied
    if is_c_locale(ctype):
        return SQL_ASCII
    return UTF8


def _requested_encoding(config: BootstrapConfig, provider: str) -> Encoding:
    encoding = lookup_encoding(config.encoding)
    if encoding is None:
        raise ConfigError(
            f'"{config.encoding}" is not a valid encoding name',
            detail_key=DETAIL_KEY_ENCODING_UNKNOWN,
            observed_value=config.encoding,
        )
    if not encoding.server:
        raise ConfigError(
            f'"{encoding.name}" is not a valid server encoding name',
            detail_key=DETAIL_KEY_ENCODING_NOT_SERVER,
            observed_value=config.encoding,
        )
    if provider == PROVIDER_ICU and not encoding.icu:
        raise ConfigError(
            f"encoding mismatch: the encoding you selected ({encoding.name}) "
            f"is not supported with the {PROVIDER_ICU} provider",
            detail_key=DETAIL_KEY_ENCODING_MISMATCH,
            observed_value=encoding.name,
        )
    return encoding


def check_encoding(config: BootstrapConfig, provider: str) -> Encoding:
    """Return the server encoding, given or derived, after matching it against the locale codesets."""
    if config.encoding is None or not str(config.encoding).strip():
        encoding = _default_encoding(config, provider)
    else:
        encoding = _requested_encoding(config, provider)
    for category in ("lc_ctype", "lc_collate"):
        name = getattr(config.categories, category)
        if is_c_locale(name):
            continue
        implied = platform_locale_encoding(name)
        if implied is not None and implied.id != encoding.id:
            raise ConfigError(
                f"encoding mismatch: the encoding you selected ({encoding.name}) and the encoding "
                f'that the selected locale "{name}" uses ({implied.name}) do not match',
                detail_key=DETAIL_KEY_ENCODING_MISMATCH,
                observed_value=encoding.name,
            )
    return encoding


def check_locale_setup(config: BootstrapConfig, provider: str) -> LocaleSetup:
    if provider == PROVIDER_ICU:
        tag = resolve_icu_locale(str(config.icu_locale))
        locale: LocaleSetup = InternationalLocale(language_tag=tag, categories=config.categories)
    else:
        locale = PlatformLocale(categories=config.categories)
    for category in LOCALE_CATEGORIES:
        check_platform_locale_name(category, getattr(config.categories, category))
    return locale


def validate_config(config: BootstrapConfig) -> ValidatedConfig:
    superuser = check_role_name(config.superuser)
    provider = check_provider(config)
    encoding = check_encoding(config, provider)
    locale = check_locale_setup(config, provider)

    if config.text_search_config:
        text_search = check_text_search_config(config.text_search_config)
    else:
        text_search = default_text_search_config(language_of(config.categories.lc_ctype))
    auth_method = check_auth_method(config.auth_method or DEFAULT_AUTH_METHOD)
    settings = check_settings(config.settings)

    return ValidatedConfig(
        superuser=superuser,
        locale=locale,
        encoding=encoding,
        data_checksums=bool(config.data_checksums),
        allow_group_access=bool(config.allow_group_access),
        text_search_config=text_search,
        auth_method=auth_method,
        settings=settings,
        timezone=config.timezone,
    )
