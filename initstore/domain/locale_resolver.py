"""Locale name handling for both locale providers.

International (icu) identifiers are converted to BCP 47 language tags and
resolved against the CLDR data shipped with Babel. Platform (libc) names are
checked for shape and for the codeset they imply.
"""

from __future__ import annotations

import functools
import re
from typing import Final

from babel import Locale, UnknownLocaleError
from babel.core import parse_locale
from babel.localedata import locale_identifiers

from initstore.domain.encodings import Encoding, lookup_encoding
from initstore.engine.errors import ConfigError, LocaleError
from initstore.engine.reason_codes import (
    DETAIL_KEY_ENCODING_UNKNOWN,
    DETAIL_KEY_ILLEGAL_COLLATOR_ARGUMENT,
    DETAIL_KEY_LOCALE_NAME_INVALID,
    DETAIL_KEY_UNKNOWN_LANGUAGE,
    DETAIL_KEY_UNKNOWN_LOCALE,
)

ROOT_LANGUAGE: Final[str] = "und"
MAX_LOCALE_NAME_BYTES: Final[int] = 63

# ICU keyword names (as used after "@") mapped to their BCP 47 -u- keys.
_ICU_KEYWORD_KEYS: Final[dict[str, str]] = {
    "calendar": "ca",
    "colalternate": "ka",
    "colbackwards": "kb",
    "colcasefirst": "kf",
    "colcaselevel": "kc",
    "collation": "co",
    "colnormalization": "kk",
    "colnumeric": "kn",
    "colreorder": "kr",
    "colstrength": "ks",
    "currency": "cu",
    "maxvariable": "kv",
    "numbers": "nu",
}

_ICU_VALUE_ALIASES: Final[dict[str, str]] = {
    "yes": "true",
    "no": "false",
    "on": "true",
    "off": "false",
    "primary": "level1",
    "secondary": "level2",
    "tertiary": "level3",
    "quaternary": "level4",
    "identical": "identic",
    "non-ignorable": "noignore",
    "phonebook": "phonebk",
    "traditional": "trad",
    "dictionary": "dict",
}

_BOOLEAN: Final[frozenset[str]] = frozenset({"true", "false"})
_COLLATOR_VALUES: Final[dict[str, frozenset[str]]] = {
    "ka": frozenset({"noignore", "shifted"}),
    "kb": _BOOLEAN,
    "kc": _BOOLEAN,
    "kf": frozenset({"upper", "lower", "false"}),
    "kk": _BOOLEAN,
    "kn": _BOOLEAN,
    "ks": frozenset({"level1", "level2", "level3", "level4", "identic"}),
    "kv": frozenset({"space", "punct", "symbol", "currency"}),
}
_COLLATION_TYPE = re.compile(r"^[a-z0-9]{3,8}$")
_REORDER_CODE = re.compile(r"^(?:[a-z]{4}|space|punct|symbol|currency|digit|others)$")

_PLATFORM_LOCALE = re.compile(
    r"^(?:C|POSIX|[A-Za-z]{2,8}(?:_[A-Za-z0-9]{2,8})?)(?:\.[A-Za-z0-9_-]+)?(?:@[A-Za-z0-9]+)?$"
)


@functools.lru_cache(maxsize=1)
def known_languages() -> frozenset[str]:
    codes = {identifier.split("_")[0].lower() for identifier in locale_identifiers()}
    codes.update(str(code).lower() for code in Locale("en").languages)
    codes.discard("root")
    codes.add(ROOT_LANGUAGE)
    return frozenset(codes)


def _case_subtag(subtag: str) -> str:
    if len(subtag) == 4 and subtag.isalpha():
        return subtag.title()
    if len(subtag) == 2 and subtag.isalpha():
        return subtag.upper()
    return subtag.lower()


def _extension_pairs(subtags: list[str]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    key: str | None = None
    values: list[str] = []
    for subtag in subtags:
        token = subtag.lower()
        if len(token) == 1:
            break
        if len(token) == 2:
            if key is not None:
                pairs.append((key, "-".join(values) or "true"))
            key, values = token, []
            continue
        values.append(token)
    if key is not None:
        pairs.append((key, "-".join(values) or "true"))
    return pairs


def icu_language_tag(identifier: str) -> str:
    """Convert an ICU-format or BCP 47 identifier to a canonical language tag.

    `de_DE@collation=phonebook` becomes `de-DE-u-co-phonebk` and
    `@colNumeric=lower` becomes `und-u-kn-lower`. A `.codeset` suffix
    is dropped, so `en_US.UTF-8` becomes `en-US`. Values are not validated here.
    """

    base, _, keywords = identifier.strip().partition("@")
    base = base.partition(".")[0]
    subtags = [s for s in re.split(r"[-_]", base) if s]
    lowered = [s.lower() for s in subtags]
    extension: dict[str, str] = {}
    if "u" in lowered[1:]:
        index = lowered.index("u", 1)
        extension.update(_extension_pairs(subtags[index + 1:]))
        subtags = subtags[:index]

    for item in keywords.split(";"):
        if not item.strip():
            continue
        key, _, value = item.partition("=")
        key = key.strip().lower()
        value = value.strip().lower()
        extension[_ICU_KEYWORD_KEYS.get(key, key)] = _ICU_VALUE_ALIASES.get(value, value)

    language = subtags[0].lower() if subtags else ROOT_LANGUAGE
    if language == "root":
        language = ROOT_LANGUAGE
    tag = "-".join([language, *(_case_subtag(s) for s in subtags[1:])])
    if extension:
        tag += "-u-" + "-".join(f"{key}-{value}" for key, value in sorted(extension.items()))
    return tag


def _check_collator_arguments(tag: str, extension: str) -> None:
    for key, value in _extension_pairs(extension.split("-")):
        allowed = _COLLATOR_VALUES.get(key)
        if allowed is not None:
            legal = value in allowed
        elif key == "co":
            legal = bool(_COLLATION_TYPE.match(value))
        elif key == "kr":
            legal = all(_REORDER_CODE.match(code) for code in value.split("-"))
        else:
            continue
        if not legal:
            raise LocaleError(
                f'could not open collator for locale "{tag}": U_ILLEGAL_ARGUMENT_ERROR',
                detail_key=DETAIL_KEY_ILLEGAL_COLLATOR_ARGUMENT,
                observed_value=tag,
            )


def resolve_icu_locale(identifier: str) -> str:
    """Return the canonical language tag for an international locale.

    Raises LocaleError when the tag does not fit the control file, or with one
    of three detail keys: unknown language, unresolvable full identifier, or
    illegal collator argument.
    """

    tag = icu_language_tag(identifier)
    if len(tag.encode("utf-8")) > MAX_LOCALE_NAME_BYTES:
        raise LocaleError(
            f'language tag "{tag}" for locale "{identifier}" is too long (maximum {MAX_LOCALE_NAME_BYTES} bytes)',
            detail_key=DETAIL_KEY_LOCALE_NAME_INVALID,
            observed_value=identifier,
        )
    base, _, extension = tag.partition("-u-")
    language = base.split("-")[0]
    if language not in known_languages():
        raise LocaleError(
            f'locale "{identifier}" has unknown language "{language}"',
            detail_key=DETAIL_KEY_UNKNOWN_LANGUAGE,
            observed_value=identifier,
        )

    try:
        if language == ROOT_LANGUAGE:
            parse_locale(base, sep="-")
        else:
            Locale.parse(base, sep="-")
    except (ValueError, UnknownLocaleError) as exc:
        raise LocaleError(
            f'could not resolve locale "{identifier}" (language tag "{base}"): {exc}',
            detail_key=DETAIL_KEY_UNKNOWN_LOCALE,
            observed_value=identifier,
        ) from exc

    if extension:
        _check_collator_arguments(tag, extension)
    return tag


def check_platform_locale_name(category: str, name: str) -> None:
    if len(name.encode("utf-8")) > MAX_LOCALE_NAME_BYTES:
        raise LocaleError(
            f'locale name "{name}" for {category} is too long (maximum {MAX_LOCALE_NAME_BYTES} bytes)',
            detail_key=DETAIL_KEY_LOCALE_NAME_INVALID,
            observed_value=name,
        )
    if not _PLATFORM_LOCALE.match(name):
        raise LocaleError(
            f'invalid locale name "{name}" for {category}',
            detail_key=DETAIL_KEY_LOCALE_NAME_INVALID,
            observed_value=name,
        )


def is_c_locale(name: str) -> bool:
    return name in ("C", "POSIX")


def platform_locale_encoding(name: str) -> Encoding | None:
    """Return the encoding implied by a platform locale's codeset, if it names one."""

    codeset = name.partition(".")[2].partition("@")[0]
    if not codeset:
        return None
    encoding = lookup_encoding(codeset)
    if encoding is None:
        raise ConfigError(
            f'could not determine encoding for locale "{name}": codeset is "{codeset}"',
            detail_key=DETAIL_KEY_ENCODING_UNKNOWN,
            observed_value=name,
        )
    return encoding


def language_of(name: str) -> str:
    return name.partition(".")[0].partition("@")[0].partition("_")[0].lower()
