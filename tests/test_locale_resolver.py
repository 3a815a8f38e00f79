from __future__ import annotations

from babel import UnknownLocaleError
import pytest

from initstore.domain import locale_resolver
from initstore.domain.locale_resolver import (
    check_platform_locale_name,
    icu_language_tag,
    language_of,
    platform_locale_encoding,
    resolve_icu_locale,
)
from initstore.engine.errors import ConfigError, LocaleError
from initstore.engine.reason_codes import (
    DETAIL_KEY_ENCODING_UNKNOWN,
    DETAIL_KEY_LOCALE_NAME_INVALID,
    DETAIL_KEY_UNKNOWN_LOCALE,
)


@pytest.mark.datadir
@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("en", "en"),
        ("en_US", "en-US"),
        ("de_DE@collation=phonebook", "de-DE-u-co-phonebk"),
        ("@colNumeric=lower", "und-u-kn-lower"),
        ("root", "und"),
        ("sr_Latn_RS", "sr-Latn-RS"),
        ("en-US-u-kn-true", "en-US-u-kn-true"),
        ("en_US.UTF-8", "en-US"),
        ("de_DE.ISO8859-1@collation=phonebook", "de-DE-u-co-phonebk"),
    ],
)
def test_icu_language_tag_conversion(identifier, expected):
    assert icu_language_tag(identifier) == expected


@pytest.mark.datadir
def test_resolve_known_locales():
    assert resolve_icu_locale("en") == "en"
    assert resolve_icu_locale("de_DE@colNumeric=yes") == "de-DE-u-kn-true"
    assert resolve_icu_locale("und") == "und"


@pytest.mark.datadir
def test_unresolvable_full_identifier_is_distinct_from_unknown_language(monkeypatch: pytest.MonkeyPatch):
    def refuse(identifier, sep="_"):
        raise UnknownLocaleError(identifier)

    monkeypatch.setattr(locale_resolver.Locale, "parse", staticmethod(refuse))
    with pytest.raises(LocaleError) as excinfo:
        resolve_icu_locale("en-US")
    assert excinfo.value.detail_key == DETAIL_KEY_UNKNOWN_LOCALE
    assert 'could not resolve locale "en-US"' in excinfo.value.message


LONG_COLLATOR_TAG = "en-US-u-co-phonebk-ka-shifted-kb-true-kc-true-kf-upper-kk-true-kn-true-ks-level2"


@pytest.mark.datadir
def test_language_tag_longer_than_a_locale_name_is_rejected():
    with pytest.raises(LocaleError) as excinfo:
        resolve_icu_locale(LONG_COLLATOR_TAG)
    assert excinfo.value.detail_key == DETAIL_KEY_LOCALE_NAME_INVALID
    assert "too long" in excinfo.value.message


@pytest.mark.datadir
def test_codeset_suffix_is_dropped_from_resolved_tag():
    assert resolve_icu_locale("en_US.UTF-8") == "en-US"


@pytest.mark.datadir
def test_collator_strength_must_be_a_known_level():
    with pytest.raises(LocaleError):
        resolve_icu_locale("en@colStrength=loudest")


@pytest.mark.datadir
@pytest.mark.parametrize("name", ["C", "POSIX", "en_US", "en_US.UTF-8", "de_DE.ISO8859-15@euro", "und"])
def test_well_formed_platform_locale_names(name):
    check_platform_locale_name("lc_ctype", name)


@pytest.mark.datadir
@pytest.mark.parametrize("name", ["", "en US", "../etc", "x" * 70])
def test_malformed_platform_locale_names(name):
    with pytest.raises(LocaleError) as excinfo:
        check_platform_locale_name("lc_collate", name)
    assert excinfo.value.detail_key == DETAIL_KEY_LOCALE_NAME_INVALID


@pytest.mark.datadir
def test_platform_locale_encoding():
    assert platform_locale_encoding("C") is None
    assert platform_locale_encoding("en_US") is None
    encoding = platform_locale_encoding("en_US.utf8")
    assert encoding is not None and encoding.name == "UTF8"
    with pytest.raises(ConfigError) as excinfo:
        platform_locale_encoding("en_US.BOGUS42")
    assert excinfo.value.detail_key == DETAIL_KEY_ENCODING_UNKNOWN


@pytest.mark.datadir
def test_language_of():
    assert language_of("fr_CA.UTF-8") == "fr"
    assert language_of("C") == "c"
