"""Configuration and plan types for one bootstrap run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping, Union

from initstore.domain.encodings import Encoding

PROVIDER_LIBC = "libc"
PROVIDER_ICU = "icu"
LOCALE_PROVIDERS: tuple[str, ...] = (PROVIDER_LIBC, PROVIDER_ICU)

SyncMethod = Literal["fsync", "syncfs"]
SYNC_METHOD_FSYNC: SyncMethod = "fsync"
SYNC_METHOD_SYNCFS: SyncMethod = "syncfs"
SYNC_METHODS: tuple[str, ...] = (SYNC_METHOD_FSYNC, SYNC_METHOD_SYNCFS)

LOCALE_CATEGORIES: tuple[str, ...] = (
    "lc_collate",
    "lc_ctype",
    "lc_messages",
    "lc_monetary",
    "lc_numeric",
    "lc_time",
)


@dataclass(frozen=True)
class LocaleCategories:
    lc_collate: str = "C"
    lc_ctype: str = "C"
    lc_messages: str = "C"
    lc_monetary: str = "C"
    lc_numeric: str = "C"
    lc_time: str = "C"

    @classmethod
    def uniform(cls, name: str) -> "LocaleCategories":
        return cls(**{category: name for category in LOCALE_CATEGORIES})

    def as_dict(self) -> dict[str, str]:
        return {category: getattr(self, category) for category in LOCALE_CATEGORIES}


@dataclass(frozen=True)
class BootstrapConfig:
    """Requested configuration, as supplied by the caller and not yet validated."""

    superuser: str
    locale_provider: str = PROVIDER_LIBC
    categories: LocaleCategories = field(default_factory=LocaleCategories)
    icu_locale: str | None = None
    encoding: str | None = None
    data_checksums: bool = False
    allow_group_access: bool = False
    text_search_config: str | None = None
    auth_method: str | None = None
    settings: Mapping[str, str] = field(default_factory=dict)
    timezone: str = "UTC"


@dataclass(frozen=True)
class PlatformLocale:
    categories: LocaleCategories


@dataclass(frozen=True)
class InternationalLocale:
    language_tag: str
    categories: LocaleCategories


LocaleSetup = Union[PlatformLocale, InternationalLocale]


@dataclass(frozen=True)
class ValidatedConfig:
    superuser: str
    locale: LocaleSetup
    encoding: Encoding
    data_checksums: bool
    allow_group_access: bool
    text_search_config: str
    auth_method: str
    settings: Mapping[str, str]
    timezone: str

    @property
    def provider(self) -> str:
        return PROVIDER_ICU if isinstance(self.locale, InternationalLocale) else PROVIDER_LIBC

    @property
    def icu_locale(self) -> str | None:
        if isinstance(self.locale, InternationalLocale):
            return self.locale.language_tag
        return None


@dataclass(frozen=True)
class DirectoryPlan:
    data_directory: str
    wal_directory: str | None = None


@dataclass(frozen=True)
class PermissionProfile:
    name: str
    dir_mode: int
    file_mode: int

    @property
    def umask(self) -> int:
        return 0o777 & ~self.dir_mode


PRIVATE = PermissionProfile("private", dir_mode=0o700, file_mode=0o600)
GROUP_READABLE = PermissionProfile("group-readable", dir_mode=0o750, file_mode=0o640)


def profile_for(allow_group_access: bool) -> PermissionProfile:
    return GROUP_READABLE if allow_group_access else PRIVATE
