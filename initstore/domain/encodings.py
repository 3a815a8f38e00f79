"""Character encoding registry.

Encoding ids are part of the control-file layout and must never be renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Final


@dataclass(frozen=True)
class Encoding:
    id: int
    name: str
    server: bool
    icu: bool


_TABLE: Final[tuple[Encoding, ...]] = (
    Encoding(0, "SQL_ASCII", server=True, icu=False),
    Encoding(1, "EUC_JP", server=True, icu=True),
    Encoding(2, "EUC_CN", server=True, icu=True),
    Encoding(3, "EUC_KR", server=True, icu=True),
    Encoding(4, "EUC_TW", server=True, icu=True),
    Encoding(5, "EUC_JIS_2004", server=True, icu=True),
    Encoding(6, "UTF8", server=True, icu=True),
    Encoding(7, "MULE_INTERNAL", server=True, icu=False),
    Encoding(8, "LATIN1", server=True, icu=True),
    Encoding(9, "LATIN2", server=True, icu=True),
    Encoding(10, "LATIN3", server=True, icu=True),
    Encoding(11, "LATIN4", server=True, icu=True),
    Encoding(12, "LATIN5", server=True, icu=True),
    Encoding(13, "LATIN6", server=True, icu=True),
    Encoding(14, "LATIN7", server=True, icu=True),
    Encoding(15, "LATIN8", server=True, icu=True),
    Encoding(16, "LATIN9", server=True, icu=True),
    Encoding(17, "LATIN10", server=True, icu=True),
    Encoding(18, "WIN1256", server=True, icu=True),
    Encoding(19, "WIN1258", server=True, icu=True),
    Encoding(20, "WIN866", server=True, icu=True),
    Encoding(21, "WIN874", server=True, icu=True),
    Encoding(22, "KOI8R", server=True, icu=True),
    Encoding(23, "WIN1251", server=True, icu=True),
    Encoding(24, "WIN1252", server=True, icu=True),
    Encoding(25, "ISO_8859_5", server=True, icu=True),
    Encoding(26, "ISO_8859_6", server=True, icu=True),
    Encoding(27, "ISO_8859_7", server=True, icu=True),
    Encoding(28, "ISO_8859_8", server=True, icu=True),
    Encoding(29, "WIN1250", server=True, icu=True),
    Encoding(30, "WIN1253", server=True, icu=True),
    Encoding(31, "WIN1254", server=True, icu=True),
    Encoding(32, "WIN1255", server=True, icu=True),
    Encoding(33, "WIN1257", server=True, icu=True),
    Encoding(34, "KOI8U", server=True, icu=True),
    # client-only encodings
    Encoding(35, "SJIS", server=False, icu=False),
    Encoding(36, "BIG5", server=False, icu=False),
    Encoding(37, "GBK", server=False, icu=False),
    Encoding(38, "UHC", server=False, icu=False),
    Encoding(39, "GB18030", server=False, icu=False),
    Encoding(40, "JOHAB", server=False, icu=False),
    Encoding(41, "SHIFT_JIS_2004", server=False, icu=False),
)

_NON_ALNUM = re.compile(r"[^0-9a-z]")


def _clean(name: str) -> str:
    return _NON_ALNUM.sub("", name.strip().lower())


_BY_CLEAN_NAME: Final[dict[str, Encoding]] = {_clean(e.name): e for e in _TABLE}
_BY_ID: Final[dict[int, Encoding]] = {e.id: e for e in _TABLE}

SQL_ASCII: Final[Encoding] = _BY_ID[0]
UTF8: Final[Encoding] = _BY_ID[6]

# Aliases accepted for -E and for locale codesets (keys are cleaned names).
_ALIASES: Final[dict[str, str]] = {
    "unicode": "UTF8",
    "utf8": "UTF8",
    "ascii": "SQL_ASCII",
    "ansix341968": "SQL_ASCII",
    "usascii": "SQL_ASCII",
    "iso88591": "LATIN1",
    "iso88592": "LATIN2",
    "iso88593": "LATIN3",
    "iso88594": "LATIN4",
    "iso88599": "LATIN5",
    "iso885910": "LATIN6",
    "iso885913": "LATIN7",
    "iso885914": "LATIN8",
    "iso885915": "LATIN9",
    "iso885916": "LATIN10",
    "iso88595": "ISO_8859_5",
    "iso88596": "ISO_8859_6",
    "iso88597": "ISO_8859_7",
    "iso88598": "ISO_8859_8",
    "cp1250": "WIN1250",
    "cp1251": "WIN1251",
    "cp1252": "WIN1252",
    "cp1253": "WIN1253",
    "cp1254": "WIN1254",
    "cp1255": "WIN1255",
    "cp1256": "WIN1256",
    "cp1257": "WIN1257",
    "cp1258": "WIN1258",
    "cp866": "WIN866",
    "cp874": "WIN874",
    "koi8": "KOI8R",
    "eucjp": "EUC_JP",
    "euccn": "EUC_CN",
    "euckr": "EUC_KR",
    "euctw": "EUC_TW",
    "shiftjis": "SJIS",
    "big5hkscs": "BIG5",
}


def lookup_encoding(name: str) -> Encoding | None:
    cleaned = _clean(name)
    if not cleaned:
        return None
    alias = _ALIASES.get(cleaned)
    if alias is not None:
        return _BY_CLEAN_NAME[_clean(alias)]
    return _BY_CLEAN_NAME.get(cleaned)


def encoding_by_id(encoding_id: int) -> Encoding:
    return _BY_ID[encoding_id]


def server_encodings() -> list[Encoding]:
    return [e for e in _TABLE if e.server]
