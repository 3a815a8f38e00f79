"""Fixed-format control file recording how a data directory was configured.

Layout (little-endian), zero-padded to CONTROL_FILE_SIZE bytes:

    magic             : 4s   (b"ISCF")
    control_version   : u16  (currently 1)
    reserved          : u16
    system_identifier : u64
    checksum_version  : u32  (0 = checksums disabled)
    encoding_id       : u32
    provider          : char (b"c" libc, b"i" icu)
    padding           : 3 bytes
    lc_collate .. lc_time, icu_locale : 7 x 64s, NUL-padded UTF-8
    crc               : u32  (CRC-32 of all preceding bytes)

The file is written once per data directory and never edited afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import struct
import time
import zlib

from initstore.domain.bootstrap_config import (
    LOCALE_CATEGORIES,
    PROVIDER_ICU,
    PROVIDER_LIBC,
    PermissionProfile,
    ValidatedConfig,
)
from initstore.engine.errors import StorageIOError
from initstore.engine.reason_codes import DETAIL_KEY_WRITE_FAILED
from initstore.infrastructure.datadir_layout import control_file_path
from initstore.infrastructure.fs_atomic import atomic_write_bytes

MAGIC = b"ISCF"
CONTROL_VERSION = 1
CONTROL_FILE_SIZE = 8192
DATA_CHECKSUM_VERSION = 1
LOCALE_FIELD_SIZE = 64

_BODY = struct.Struct("<4sHHQIIc3x" + f"{LOCALE_FIELD_SIZE}s" * 7)
_CRC = struct.Struct("<I")

_PROVIDER_TAGS = {PROVIDER_LIBC: b"c", PROVIDER_ICU: b"i"}
_PROVIDERS_BY_TAG = {tag: name for name, tag in _PROVIDER_TAGS.items()}


@dataclass(frozen=True)
class ControlFileRecord:
    system_identifier: int
    checksum_version: int
    encoding_id: int
    provider: str
    lc_collate: str
    lc_ctype: str
    lc_messages: str
    lc_monetary: str
    lc_numeric: str
    lc_time: str
    icu_locale: str | None
    control_version: int = CONTROL_VERSION

    @property
    def data_checksums(self) -> bool:
        return self.checksum_version != 0


def generate_system_identifier() -> int:
    now = time.time_ns()
    seconds, micros = divmod(now // 1000, 1_000_000)
    return ((seconds & 0xFFFFFFFF) << 32) | ((micros & 0xFFFFF) << 12) | (os.getpid() & 0xFFF)


def record_from_config(config: ValidatedConfig, *, system_identifier: int | None = None) -> ControlFileRecord:
    categories = config.locale.categories
    return ControlFileRecord(
        system_identifier=system_identifier if system_identifier is not None else generate_system_identifier(),
        checksum_version=DATA_CHECKSUM_VERSION if config.data_checksums else 0,
        encoding_id=config.encoding.id,
        provider=config.provider,
        icu_locale=config.icu_locale,
        **categories.as_dict(),
    )


def _pack_text(value: str | None) -> bytes:
    raw = (value or "").encode("utf-8")
    if len(raw) >= LOCALE_FIELD_SIZE:
        raise ValueError(f"control file field too long: {value!r}")
    return raw


def encode_control_file(record: ControlFileRecord) -> bytes:
    body = _BODY.pack(
        MAGIC,
        record.control_version,
        0,
        record.system_identifier,
        record.checksum_version,
        record.encoding_id,
        _PROVIDER_TAGS[record.provider],
        *(_pack_text(getattr(record, category)) for category in LOCALE_CATEGORIES),
        _pack_text(record.icu_locale),
    )
    payload = body + _CRC.pack(zlib.crc32(body) & 0xFFFFFFFF)
    return payload.ljust(CONTROL_FILE_SIZE, b"\0")


def _unpack_text(raw: bytes) -> str:
    return raw.rstrip(b"\0").decode("utf-8")


def decode_control_file(data: bytes) -> ControlFileRecord:
    """Parse and verify a control file image; raises ValueError on damage."""
    minimum = _BODY.size + _CRC.size
    if len(data) < minimum:
        raise ValueError(f"control file too short: {len(data)} bytes")
    body = data[: _BODY.size]
    (stored_crc,) = _CRC.unpack_from(data, _BODY.size)
    if zlib.crc32(body) & 0xFFFFFFFF != stored_crc:
        raise ValueError("control file checksum mismatch")
    magic, version, _reserved, system_identifier, checksum_version, encoding_id, provider_tag, *texts = _BODY.unpack(body)
    if magic != MAGIC:
        raise ValueError(f"control file magic mismatch: {magic!r}")
    provider = _PROVIDERS_BY_TAG.get(provider_tag)
    if provider is None:
        raise ValueError(f"control file provider tag unknown: {provider_tag!r}")
    values = [_unpack_text(raw) for raw in texts]
    categories = dict(zip(LOCALE_CATEGORIES, values[:6]))
    return ControlFileRecord(
        system_identifier=system_identifier,
        checksum_version=checksum_version,
        encoding_id=encoding_id,
        provider=provider,
        icu_locale=values[6] or None,
        control_version=version,
        **categories,
    )


def read_control_file(data_directory: Path) -> ControlFileRecord:
    return decode_control_file(control_file_path(data_directory).read_bytes())


def write_control_file(data_directory: Path, record: ControlFileRecord, profile: PermissionProfile) -> Path:
    """Create the control file exactly once; an existing control file is never replaced."""
    target = control_file_path(data_directory)
    try:
        image = encode_control_file(record)
    except ValueError as exc:
        raise StorageIOError(
            f'could not write control file "{target}": {exc}',
            detail_key=DETAIL_KEY_WRITE_FAILED,
            observed_value=str(target),
        ) from exc
    try:
        atomic_write_bytes(target, image, mode=profile.file_mode, exclusive=True)
    except OSError as exc:
        raise StorageIOError.from_os_error(exc, action="write control file", path=target, detail_key=DETAIL_KEY_WRITE_FAILED)
    return target
