from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
import stat

import pytest

from initstore.domain.bootstrap_config import GROUP_READABLE, PRIVATE, LocaleCategories
from initstore.domain.config_validator import validate_config
from initstore.engine.errors import StorageIOError
from initstore.infrastructure.control_file import (
    CONTROL_FILE_SIZE,
    DATA_CHECKSUM_VERSION,
    MAGIC,
    decode_control_file,
    encode_control_file,
    read_control_file,
    record_from_config,
    write_control_file,
)
from initstore.infrastructure.datadir_layout import control_file_path


@pytest.mark.datadir
def test_record_reflects_checksum_choice(make_config):
    enabled = record_from_config(validate_config(make_config(data_checksums=True)), system_identifier=7)
    disabled = record_from_config(validate_config(make_config()), system_identifier=7)
    assert enabled.checksum_version == DATA_CHECKSUM_VERSION
    assert enabled.data_checksums is True
    assert disabled.checksum_version == 0
    assert disabled.data_checksums is False


@pytest.mark.datadir
def test_encoded_image_is_fixed_size_and_decodes(make_config):
    config = validate_config(
        make_config(
            locale_provider="icu",
            icu_locale="de_DE@collation=phonebook",
            categories=LocaleCategories(lc_messages="de_DE.UTF-8"),
            data_checksums=True,
        )
    )
    record = record_from_config(config, system_identifier=0x1234_5678_9ABC_DEF0)
    image = encode_control_file(record)

    assert len(image) == CONTROL_FILE_SIZE
    assert image[:4] == MAGIC
    decoded = decode_control_file(image)
    assert decoded == record
    assert decoded.provider == "icu"
    assert decoded.icu_locale == "de-DE-u-co-phonebk"
    assert decoded.lc_messages == "de_DE.UTF-8"


@pytest.mark.datadir
def test_corruption_is_detected(make_config):
    image = bytearray(encode_control_file(record_from_config(validate_config(make_config()), system_identifier=1)))
    image[20] ^= 0xFF
    with pytest.raises(ValueError, match="checksum mismatch"):
        decode_control_file(bytes(image))
    with pytest.raises(ValueError, match="too short"):
        decode_control_file(b"ISCF")


@pytest.mark.datadir
@pytest.mark.parametrize("profile", [PRIVATE, GROUP_READABLE], ids=lambda p: p.name)
def test_write_control_file_once_with_profile_mode(tmp_path: Path, make_config, profile):
    (tmp_path / "global").mkdir()
    record = record_from_config(validate_config(make_config(data_checksums=True)))
    target = write_control_file(tmp_path, record, profile)

    assert target == control_file_path(tmp_path)
    assert stat.S_IMODE(os.stat(target).st_mode) == profile.file_mode
    assert read_control_file(tmp_path).data_checksums is True
    assert [p.name for p in target.parent.iterdir()] == [target.name]

    with pytest.raises(StorageIOError):
        write_control_file(tmp_path, record, profile)
    assert read_control_file(tmp_path) == record


@pytest.mark.datadir
def test_field_too_long_is_a_storage_error_and_writes_nothing(tmp_path: Path, make_config):
    (tmp_path / "global").mkdir()
    record = replace(record_from_config(validate_config(make_config())), lc_time="x" * 64)
    with pytest.raises(StorageIOError) as excinfo:
        write_control_file(tmp_path, record, PRIVATE)
    assert "field too long" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert list((tmp_path / "global").iterdir()) == []
