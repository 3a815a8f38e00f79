from __future__ import annotations

import os
from pathlib import Path

import pytest

from initstore.application.use_cases.initialize_datadir import (
    InitRequest,
    initialize_data_directory,
    run_bootstrap,
    sync_only_data_directory,
)
from initstore.domain.bootstrap_config import DirectoryPlan, LocaleCategories
from initstore.engine.errors import CapabilityError, ConfigError, LocaleError, PathError, StateError
from initstore.engine.reason_codes import (
    DETAIL_KEY_EXISTING_DATA_DIRECTORY,
    DETAIL_KEY_LOCALE_NAME_INVALID,
    DETAIL_KEY_LOCALE_REQUIRED,
    DETAIL_KEY_OPTION_COMBINATION,
    WARN_AUTH_TRUST,
    WARN_SYNC_SKIPPED,
)
from initstore.infrastructure import durability
from initstore.infrastructure.control_file import read_control_file
from initstore.infrastructure.datadir_layout import (
    auth_config_path,
    control_file_path,
    server_config_path,
    version_file_path,
    wal_slot_path,
)
from initstore.infrastructure.permissions import check_mode_recursive
from initstore.infrastructure.state_guard import DirectoryState


@pytest.mark.datadir
def test_full_initialization_private_profile(tmp_path: Path, make_config):
    data = tmp_path / "data"
    messages: list[str] = []
    result = initialize_data_directory(
        make_config(settings={"work_mem": "128"}, timezone="Europe/Berlin"),
        DirectoryPlan(str(data)),
        progress=messages.append,
    )

    assert result.prior_state is DirectoryState.ABSENT
    assert result.synced
    assert result.sync_report is not None and result.sync_report.method == "fsync"
    assert WARN_AUTH_TRUST in result.warnings
    assert check_mode_recursive(data, 0o700, 0o600)

    record = read_control_file(data)
    assert record.data_checksums is False
    assert record.provider == "libc"
    assert record.encoding_id == 0

    server_conf = server_config_path(data).read_text(encoding="utf-8")
    assert "timezone = 'Europe/Berlin'" in server_conf
    assert "work_mem = '128'" in server_conf
    assert "default_text_search_config = 'simple'" in server_conf
    assert "trust" in auth_config_path(data).read_text(encoding="utf-8")
    assert version_file_path(data).read_text(encoding="utf-8") == "1\n"
    assert any("syncing data to disk ... ok" in m for m in messages)


@pytest.mark.datadir
def test_group_readable_profile_with_checksums(tmp_path: Path, make_config):
    data = tmp_path / "data"
    initialize_data_directory(
        make_config(allow_group_access=True, data_checksums=True, auth_method="scram-sha-256"),
        DirectoryPlan(str(data)),
    )
    assert check_mode_recursive(data, 0o750, 0o640)
    assert read_control_file(data).data_checksums is True
    assert "scram-sha-256" in auth_config_path(data).read_text(encoding="utf-8")


@pytest.mark.datadir
def test_icu_initialization_records_language_tag(tmp_path: Path, make_config):
    data = tmp_path / "data"
    result = initialize_data_directory(
        make_config(locale_provider="icu", icu_locale="und", categories=LocaleCategories()),
        DirectoryPlan(str(data)),
        no_sync=True,
    )
    assert result.config is not None and result.config.icu_locale == "und"
    record = read_control_file(data)
    assert record.provider == "icu"
    assert record.icu_locale == "und"


@pytest.mark.datadir
def test_relocated_wal_gets_profile_and_link(tmp_path: Path, make_config):
    data = tmp_path / "data"
    wal = tmp_path / "wal"
    result = initialize_data_directory(
        make_config(allow_group_access=True),
        DirectoryPlan(str(data), str(wal)),
    )
    assert result.wal_directory == wal
    assert wal_slot_path(data).is_symlink()
    assert check_mode_recursive(wal, 0o750, 0o640)
    assert result.sync_report is not None and result.sync_report.files >= 4


@pytest.mark.datadir
def test_existing_data_directory_is_refused_and_sync_only_is_repeatable(tmp_path: Path, make_config):
    data = tmp_path / "data"
    initialize_data_directory(make_config(data_checksums=True), DirectoryPlan(str(data)))
    before = control_file_path(data).read_bytes()

    with pytest.raises(StateError) as excinfo:
        initialize_data_directory(make_config(), DirectoryPlan(str(data)))
    assert excinfo.value.detail_key == DETAIL_KEY_EXISTING_DATA_DIRECTORY

    for _ in range(2):
        result = sync_only_data_directory(str(data))
        assert result.synced
        assert result.prior_state is DirectoryState.INITIALIZED
    assert control_file_path(data).read_bytes() == before
    assert check_mode_recursive(data, 0o700, 0o600)


@pytest.mark.datadir
def test_no_sync_reports_skipped_durability(tmp_path: Path, make_config):
    result = initialize_data_directory(make_config(), DirectoryPlan(str(tmp_path / "data")), no_sync=True)
    assert not result.synced
    assert WARN_SYNC_SKIPPED in result.warnings


@pytest.mark.datadir
def test_sync_only_with_no_sync_is_rejected(tmp_path: Path, make_config):
    request = InitRequest(make_config(), DirectoryPlan(str(tmp_path)), sync_only=True, no_sync=True)
    with pytest.raises(ConfigError) as excinfo:
        run_bootstrap(request)
    assert excinfo.value.detail_key == DETAIL_KEY_OPTION_COMBINATION


@pytest.mark.datadir
def test_validation_failure_creates_nothing(tmp_path: Path, make_config):
    data = tmp_path / "data"
    with pytest.raises(ConfigError) as excinfo:
        initialize_data_directory(make_config(locale_provider="icu"), DirectoryPlan(str(data)))
    assert excinfo.value.detail_key == DETAIL_KEY_LOCALE_REQUIRED
    assert not data.exists()


@pytest.mark.datadir
def test_overlong_icu_language_tag_creates_nothing(tmp_path: Path, make_config):
    data = tmp_path / "data"
    icu_locale = "en-US-u-co-phonebk-ka-shifted-kb-true-kc-true-kf-upper-kk-true-kn-true-ks-level2"
    with pytest.raises(LocaleError) as excinfo:
        initialize_data_directory(make_config(locale_provider="icu", icu_locale=icu_locale), DirectoryPlan(str(data)))
    assert excinfo.value.detail_key == DETAIL_KEY_LOCALE_NAME_INVALID
    assert excinfo.value.exit_code == 2
    assert not data.exists()


@pytest.mark.datadir
def test_relative_wal_creates_nothing(tmp_path: Path, make_config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(PathError):
        initialize_data_directory(make_config(), DirectoryPlan(str(tmp_path / "data"), "pgxlog"))
    assert sorted(os.listdir(tmp_path)) == []


@pytest.mark.datadir
def test_non_empty_wal_refused_before_any_mutation(tmp_path: Path, make_config):
    data = tmp_path / "data"
    wal = tmp_path / "wal"
    (wal / "lost+found").mkdir(parents=True)
    with pytest.raises(StateError):
        initialize_data_directory(make_config(), DirectoryPlan(str(data), str(wal)))
    assert not data.exists()


@pytest.mark.datadir
def test_syncfs_capability_checked_before_mutation(tmp_path: Path, make_config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(durability, "_syncfs_function", lambda: None)
    data = tmp_path / "data"
    with pytest.raises(CapabilityError):
        initialize_data_directory(make_config(), DirectoryPlan(str(data)), sync_method="syncfs")
    assert not data.exists()
    with pytest.raises(CapabilityError):
        sync_only_data_directory(str(data), sync_method="syncfs")


@pytest.mark.datadir
def test_syncfs_where_supported(tmp_path: Path, make_config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(durability, "_syncfs_function", lambda: (lambda fd: 0))
    data = tmp_path / "data"
    result = run_bootstrap(InitRequest(make_config(), DirectoryPlan(str(data)), sync_method="syncfs"))
    assert result.sync_report is not None and result.sync_report.method == "syncfs"
    again = run_bootstrap(InitRequest(make_config(), DirectoryPlan(str(data)), sync_method="syncfs", sync_only=True))
    assert again.sync_report is not None and again.sync_report.filesystems == 1
