from __future__ import annotations

import os
from pathlib import Path

import pytest

from initstore.domain.bootstrap_config import DirectoryPlan
from initstore.engine.errors import PathError
from initstore.engine.reason_codes import (
    BLOCKED_PATH_INVALID,
    DETAIL_KEY_CONTAINMENT,
    DETAIL_KEY_EMPTY_PATH,
    DETAIL_KEY_RELATIVE_WAL,
)
from initstore.infrastructure.path_contract import normalize_data_path, plan_paths


@pytest.mark.datadir
def test_relative_wal_is_rejected_before_data_directory_checks(tmp_path: Path):
    # Empty data directory would also fail; the WAL check must fire first.
    with pytest.raises(PathError) as excinfo:
        plan_paths(DirectoryPlan(data_directory="", wal_directory="pgxlog"))
    assert excinfo.value.detail_key == DETAIL_KEY_RELATIVE_WAL
    assert excinfo.value.reason_code == BLOCKED_PATH_INVALID
    assert "pgxlog" in excinfo.value.message


@pytest.mark.datadir
def test_relative_wal_rejected_regardless_of_filesystem(tmp_path: Path):
    (tmp_path / "pgxlog").mkdir()
    with pytest.raises(PathError) as excinfo:
        plan_paths(DirectoryPlan(data_directory=str(tmp_path / "data"), wal_directory="pgxlog"))
    assert excinfo.value.detail_key == DETAIL_KEY_RELATIVE_WAL


@pytest.mark.datadir
def test_empty_data_directory_is_rejected():
    with pytest.raises(PathError) as excinfo:
        plan_paths(DirectoryPlan(data_directory="  "))
    assert excinfo.value.detail_key == DETAIL_KEY_EMPTY_PATH


@pytest.mark.datadir
def test_relative_data_directory_is_made_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    resolved = plan_paths(DirectoryPlan(data_directory="data/./x/.."))
    assert resolved.data_directory == Path(os.path.normpath(tmp_path / "data"))
    assert resolved.wal_directory is None


@pytest.mark.datadir
@pytest.mark.parametrize("wal_relative", ["data", "data/wal", ""])
def test_wal_inside_or_equal_to_data_directory_is_rejected(tmp_path: Path, wal_relative: str):
    data = tmp_path / "data"
    wal = (tmp_path / wal_relative) if wal_relative else tmp_path
    with pytest.raises(PathError) as excinfo:
        plan_paths(DirectoryPlan(data_directory=str(data), wal_directory=str(wal)))
    assert excinfo.value.detail_key == DETAIL_KEY_CONTAINMENT


@pytest.mark.datadir
def test_separate_wal_directory_is_accepted(tmp_path: Path):
    resolved = plan_paths(DirectoryPlan(data_directory=str(tmp_path / "data"), wal_directory=str(tmp_path / "wal")))
    assert resolved.data_directory == tmp_path / "data"
    assert resolved.wal_directory == tmp_path / "wal"


@pytest.mark.datadir
def test_normalize_data_path_expands_user(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert normalize_data_path("~/store") == tmp_path / "store"


@pytest.mark.datadir
def test_tilde_wal_is_not_expanded_into_an_absolute_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    with pytest.raises(PathError) as excinfo:
        plan_paths(DirectoryPlan(data_directory=str(tmp_path / "data"), wal_directory="~/wal"))
    assert excinfo.value.detail_key == DETAIL_KEY_RELATIVE_WAL
