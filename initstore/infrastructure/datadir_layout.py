"""Canonical layout of a data directory.

Every path a bootstrap run creates is derived here from the data directory root.
"""

from __future__ import annotations

from pathlib import Path

STORE_MAJOR_VERSION = "1"

WAL_DIR_NAME = "wal"
CONTROL_FILE_NAME = "store_control"
VERSION_FILE_NAME = "STORE_VERSION"
SERVER_CONFIG_NAME = "store.conf"
AUTH_CONFIG_NAME = "hba.conf"

# Created in this order; parents precede children.
SUBDIRECTORIES: tuple[str, ...] = (
    "global",
    WAL_DIR_NAME,
    f"{WAL_DIR_NAME}/archive_status",
    "commit_ts",
    "dynshmem",
    "notify",
    "serial",
    "snapshots",
    "subtrans",
    "twophase",
    "multixact",
    "multixact/members",
    "multixact/offsets",
    "base",
    "base/1",
    "tblspc",
    "stat",
    "stat_tmp",
    "xact",
    "logical",
    "logical/mappings",
    "logical/snapshots",
    "replslot",
)


def wal_slot_path(data_directory: Path) -> Path:
    return data_directory / WAL_DIR_NAME


def control_file_path(data_directory: Path) -> Path:
    return data_directory / "global" / CONTROL_FILE_NAME


def version_file_path(data_directory: Path) -> Path:
    return data_directory / VERSION_FILE_NAME


def server_config_path(data_directory: Path) -> Path:
    return data_directory / SERVER_CONFIG_NAME


def auth_config_path(data_directory: Path) -> Path:
    return data_directory / AUTH_CONFIG_NAME


def subdirectory_paths(data_directory: Path, *, relocated_wal: bool) -> list[Path]:
    """Return skeleton directories; WAL subdirectories move with a relocated WAL slot."""
    paths: list[Path] = []
    for name in SUBDIRECTORIES:
        if relocated_wal and name == WAL_DIR_NAME:
            continue
        paths.append(data_directory / name)
    return paths
