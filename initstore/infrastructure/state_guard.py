"""Directory-state classification for bootstrap targets.

Classification is always computed from the filesystem at call time; it is the
only source of truth about whether a target may be initialized or synced.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from pathlib import Path

from initstore.engine.errors import StateError, StorageIOError
from initstore.engine.reason_codes import (
    DETAIL_KEY_ACCESS_FAILED,
    DETAIL_KEY_EXISTING_DATA_DIRECTORY,
    DETAIL_KEY_MISSING_DATA_DIRECTORY,
    DETAIL_KEY_NON_EMPTY_DIRECTORY,
    DETAIL_KEY_NOT_INITIALIZED,
)
from initstore.infrastructure.datadir_layout import control_file_path
from initstore.infrastructure.path_contract import ResolvedPaths

LOST_AND_FOUND = "lost+found"


class DirectoryState(str, Enum):
    ABSENT = "absent"
    EMPTY_EXISTS = "empty"
    INITIALIZED = "initialized"
    FOREIGN_NON_EMPTY = "foreign-non-empty"


@dataclass(frozen=True)
class DirectoryInspection:
    path: Path
    state: DirectoryState
    entries: tuple[str, ...] = ()
    is_directory: bool = True

    @property
    def dot_files_only(self) -> bool:
        return bool(self.entries) and all(name.startswith(".") for name in self.entries)

    @property
    def lost_and_found_only(self) -> bool:
        return self.entries == (LOST_AND_FOUND,)


def inspect_directory(path: Path) -> DirectoryInspection:
    try:
        if not os.path.lexists(path):
            return DirectoryInspection(path=path, state=DirectoryState.ABSENT)
        if not path.is_dir():
            return DirectoryInspection(path=path, state=DirectoryState.FOREIGN_NON_EMPTY, is_directory=False)
        entries = tuple(sorted(os.listdir(path)))
    except OSError as exc:
        raise StorageIOError.from_os_error(exc, action="access directory", path=path, detail_key=DETAIL_KEY_ACCESS_FAILED)

    if not entries:
        return DirectoryInspection(path=path, state=DirectoryState.EMPTY_EXISTS)
    if control_file_path(path).is_file():
        return DirectoryInspection(path=path, state=DirectoryState.INITIALIZED, entries=entries)
    return DirectoryInspection(path=path, state=DirectoryState.FOREIGN_NON_EMPTY, entries=entries)


def classify_directory(path: Path) -> DirectoryState:
    return inspect_directory(path).state


def _non_empty_message(inspection: DirectoryInspection, label: str) -> str:
    if not inspection.is_directory:
        return f'{label} "{inspection.path}" exists but is not a directory'
    message = f'{label} "{inspection.path}" exists but is not empty'
    if inspection.lost_and_found_only:
        message += (
            f"; it contains a {LOST_AND_FOUND} directory, perhaps due to it being a mount point. "
            "Using a mount point directly is not recommended; create a subdirectory under the mount point"
        )
    elif inspection.dot_files_only:
        message += "; it contains a dot-prefixed/invisible file, perhaps due to it being a mount point"
    return message


def require_initializable(paths: ResolvedPaths) -> tuple[DirectoryInspection, DirectoryInspection | None]:
    """Allow full initialization only into absent or empty targets."""

    primary = inspect_directory(paths.data_directory)
    if primary.state is DirectoryState.INITIALIZED:
        raise StateError(
            f'data directory "{primary.path}" already contains an initialized data store (existing data directory)',
            detail_key=DETAIL_KEY_EXISTING_DATA_DIRECTORY,
            observed_value=str(primary.path),
        )
    if primary.state is DirectoryState.FOREIGN_NON_EMPTY:
        raise StateError(
            _non_empty_message(primary, "directory"),
            detail_key=DETAIL_KEY_NON_EMPTY_DIRECTORY,
            observed_value=str(primary.path),
        )

    wal: DirectoryInspection | None = None
    if paths.wal_directory is not None:
        wal = inspect_directory(paths.wal_directory)
        if wal.state in (DirectoryState.FOREIGN_NON_EMPTY, DirectoryState.INITIALIZED):
            raise StateError(
                _non_empty_message(wal, "WAL directory"),
                detail_key=DETAIL_KEY_NON_EMPTY_DIRECTORY,
                observed_value=str(wal.path),
            )
    return primary, wal


def require_initialized(data_directory: Path) -> DirectoryInspection:
    """Allow sync-only mode only against an initialized data directory."""

    inspection = inspect_directory(data_directory)
    if inspection.state is DirectoryState.ABSENT:
        raise StateError(
            f'cannot sync missing data directory "{data_directory}"',
            detail_key=DETAIL_KEY_MISSING_DATA_DIRECTORY,
            observed_value=str(data_directory),
        )
    if inspection.state is not DirectoryState.INITIALIZED:
        raise StateError(
            f'directory "{data_directory}" is not an initialized data directory ({inspection.state.value})',
            detail_key=DETAIL_KEY_NOT_INITIALIZED,
            observed_value=str(data_directory),
        )
    return inspection
