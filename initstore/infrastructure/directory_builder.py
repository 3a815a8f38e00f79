"""Creation of the data directory skeleton and the WAL relocation link."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Callable

from initstore.engine.errors import StorageIOError
from initstore.engine.reason_codes import DETAIL_KEY_CREATE_FAILED
from initstore.infrastructure.datadir_layout import subdirectory_paths, wal_slot_path
from initstore.infrastructure.path_contract import ResolvedPaths


@dataclass
class BuildReport:
    created: list[Path] = field(default_factory=list)
    reused: list[Path] = field(default_factory=list)
    wal_link: Path | None = None


def _make_dir(path: Path, *, parents: bool) -> bool:
    """Create path with the default mode; return False when it already existed as a directory."""
    try:
        if parents:
            path.mkdir(parents=True, exist_ok=False)
        else:
            os.mkdir(path)
    except FileExistsError:
        if path.is_dir():
            return False
        raise StorageIOError(
            f'could not create directory "{path}": a non-directory entry is in the way',
            detail_key=DETAIL_KEY_CREATE_FAILED,
            observed_value=str(path),
        )
    except OSError as exc:
        raise StorageIOError.from_os_error(exc, action="create directory", path=path, detail_key=DETAIL_KEY_CREATE_FAILED)
    return True


def build_tree(paths: ResolvedPaths, *, progress: Callable[[str], None] | None = None) -> BuildReport:
    """Create the data directory (and the relocated WAL directory) plus the skeleton.

    Permissions are not applied here; callers apply the profile once every entry exists.
    A failure leaves whatever was created in place.
    """
    emit = progress or (lambda _msg: None)
    report = BuildReport()

    if _make_dir(paths.data_directory, parents=True):
        emit(f"creating directory {paths.data_directory} ... ok")
        report.created.append(paths.data_directory)
    else:
        emit(f"fixing permissions on existing directory {paths.data_directory} ... ok")
        report.reused.append(paths.data_directory)

    if paths.wal_directory is not None:
        if _make_dir(paths.wal_directory, parents=True):
            emit(f"creating directory {paths.wal_directory} ... ok")
            report.created.append(paths.wal_directory)
        else:
            emit(f"fixing permissions on existing directory {paths.wal_directory} ... ok")
            report.reused.append(paths.wal_directory)
        link = wal_slot_path(paths.data_directory)
        try:
            os.symlink(str(paths.wal_directory), str(link), target_is_directory=True)
        except OSError as exc:
            raise StorageIOError.from_os_error(exc, action="create symbolic link", path=link, detail_key=DETAIL_KEY_CREATE_FAILED)
        report.wal_link = link

    emit("creating subdirectories ... ok")
    for subdirectory in subdirectory_paths(paths.data_directory, relocated_wal=paths.wal_directory is not None):
        if _make_dir(subdirectory, parents=False):
            report.created.append(subdirectory)
    return report
