"""Recursive permission profiles for data directory trees."""

from __future__ import annotations

from contextlib import contextmanager
import os
from pathlib import Path
import stat
from typing import Iterable, Iterator

from initstore.domain.bootstrap_config import PermissionProfile
from initstore.engine.errors import StorageIOError
from initstore.engine.reason_codes import DETAIL_KEY_CHMOD_FAILED


def _walk_entries(root: Path) -> Iterator[tuple[Path, bool]]:
    """Yield (path, is_dir) for root and everything below it; symlinks are not followed or yielded."""
    yield root, True
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        base = Path(dirpath)
        for name in dirnames:
            candidate = base / name
            if not candidate.is_symlink():
                yield candidate, True
        for name in filenames:
            candidate = base / name
            if not candidate.is_symlink():
                yield candidate, False


def _chmod(path: Path, mode: int) -> None:
    try:
        if stat.S_IMODE(os.lstat(path).st_mode) != mode:
            os.chmod(path, mode)
    except OSError as exc:
        raise StorageIOError.from_os_error(exc, action="change permissions of", path=path, detail_key=DETAIL_KEY_CHMOD_FAILED)


def apply_profile(root: Path, profile: PermissionProfile, extra_roots: Iterable[Path] = ()) -> int:
    """Apply the profile to every directory and file under each root; return the entry count."""
    count = 0
    for tree in (root, *extra_roots):
        for path, is_dir in _walk_entries(tree):
            _chmod(path, profile.dir_mode if is_dir else profile.file_mode)
            count += 1
    return count


def check_mode_recursive(root: Path, dir_mode: int, file_mode: int) -> bool:
    for path, is_dir in _walk_entries(root):
        expected = dir_mode if is_dir else file_mode
        if stat.S_IMODE(os.lstat(path).st_mode) != expected:
            return False
    return True


@contextmanager
def restricted_umask(profile: PermissionProfile) -> Iterator[None]:
    previous = os.umask(profile.umask)
    try:
        yield
    finally:
        os.umask(previous)
