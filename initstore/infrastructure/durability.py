"""Flush a data directory tree to stable storage.

Two mechanisms are supported: fsync of every file and directory, or one
syncfs(2) call per filesystem. syncfs is only used where the host provides it;
requesting it elsewhere is a capability error, never a silent fallback.
"""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
import ctypes
from dataclasses import dataclass
import functools
import os
from pathlib import Path
import sys
from typing import Any, Callable, Iterable

from initstore.domain.bootstrap_config import SYNC_METHOD_FSYNC, SYNC_METHOD_SYNCFS, SYNC_METHODS
from initstore.engine.errors import CapabilityError, ConfigError, StorageIOError
from initstore.engine.reason_codes import (
    DETAIL_KEY_FLUSH_FAILED,
    DETAIL_KEY_SYNC_METHOD_UNKNOWN,
    DETAIL_KEY_SYNCFS_UNAVAILABLE,
)
from initstore.infrastructure.datadir_layout import wal_slot_path
from initstore.infrastructure.fs_atomic import fsync_dir

MAX_SYNC_WORKERS = 8


@dataclass(frozen=True)
class SyncReport:
    method: str
    files: int
    directories: int
    filesystems: int


@functools.lru_cache(maxsize=1)
def _syncfs_function() -> Callable[[int], int] | None:
    if not sys.platform.startswith("linux"):
        return None
    try:
        libc = ctypes.CDLL(None, use_errno=True)
    except OSError:
        return None
    fn: Any = getattr(libc, "syncfs", None)
    if fn is None:
        return None
    fn.argtypes = [ctypes.c_int]
    fn.restype = ctypes.c_int
    return fn


def syncfs_available() -> bool:
    return _syncfs_function() is not None


def require_sync_method(method: str) -> str:
    normalized = str(method or "").strip().lower()
    if normalized not in SYNC_METHODS:
        raise ConfigError(
            f'unrecognized sync method: {method}',
            detail_key=DETAIL_KEY_SYNC_METHOD_UNKNOWN,
            observed_value=method,
        )
    if normalized == SYNC_METHOD_SYNCFS and not syncfs_available():
        raise CapabilityError(
            "sync method syncfs is not supported on this platform",
            detail_key=DETAIL_KEY_SYNCFS_UNAVAILABLE,
            observed_value=method,
        )
    return normalized


def sync_roots(data_directory: Path) -> list[Path]:
    """The data directory plus the target of a relocated WAL slot."""
    roots = [data_directory]
    slot = wal_slot_path(data_directory)
    if slot.is_symlink():
        roots.append(Path(os.path.realpath(slot)))
    return roots


def _collect(roots: Iterable[Path]) -> tuple[list[Path], list[Path]]:
    files: list[Path] = []
    directories: list[Path] = []
    for root in roots:
        directories.append(root)
        for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
            base = Path(dirpath)
            directories.extend(base / name for name in dirnames if not (base / name).is_symlink())
            files.extend(base / name for name in filenames if not (base / name).is_symlink())
    return files, directories


def _fsync_file(path: Path) -> None:
    fd = os.open(str(path), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _flush_error(exc: OSError, path: Path | str) -> StorageIOError:
    return StorageIOError.from_os_error(exc, action="fsync", path=path, detail_key=DETAIL_KEY_FLUSH_FAILED)


def _fsync_tree(roots: list[Path], max_workers: int) -> SyncReport:
    files, directories = _collect(roots)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(_fsync_file, path): path for path in files}
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        for future in done:
            exc = future.exception()
            if exc is None:
                continue
            if isinstance(exc, OSError):
                raise _flush_error(exc, futures[future])
            raise exc

    # children first
    for directory in reversed(directories):
        try:
            fsync_dir(directory)
        except OSError as exc:
            raise _flush_error(exc, directory)
    return SyncReport(SYNC_METHOD_FSYNC, files=len(files), directories=len(directories), filesystems=0)


def _syncfs_tree(roots: list[Path]) -> SyncReport:
    syncfs = _syncfs_function()
    if syncfs is None:
        raise CapabilityError(
            "sync method syncfs is not supported on this platform",
            detail_key=DETAIL_KEY_SYNCFS_UNAVAILABLE,
            observed_value=SYNC_METHOD_SYNCFS,
        )
    seen: set[int] = set()
    for root in roots:
        device = os.stat(root).st_dev
        if device in seen:
            continue
        seen.add(device)
        fd = os.open(str(root), os.O_RDONLY)
        try:
            if syncfs(fd) != 0:
                err = ctypes.get_errno()
                raise _flush_error(OSError(err, os.strerror(err)), root)
        finally:
            os.close(fd)
    return SyncReport(SYNC_METHOD_SYNCFS, files=0, directories=0, filesystems=len(seen))


def sync_tree(roots: list[Path], method: str, *, max_workers: int | None = None) -> SyncReport:
    """Flush every root; any failure fails the whole step and makes no durability claim."""
    normalized = require_sync_method(method)
    try:
        if normalized == SYNC_METHOD_SYNCFS:
            return _syncfs_tree(roots)
        workers = max_workers or min(MAX_SYNC_WORKERS, os.cpu_count() or 1)
        return _fsync_tree(roots, workers)
    except StorageIOError:
        raise
    except OSError as exc:
        raise _flush_error(exc, exc.filename or roots[0])


def sync_data_directory(data_directory: Path, method: str, *, max_workers: int | None = None) -> SyncReport:
    return sync_tree(sync_roots(data_directory), method, max_workers=max_workers)
