from __future__ import annotations

import errno
import os
from pathlib import Path
import time
from typing import Callable, TypeVar
import uuid

T = TypeVar("T")


def is_retryable_replace_error(exc: OSError) -> bool:
    return getattr(exc, "errno", None) in {errno.EACCES, errno.EPERM, errno.EBUSY}


def bounded_retry(fn: Callable[[], T], attempts: int = 5, backoff_ms: int = 50) -> T:
    last_error: Exception | None = None
    for attempt in range(attempts):
        try:
            return fn()
        except OSError as exc:
            last_error = exc
            if attempt == attempts - 1 or not is_retryable_replace_error(exc):
                raise
            time.sleep(backoff_ms / 1000.0)
    if last_error is not None:
        raise last_error
    raise RuntimeError("bounded_retry failed without exception")


def fsync_dir(path: Path) -> None:
    """fsync a directory entry; errors propagate (EINVAL/EBADF on platforms that refuse directory fsync are ignored)."""
    fd = os.open(str(path), os.O_RDONLY)
    try:
        os.fsync(fd)
    except OSError as exc:
        if exc.errno not in (errno.EINVAL, errno.EBADF):
            raise
    finally:
        os.close(fd)


def _full_write(fd: int, data: bytes) -> None:
    while data:
        written = os.write(fd, data)
        data = data[written:]


def safe_replace(tmp: Path, target: Path, *, attempts: int = 5, backoff_ms: int = 50) -> None:
    def _replace() -> None:
        os.replace(str(tmp), str(target))

    bounded_retry(_replace, attempts=attempts, backoff_ms=backoff_ms)
    fsync_dir(target.parent)


def atomic_write_bytes(path: Path, data: bytes, *, mode: int = 0o600, exclusive: bool = False) -> None:
    """Write data via a same-directory temp file, fsync it, and rename it into place.

    With exclusive=True an existing target is never replaced (FileExistsError).
    """
    temp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    fd = os.open(str(temp_path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    try:
        try:
            os.fchmod(fd, mode)
            _full_write(fd, data)
            os.fsync(fd)
        finally:
            os.close(fd)
        if exclusive:
            os.link(str(temp_path), str(path))
            os.unlink(str(temp_path))
            fsync_dir(path.parent)
        else:
            safe_replace(temp_path, path)
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


def atomic_write_text(path: Path, text: str, newline_lf: bool = True, *, mode: int = 0o600) -> None:
    payload = text.replace("\r\n", "\n") if newline_lf else text
    atomic_write_bytes(path, payload.encode("utf-8"), mode=mode)
