from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re

from initstore.domain.bootstrap_config import DirectoryPlan
from initstore.engine.errors import PathError
from initstore.engine.reason_codes import (
    DETAIL_KEY_CONTAINMENT,
    DETAIL_KEY_DRIVE_RELATIVE,
    DETAIL_KEY_EMPTY_PATH,
    DETAIL_KEY_RELATIVE_WAL,
)


@dataclass(frozen=True)
class ResolvedPaths:
    data_directory: Path
    wal_directory: Path | None


def _normalize(candidate: Path) -> Path:
    return Path(os.path.normpath(os.path.abspath(str(candidate))))


def normalize_data_path(raw: str, *, purpose: str = "data directory") -> Path:
    token = str(raw or "").strip()
    if not token:
        raise PathError(f"{purpose}: no data directory specified", detail_key=DETAIL_KEY_EMPTY_PATH, observed_value=raw)
    return _normalize(Path(token).expanduser())


def normalize_absolute_path(raw: str, *, purpose: str) -> Path:
    token = str(raw or "").strip()
    if not token:
        raise PathError(f"{purpose}: empty path", detail_key=DETAIL_KEY_EMPTY_PATH, observed_value=raw)
    candidate = Path(token)
    if os.name == "nt" and re.match(r"^[A-Za-z]:[^/\\]", token):
        raise PathError(
            f"{purpose}: drive-relative path is not allowed: {token}",
            detail_key=DETAIL_KEY_DRIVE_RELATIVE,
            observed_value=token,
        )
    if not candidate.is_absolute():
        raise PathError(
            f"{purpose} location must be an absolute path: {token}",
            detail_key=DETAIL_KEY_RELATIVE_WAL,
            observed_value=token,
        )
    return _normalize(candidate)


def is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def plan_paths(plan: DirectoryPlan) -> ResolvedPaths:
    """Resolve the data and WAL directories of a plan.

    The WAL location is checked first so a relative WAL path is rejected
    regardless of the data directory or the filesystem.
    """

    wal_directory: Path | None = None
    if plan.wal_directory is not None:
        wal_directory = normalize_absolute_path(plan.wal_directory, purpose="WAL directory")
    data_directory = normalize_data_path(plan.data_directory)

    if wal_directory is not None:
        real_data = Path(os.path.realpath(data_directory))
        real_wal = Path(os.path.realpath(wal_directory))
        if is_within(real_wal, real_data) or is_within(real_data, real_wal):
            raise PathError(
                f'WAL directory "{wal_directory}" must lie outside data directory "{data_directory}" '
                "and must not contain it",
                detail_key=DETAIL_KEY_CONTAINMENT,
                observed_value=str(wal_directory),
            )
    return ResolvedPaths(data_directory=data_directory, wal_directory=wal_directory)
