"""Bootstrap a data directory, or durably flush one that already exists.

Full initialization runs validation, path planning and the state guard before
the first filesystem mutation. Any failure raises a BootstrapError subclass and
leaves whatever was created in place; there is no rollback and no retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from initstore.domain.bootstrap_config import (
    SYNC_METHOD_FSYNC,
    BootstrapConfig,
    DirectoryPlan,
    ValidatedConfig,
    profile_for,
)
from initstore.domain.config_validator import validate_config
from initstore.domain.settings import DEFAULT_AUTH_METHOD
from initstore.engine.errors import ConfigError
from initstore.engine.reason_codes import DETAIL_KEY_OPTION_COMBINATION, WARN_AUTH_TRUST, WARN_SYNC_SKIPPED
from initstore.infrastructure.bootstrap_content import write_bootstrap_content
from initstore.infrastructure.control_file import ControlFileRecord, record_from_config, write_control_file
from initstore.infrastructure.directory_builder import build_tree
from initstore.infrastructure.durability import SyncReport, require_sync_method, sync_data_directory
from initstore.infrastructure.path_contract import ResolvedPaths, normalize_data_path, plan_paths
from initstore.infrastructure.permissions import apply_profile, restricted_umask
from initstore.infrastructure.state_guard import DirectoryState, require_initializable, require_initialized

Progress = Callable[[str], None]


@dataclass(frozen=True)
class InitRequest:
    config: BootstrapConfig
    plan: DirectoryPlan
    sync_method: str = SYNC_METHOD_FSYNC
    sync_only: bool = False
    no_sync: bool = False


@dataclass
class InitResult:
    data_directory: Path
    wal_directory: Path | None
    prior_state: DirectoryState
    config: ValidatedConfig | None = None
    record: ControlFileRecord | None = None
    sync_report: SyncReport | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def synced(self) -> bool:
        return self.sync_report is not None


def _noop(_message: str) -> None:
    return None


def initialize_data_directory(
    config: BootstrapConfig,
    plan: DirectoryPlan,
    *,
    sync_method: str = SYNC_METHOD_FSYNC,
    no_sync: bool = False,
    progress: Progress | None = None,
) -> InitResult:
    emit = progress or _noop

    validated = validate_config(config)
    method = sync_method if no_sync else require_sync_method(sync_method)
    paths: ResolvedPaths = plan_paths(plan)
    primary, _wal = require_initializable(paths)
    profile = profile_for(validated.allow_group_access)

    with restricted_umask(profile):
        build_tree(paths, progress=emit)
        write_bootstrap_content(paths.data_directory, validated, progress=emit)
        extra = (paths.wal_directory,) if paths.wal_directory is not None else ()
        apply_profile(paths.data_directory, profile, extra_roots=extra)
        record = record_from_config(validated)
        write_control_file(paths.data_directory, record, profile)
        emit("writing control file ... ok")

    result = InitResult(
        data_directory=paths.data_directory,
        wal_directory=paths.wal_directory,
        prior_state=primary.state,
        config=validated,
        record=record,
    )
    if validated.auth_method == DEFAULT_AUTH_METHOD and config.auth_method is None:
        result.warnings.append(WARN_AUTH_TRUST)

    if no_sync:
        result.warnings.append(WARN_SYNC_SKIPPED)
        return result

    emit("syncing data to disk ...")
    result.sync_report = sync_data_directory(paths.data_directory, method)
    emit("syncing data to disk ... ok")
    return result


def sync_only_data_directory(
    data_directory: str,
    *,
    sync_method: str = SYNC_METHOD_FSYNC,
    progress: Progress | None = None,
) -> InitResult:
    """Flush an initialized data directory without touching its contents."""
    emit = progress or _noop

    target = normalize_data_path(data_directory)
    method = require_sync_method(sync_method)
    inspection = require_initialized(target)

    emit("syncing data to disk ...")
    report = sync_data_directory(target, method)
    emit("syncing data to disk ... ok")
    return InitResult(
        data_directory=target,
        wal_directory=None,
        prior_state=inspection.state,
        sync_report=report,
    )


def run_bootstrap(request: InitRequest, *, progress: Progress | None = None) -> InitResult:
    if request.sync_only and request.no_sync:
        raise ConfigError(
            "options -S/--sync-only and -N/--no-sync cannot be used together",
            detail_key=DETAIL_KEY_OPTION_COMBINATION,
            observed_value="sync_only+no_sync",
        )
    if request.sync_only:
        return sync_only_data_directory(
            request.plan.data_directory,
            sync_method=request.sync_method,
            progress=progress,
        )
    return initialize_data_directory(
        request.config,
        request.plan,
        sync_method=request.sync_method,
        no_sync=request.no_sync,
        progress=progress,
    )
