"""Initial configuration files materialized inside a new data directory."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from initstore.domain.bootstrap_config import ValidatedConfig
from initstore.engine.errors import StorageIOError
from initstore.engine.reason_codes import DETAIL_KEY_WRITE_FAILED
from initstore.infrastructure.datadir_layout import (
    STORE_MAJOR_VERSION,
    auth_config_path,
    server_config_path,
    version_file_path,
)


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_server_config(config: ValidatedConfig) -> str:
    """Render store.conf; a -c/--set value replaces the derived value of the same parameter."""
    categories = config.locale.categories
    values = {
        "timezone": config.timezone,
        "log_timezone": config.timezone,
        "lc_messages": categories.lc_messages,
        "lc_monetary": categories.lc_monetary,
        "lc_numeric": categories.lc_numeric,
        "lc_time": categories.lc_time,
        "default_text_search_config": config.text_search_config,
    }
    extra = sorted(name for name in config.settings if name not in values)
    values.update(config.settings)
    lines = [
        "# Server configuration written by initdb",
        f"# created {datetime.now(timezone.utc).isoformat(timespec='seconds')}",
        "",
    ]
    lines.extend(f"{name} = {_quote(values[name])}" for name in values if name not in extra)
    if extra:
        lines.append("")
        lines.append("# settings given with -c/--set")
        lines.extend(f"{name} = {_quote(values[name])}" for name in extra)
    return "\n".join(lines) + "\n"


def render_auth_config(config: ValidatedConfig) -> str:
    method = config.auth_method
    rows = [
        ("local", "all", "all", "", method),
        ("host", "all", "all", "127.0.0.1/32", method),
        ("host", "all", "all", "::1/128", method),
    ]
    lines = ["# TYPE  DATABASE        USER            ADDRESS                 METHOD"]
    for kind, database, user, address, row_method in rows:
        lines.append(f"{kind:<7} {database:<15} {user:<15} {address:<23} {row_method}".rstrip())
    return "\n".join(lines) + "\n"


def write_bootstrap_content(
    data_directory: Path,
    config: ValidatedConfig,
    *,
    progress: Callable[[str], None] | None = None,
) -> list[Path]:
    emit = progress or (lambda _msg: None)
    documents = (
        (version_file_path(data_directory), STORE_MAJOR_VERSION + "\n"),
        (server_config_path(data_directory), render_server_config(config)),
        (auth_config_path(data_directory), render_auth_config(config)),
    )
    written: list[Path] = []
    emit("creating configuration files ... ok")
    for path, text in documents:
        try:
            with path.open("x", encoding="utf-8", newline="\n") as handle:
                handle.write(text)
        except OSError as exc:
            raise StorageIOError.from_os_error(exc, action="write file", path=path, detail_key=DETAIL_KEY_WRITE_FAILED)
        written.append(path)
    return written
