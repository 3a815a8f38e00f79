"""Structured error events for failed bootstrap runs.

One JSON file per event (no appends), plus a same-directory index summarizing
events by reason code. Writing only happens when an error-log directory is
configured; the directory may not lie inside the data directory being created.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any
import uuid

from initstore.engine.errors import BootstrapError
from initstore.infrastructure.fs_atomic import atomic_write_text
from initstore.infrastructure.path_contract import is_within

EVENT_SCHEMA = "initstore.error-event.v1"
INDEX_SCHEMA = "initstore.error-index.v1"
ERROR_INDEX_FILE_NAME = "errors-index.json"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _normalize_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    return str(value)


def build_error_event(error: BootstrapError, *, command: str, data_directory: Path | None) -> dict[str, Any]:
    return {
        "schema": EVENT_SCHEMA,
        "eventId": uuid.uuid4().hex,
        "timestamp": _utc_now(),
        "level": "error",
        "reasonKey": error.reason_code,
        "detailKey": error.detail_key,
        "errorClass": type(error).__name__,
        "command": command,
        "dataDirectory": str(data_directory) if data_directory is not None else None,
        "message": error.message,
        "observedValue": _normalize_value(error.observed_value),
    }


def _load_index(index_path: Path) -> dict[str, Any]:
    try:
        existing = json.loads(index_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        existing = None
    if not isinstance(existing, dict) or existing.get("schema") != INDEX_SCHEMA:
        return {"schema": INDEX_SCHEMA, "updatedAt": _utc_now(), "totalEvents": 0, "byReason": {}, "lastEvent": {}}
    if not isinstance(existing.get("byReason"), dict):
        existing["byReason"] = {}
    if not isinstance(existing.get("totalEvents"), int):
        existing["totalEvents"] = 0
    return existing


def write_error_event(log_dir: Path, record: dict[str, Any], *, data_directory: Path | None = None) -> Path:
    if data_directory is not None and is_within(log_dir.resolve(), data_directory.resolve()):
        raise ValueError(f"error log directory {log_dir} must not lie inside the data directory")
    log_dir.mkdir(parents=True, exist_ok=True)
    day = datetime.now(timezone.utc).date().isoformat()
    target = log_dir / f"errors-{day}-{record['eventId']}.json"
    atomic_write_text(target, json.dumps(record, ensure_ascii=True) + "\n", mode=0o640)

    index_path = log_dir / ERROR_INDEX_FILE_NAME
    index = _load_index(index_path)
    reason = str(record.get("reasonKey", "unknown"))
    index["byReason"][reason] = int(index["byReason"].get(reason, 0)) + 1
    index["totalEvents"] = int(index["totalEvents"]) + 1
    index["updatedAt"] = _utc_now()
    index["lastEvent"] = {
        "timestamp": record.get("timestamp"),
        "reasonKey": reason,
        "detailKey": record.get("detailKey"),
        "command": record.get("command"),
        "file": target.name,
    }
    atomic_write_text(index_path, json.dumps(index, indent=2, ensure_ascii=True) + "\n", mode=0o640)
    return target


def safe_log_error(log_dir: Path | None, error: BootstrapError, *, command: str, data_directory: Path | None) -> dict[str, str]:
    """Record an error event without ever masking the original failure."""
    if log_dir is None:
        return {"status": "disabled"}
    try:
        record = build_error_event(error, command=command, data_directory=data_directory)
        path = write_error_event(log_dir, record, data_directory=data_directory)
    except (OSError, ValueError) as exc:
        return {"status": "log-failed", "error": str(exc)}
    return {"status": "logged", "path": str(path)}
