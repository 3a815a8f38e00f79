"""Canonical bootstrap reason-code registry.

Values in this module are the stable error classification surfaced to callers
and rendered by the command-line layer. Detail keys refine a reason code and
are pinned by tests.
"""

from __future__ import annotations

from typing import Final

# Sentinel used when a run finished without a blocking reason.
REASON_CODE_NONE: Final[str] = "none"

# Blocking reason codes.
BLOCKED_CONFIG_INVALID: Final[str] = "BLOCKED-CONFIG-INVALID"
BLOCKED_LOCALE_INVALID: Final[str] = "BLOCKED-LOCALE-INVALID"
BLOCKED_PATH_INVALID: Final[str] = "BLOCKED-PATH-INVALID"
BLOCKED_STATE_CONFLICT: Final[str] = "BLOCKED-STATE-CONFLICT"
BLOCKED_IO_FAILURE: Final[str] = "BLOCKED-IO-FAILURE"
BLOCKED_CAPABILITY_UNSUPPORTED: Final[str] = "BLOCKED-CAPABILITY-UNSUPPORTED"

# Warning reason codes.
WARN_SYNC_SKIPPED: Final[str] = "WARN-SYNC-SKIPPED"
WARN_AUTH_TRUST: Final[str] = "WARN-AUTH-TRUST"

CANONICAL_REASON_CODES: Final[tuple[str, ...]] = (
    BLOCKED_CONFIG_INVALID,
    BLOCKED_LOCALE_INVALID,
    BLOCKED_PATH_INVALID,
    BLOCKED_STATE_CONFLICT,
    BLOCKED_IO_FAILURE,
    BLOCKED_CAPABILITY_UNSUPPORTED,
)

# Detail keys: configuration.
DETAIL_OK: Final[str] = "ok"
DETAIL_KEY_ROLE_NAME_EMPTY: Final[str] = "role_name_empty"
DETAIL_KEY_ROLE_NAME_RESERVED: Final[str] = "role_name_reserved"
DETAIL_KEY_PROVIDER_UNKNOWN: Final[str] = "provider_unknown"
DETAIL_KEY_LOCALE_REQUIRED: Final[str] = "locale_required"
DETAIL_KEY_OPTION_COMBINATION: Final[str] = "option_combination"
DETAIL_KEY_ENCODING_UNKNOWN: Final[str] = "encoding_unknown"
DETAIL_KEY_ENCODING_NOT_SERVER: Final[str] = "encoding_not_server"
DETAIL_KEY_ENCODING_MISMATCH: Final[str] = "encoding_mismatch"
DETAIL_KEY_UNKNOWN_LANGUAGE: Final[str] = "unknown_language"
DETAIL_KEY_UNKNOWN_LOCALE: Final[str] = "unknown_locale"
DETAIL_KEY_ILLEGAL_COLLATOR_ARGUMENT: Final[str] = "illegal_collator_argument"
DETAIL_KEY_LOCALE_NAME_INVALID: Final[str] = "locale_name_invalid"
DETAIL_KEY_TEXT_SEARCH_UNKNOWN: Final[str] = "text_search_unknown"
DETAIL_KEY_AUTH_METHOD_UNKNOWN: Final[str] = "auth_method_unknown"
DETAIL_KEY_SETTING_SYNTAX: Final[str] = "setting_syntax"
DETAIL_KEY_SETTING_UNKNOWN: Final[str] = "setting_unknown"
DETAIL_KEY_SYNC_METHOD_UNKNOWN: Final[str] = "sync_method_unknown"
DETAIL_KEY_CONFIG_FILE_INVALID: Final[str] = "config_file_invalid"

# Detail keys: paths.
DETAIL_KEY_EMPTY_PATH: Final[str] = "empty_path"
DETAIL_KEY_RELATIVE_WAL: Final[str] = "relative_wal"
DETAIL_KEY_CONTAINMENT: Final[str] = "containment"
DETAIL_KEY_DRIVE_RELATIVE: Final[str] = "drive_relative"

# Detail keys: directory state.
DETAIL_KEY_MISSING_DATA_DIRECTORY: Final[str] = "missing_data_directory"
DETAIL_KEY_EXISTING_DATA_DIRECTORY: Final[str] = "existing_data_directory"
DETAIL_KEY_NON_EMPTY_DIRECTORY: Final[str] = "non_empty_directory"
DETAIL_KEY_NOT_INITIALIZED: Final[str] = "not_initialized"

# Detail keys: filesystem and platform.
DETAIL_KEY_ACCESS_FAILED: Final[str] = "access_failed"
DETAIL_KEY_CREATE_FAILED: Final[str] = "create_failed"
DETAIL_KEY_CHMOD_FAILED: Final[str] = "chmod_failed"
DETAIL_KEY_WRITE_FAILED: Final[str] = "write_failed"
DETAIL_KEY_FLUSH_FAILED: Final[str] = "flush_failed"
DETAIL_KEY_SYNCFS_UNAVAILABLE: Final[str] = "syncfs_unavailable"


def is_registered_reason_code(reason_code: str, *, allow_none: bool = True) -> bool:
    """Return True if the reason code is in the canonical registry."""

    normalized = reason_code.strip()
    if allow_none and normalized == REASON_CODE_NONE:
        return True
    return normalized in CANONICAL_REASON_CODES


# Process exit codes consumed by the command-line layer.
EXIT_CODES: Final[dict[str, int]] = {
    REASON_CODE_NONE: 0,
    BLOCKED_CONFIG_INVALID: 2,
    BLOCKED_LOCALE_INVALID: 2,
    BLOCKED_PATH_INVALID: 3,
    BLOCKED_STATE_CONFLICT: 4,
    BLOCKED_IO_FAILURE: 5,
    BLOCKED_CAPABILITY_UNSUPPORTED: 6,
}


# UX hints for operator-facing messages.
REASON_CODE_HINTS: Final[dict[str, str]] = {
    BLOCKED_STATE_CONFLICT: (
        "If you want to create a new data directory, either remove or empty the "
        "directory, or run initdb with a different target path. "
        "To flush an existing data directory use --sync-only."
    ),
    BLOCKED_IO_FAILURE: (
        "The data directory is in an unspecified state. "
        "Run initdb --sync-only to retry the flush, or remove the directory and start over."
    ),
    BLOCKED_CAPABILITY_UNSUPPORTED: (
        "This platform does not provide syncfs(2). Use --sync-method=fsync."
    ),
    WARN_SYNC_SKIPPED: (
        "Sync to disk skipped. "
        "The data directory might become corrupt if the operating system crashes."
    ),
    WARN_AUTH_TRUST: (
        "Enabling \"trust\" authentication for local connections. "
        "Change it by editing hba.conf or by using -A next time."
    ),
}
