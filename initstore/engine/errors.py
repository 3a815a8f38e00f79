"""Bootstrap error taxonomy.

Every failure carries a stable reason code, a detail key refining it, and the
offending value so that callers can render it verbatim.
"""

from __future__ import annotations

from typing import Any

from initstore.engine.reason_codes import (
    BLOCKED_CAPABILITY_UNSUPPORTED,
    BLOCKED_CONFIG_INVALID,
    BLOCKED_IO_FAILURE,
    BLOCKED_LOCALE_INVALID,
    BLOCKED_PATH_INVALID,
    BLOCKED_STATE_CONFLICT,
    EXIT_CODES,
)


class BootstrapError(Exception):
    reason_code: str = BLOCKED_CONFIG_INVALID

    def __init__(self, message: str, *, detail_key: str, observed_value: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail_key = detail_key
        self.observed_value = observed_value

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.reason_code, 1)


class ConfigError(BootstrapError):
    reason_code = BLOCKED_CONFIG_INVALID


class LocaleError(ConfigError):
    reason_code = BLOCKED_LOCALE_INVALID


class PathError(BootstrapError):
    reason_code = BLOCKED_PATH_INVALID


class StateError(BootstrapError):
    reason_code = BLOCKED_STATE_CONFLICT


class StorageIOError(BootstrapError):
    reason_code = BLOCKED_IO_FAILURE

    @classmethod
    def from_os_error(cls, exc: OSError, *, action: str, path: Any, detail_key: str) -> "StorageIOError":
        reason = exc.strerror or str(exc)
        error = cls(f'could not {action} "{path}": {reason}', detail_key=detail_key, observed_value=str(path))
        error.__cause__ = exc
        return error


class CapabilityError(BootstrapError):
    reason_code = BLOCKED_CAPABILITY_UNSUPPORTED
