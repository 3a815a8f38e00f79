from __future__ import annotations

import errno

import pytest

from initstore.engine import reason_codes
from initstore.engine.errors import (
    BootstrapError,
    CapabilityError,
    ConfigError,
    LocaleError,
    PathError,
    StateError,
    StorageIOError,
)


@pytest.mark.datadir
def test_every_blocking_code_has_an_exit_code():
    for code in reason_codes.CANONICAL_REASON_CODES:
        assert reason_codes.is_registered_reason_code(code)
        assert reason_codes.EXIT_CODES[code] > 1
    assert reason_codes.is_registered_reason_code("none")
    assert not reason_codes.is_registered_reason_code("none", allow_none=False)
    assert not reason_codes.is_registered_reason_code("BLOCKED-UNKNOWN")


@pytest.mark.datadir
@pytest.mark.parametrize(
    ("error_class", "exit_code"),
    [(ConfigError, 2), (LocaleError, 2), (PathError, 3), (StateError, 4), (StorageIOError, 5), (CapabilityError, 6)],
)
def test_error_classes_map_to_exit_codes(error_class, exit_code):
    error = error_class("boom", detail_key="k")
    assert isinstance(error, BootstrapError)
    assert error.exit_code == exit_code


@pytest.mark.datadir
def test_locale_error_is_a_config_error():
    assert issubclass(LocaleError, ConfigError)


@pytest.mark.datadir
def test_storage_error_from_os_error_names_path_and_cause():
    cause = OSError(errno.ENOSPC, "No space left on device")
    error = StorageIOError.from_os_error(cause, action="write file", path="/srv/store/x", detail_key="write_failed")
    assert error.message == 'could not write file "/srv/store/x": No space left on device'
    assert error.observed_value == "/srv/store/x"
    assert error.__cause__ is cause
