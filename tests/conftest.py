"""Pytest configuration for initstore tests."""
from __future__ import annotations

from typing import Any, Callable

import pytest

from initstore.domain.bootstrap_config import BootstrapConfig, LocaleCategories


@pytest.fixture(autouse=True)
def _neutral_locale_environment(monkeypatch: pytest.MonkeyPatch):
    """Pin locale and timezone variables so defaults do not depend on the host."""
    for name in ("LC_COLLATE", "LC_CTYPE", "LC_MESSAGES", "LC_MONETARY", "LC_NUMERIC", "LC_TIME", "LANG", "TZ"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("INITSTORE_DATA", raising=False)
    monkeypatch.delenv("INITSTORE_ERROR_LOG_DIR", raising=False)
    monkeypatch.setenv("LC_ALL", "C")
    yield


@pytest.fixture
def make_config() -> Callable[..., BootstrapConfig]:
    def _make(**overrides: Any) -> BootstrapConfig:
        values: dict[str, Any] = {"superuser": "storeadmin", "categories": LocaleCategories()}
        values.update(overrides)
        return BootstrapConfig(**values)

    return _make
