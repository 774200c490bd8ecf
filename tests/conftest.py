"""Shared fixtures for the DealDesk test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from dealdesk import i18n
from dealdesk.config import MemoryPreferenceStore
from dealdesk.core.model import Deal, deal_from_dict
from dealdesk.ui.notices import NoticeRecorder


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path_factory, monkeypatch):
    """Keep logs out of the home directory and notices untranslated."""
    monkeypatch.setenv("DEALDESK_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    monkeypatch.setenv("LANGUAGE", "en")
    yield
    i18n.install(tmp_path_factory.getbasetemp(), ["en"])


@pytest.fixture
def make_deal() -> Callable[..., Deal]:
    """Return a factory building deals from keyword fields."""

    def factory(deal_id: str, **fields: Any) -> Deal:
        return deal_from_dict({"id": deal_id, **fields})

    return factory


@pytest.fixture
def store() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture
def notices() -> NoticeRecorder:
    return NoticeRecorder()
