"""Tests for gettext integration helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path

import polib
import pytest

import dealdesk
from dealdesk import i18n
from dealdesk.core.model import Deal
from dealdesk.ui.deal_list import DealListController
from dealdesk.ui.notices import NoticeRecorder

pytestmark = pytest.mark.unit

LOCALE_DIR = Path(dealdesk.__file__).resolve().parent / "locale"


def _make_catalog(base: Path, language: str) -> Path:
    directory = base / language / "LC_MESSAGES"
    directory.mkdir(parents=True)
    po_path = directory / "dealdesk.po"
    catalog = polib.POFile()
    catalog.metadata = {
        "Content-Type": "text/plain; charset=UTF-8",
        "Language": language,
        "Plural-Forms": "nplurals=2; plural=(n > 1);",
    }
    catalog.append(polib.POEntry(msgid="Deal updated", msgstr="Affaire mise à jour"))
    catalog.append(
        polib.POEntry(
            msgid="Imported {count} deal",
            msgid_plural="Imported {count} deals",
            msgstr_plural={0: "{count} affaire importée", 1: "{count} affaires importées"},
        )
    )
    catalog.save(str(po_path))
    return po_path


def test_install_falls_back_to_po_catalog(tmp_path: Path) -> None:
    _make_catalog(tmp_path, "fr")
    i18n.install(tmp_path, ["fr"])
    assert i18n.gettext("Deal updated") == "Affaire mise à jour"
    assert i18n.ngettext("Imported {count} deal", "Imported {count} deals", 3) == (
        "{count} affaires importées"
    )


def test_install_detects_language_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("LANGUAGE", "fr_FR")
    _make_catalog(tmp_path, "fr")
    i18n.install(tmp_path)
    assert i18n._("Deal updated") == "Affaire mise à jour"


def test_missing_catalog_leaves_messages_untranslated(tmp_path: Path) -> None:
    i18n.install(tmp_path, ["de"])
    assert i18n.gettext("Deal updated") == "Deal updated"
    assert i18n.ngettext("one", "many", 2) == "many"


def test_shipped_russian_catalog_translates_notices() -> None:
    i18n.install(LOCALE_DIR, ["ru"])
    notices = NoticeRecorder()

    async def delete(ids):
        return None

    controller = DealListController(
        [Deal(id=str(i)) for i in range(5)],
        update_deal=lambda deal_id, fields: None,
        delete_deals=delete,
        notify=notices,
    )
    for deal_id in ("0", "1", "2", "3", "4"):
        controller.select(deal_id, True)
    asyncio.run(controller.delete_selected())
    assert notices.last.title == "Сделки удалены"
    assert notices.last.description == "Удалено 5 сделок"
