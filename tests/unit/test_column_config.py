"""Tests for column layout and width state."""

import json

import pytest

from dealdesk.columns import DEFAULT_COLUMNS
from dealdesk.config import (
    COLUMN_LAYOUT_KEY,
    COLUMN_WIDTHS_KEY,
    JsonFilePreferenceStore,
    MemoryPreferenceStore,
)
from dealdesk.core.fields import DealField
from dealdesk.errors import PreferenceStoreError, ResizeInProgressError, UnknownFieldError
from dealdesk.ui.column_config import ColumnConfigStore

pytestmark = pytest.mark.unit


class FailingStore:
    """Store whose reads and writes always fail."""

    def get(self, key):
        raise PreferenceStoreError(f"cannot read {key}")

    def set(self, key, value):
        raise PreferenceStoreError(f"cannot write {key}")


def fields(columns):
    return [c.field.value for c in columns]


def test_defaults():
    config = ColumnConfigStore()
    config.load()
    visible = fields(config.visible_columns())
    assert visible[:3] == ["project_name", "customer_name", "lead_name"]
    assert visible[-1] == "lead_owner"
    assert "region" not in visible
    assert config.width("project_name") == 200
    assert config.width("status") == 120
    assert config.width("nonsense") == 120


def test_toggle_visibility_persists_layout(store):
    config = ColumnConfigStore(store)
    config.load()
    assert config.toggle_visibility("region") is True
    assert "region" in fields(config.visible_columns())
    saved = store.get(COLUMN_LAYOUT_KEY)
    assert {"field": "region", "visible": True, "order": 8} in saved
    assert store.get(COLUMN_WIDTHS_KEY) is None


def test_layout_and_widths_survive_reload(store):
    config = ColumnConfigStore(store)
    config.load()
    config.set_visible("stage", False)
    config.move("lead_owner", -14)
    config.begin_resize("customer_name", 100)
    config.update_resize(150)
    assert config.end_resize() is True

    reloaded = ColumnConfigStore(store)
    reloaded.load()
    assert fields(reloaded.columns())[0] == "lead_owner"
    assert "stage" not in fields(reloaded.visible_columns())
    assert reloaded.width("customer_name") == 200


def test_reorder_places_given_fields_first(store):
    config = ColumnConfigStore(store)
    config.reorder(["probability", "stage"])
    order = fields(config.columns())
    assert order[:3] == ["probability", "stage", "project_name"]
    assert [c.order for c in config.columns()] == list(range(len(DEFAULT_COLUMNS)))


def test_reorder_rejects_duplicates_and_unknown_fields():
    config = ColumnConfigStore()
    with pytest.raises(ValueError):
        config.reorder(["stage", "stage"])
    with pytest.raises(UnknownFieldError):
        config.reorder(["colour"])
    with pytest.raises(UnknownFieldError):
        config.reorder(["status"])


def test_resize_applies_floor_live():
    config = ColumnConfigStore()
    config.begin_resize(DealField.PRIORITY, 500)
    assert config.resizing is DealField.PRIORITY
    assert config.update_resize(530) == 130
    assert config.width("priority") == 130
    assert config.update_resize(0) == 80
    assert config.width("priority") == 80


def test_only_one_resize_session(store):
    config = ColumnConfigStore(store)
    config.begin_resize("stage", 10)
    with pytest.raises(ResizeInProgressError) as info:
        config.begin_resize("priority", 10)
    assert info.value.active_field == "stage"


def test_end_resize_without_move_does_not_persist(store):
    config = ColumnConfigStore(store)
    config.begin_resize("stage", 10)
    assert config.end_resize() is False
    assert config.width("stage") == 120
    assert store.get(COLUMN_WIDTHS_KEY) is None
    assert config.resizing is None


def test_cancel_resize_restores_start_width(store):
    config = ColumnConfigStore(store)
    config.begin_resize("stage", 10)
    config.update_resize(90)
    config.cancel_resize()
    assert config.width("stage") == 120
    assert store.get(COLUMN_WIDTHS_KEY) is None
    config.begin_resize("stage", 0)


def test_update_without_session_is_ignored():
    config = ColumnConfigStore()
    assert config.update_resize(50) is None
    assert config.end_resize() is False


def test_malformed_persisted_data_falls_back_to_defaults(caplog):
    store = MemoryPreferenceStore(
        {COLUMN_LAYOUT_KEY: {"field": "stage"}, COLUMN_WIDTHS_KEY: {"stage": "wide"}}
    )
    config = ColumnConfigStore(store)
    with caplog.at_level("WARNING"):
        config.load()
    assert fields(config.columns()) == fields(DEFAULT_COLUMNS)
    assert config.width("stage") == 120
    assert "malformed" in caplog.text


def test_unknown_persisted_fields_are_ignored():
    store = MemoryPreferenceStore(
        {
            COLUMN_LAYOUT_KEY: [
                {"field": "colour", "visible": True, "order": 0},
                {"field": "region", "visible": True, "order": 0},
            ],
            COLUMN_WIDTHS_KEY: {"colour": 300, "region": 10, "stage": 210},
        }
    )
    config = ColumnConfigStore(store)
    config.load()
    assert fields(config.columns())[:2] == ["project_name", "region"]
    assert config.width("region") == 80
    assert config.width("stage") == 210


def test_store_failures_keep_working():
    config = ColumnConfigStore(FailingStore())
    config.load()
    config.toggle_visibility("region")
    config.begin_resize("stage", 0)
    config.update_resize(40)
    assert config.end_resize() is False
    assert config.width("stage") == 160


def test_reset_restores_defaults(store):
    config = ColumnConfigStore(store)
    config.set_visible("project_name", False)
    config.begin_resize("stage", 0)
    config.update_resize(100)
    config.end_resize()
    config.reset()
    assert fields(config.visible_columns())[0] == "project_name"
    assert config.width("stage") == 120
    assert store.get(COLUMN_WIDTHS_KEY)["stage"] == 120


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e999"])
def test_non_finite_saved_width_falls_back_to_defaults(tmp_path, caplog, literal):
    path = tmp_path / "preferences.json"
    path.write_text(
        json.dumps({COLUMN_WIDTHS_KEY: '{"project_name": %s, "stage": 150}' % literal}),
        encoding="utf-8",
    )
    config = ColumnConfigStore(JsonFilePreferenceStore(path))
    with caplog.at_level("WARNING"):
        config.load()
    assert config.width("project_name") == 200
    assert config.width("stage") == 120
    assert "Discarding malformed column widths" in caplog.text
