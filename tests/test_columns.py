"""Tests for column visibility state and its persistence."""

import json

from portal.config import DEFAULT_USER_COLUMNS, USER_COLUMNS_KEY
from portal.columns import ColumnVisibility, serialize, deserialize, user_columns


def default_visible():
    return {c["id"] for c in DEFAULT_USER_COLUMNS if c["visible"]}


def test_defaults_without_store():
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS)
    assert columns.load() == {c["id"]: c["visible"] for c in DEFAULT_USER_COLUMNS}
    assert columns.get_visible() == default_visible()
    assert not columns.loaded_from_store


def test_toggle_round_trips_through_store(memory_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    before = columns.load()
    columns.toggle("department")

    reloaded = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    after = reloaded.load()
    assert reloaded.loaded_from_store
    assert after["department"] is not before["department"]
    assert {k: v for k, v in after.items() if k != "department"} == \
        {k: v for k, v in before.items() if k != "department"}


def test_toggle_twice_restores_visibility(memory_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    original = columns.is_visible("email")
    columns.toggle("email")
    assert columns.is_visible("email") is not original
    columns.toggle("email")
    assert columns.is_visible("email") is original
    assert memory_store.writes == 2


def test_stored_value_is_list_of_id_visible_pairs(memory_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    columns.toggle("phone")
    stored = json.loads(memory_store.data[USER_COLUMNS_KEY])
    assert stored[0] == {"id": "name", "visible": True}
    assert {"id": "phone", "visible": True} in stored


def test_unknown_column_toggle_is_ignored(memory_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    state = columns.toggle("favouriteColour")
    assert state == columns.state
    assert memory_store.writes == 0


def test_corrupt_value_falls_back_to_defaults(memory_store):
    for raw in ("not json", "{}", "[]", '[{"id": "bogus", "visible": false}]', '[1, 2]'):
        memory_store.data[USER_COLUMNS_KEY] = raw
        columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
        columns.load()
        assert columns.get_visible() == default_visible()
        assert not columns.loaded_from_store


def test_partial_value_merges_onto_defaults(memory_store):
    memory_store.data[USER_COLUMNS_KEY] = json.dumps(
        [{"id": "email", "visible": False}, {"id": "retired", "visible": True},
         {"id": "role", "visible": "yes"}])
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    columns.load()
    assert columns.loaded_from_store
    assert columns.get_visible() == default_visible() - {"email"}


def test_broken_store_never_raises(broken_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, broken_store)
    assert columns.load() == ColumnVisibility(DEFAULT_USER_COLUMNS).state
    columns.toggle("department")
    assert "department" in columns.get_visible()
    assert columns.save() is False


def test_reset_restores_defaults_and_saves(memory_store):
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, memory_store)
    columns.toggle("name")
    columns.toggle("phone")
    columns.reset()
    assert columns.get_visible() == default_visible()
    assert deserialize(memory_store.data[USER_COLUMNS_KEY], columns.state) == columns.state


def test_defaults_are_not_mutated():
    defaults = [{"id": "a", "label": "A", "visible": True}, {"id": "b", "label": "B", "visible": False}]
    columns = ColumnVisibility(defaults)
    columns.toggle("b")
    assert defaults[1]["visible"] is False
    assert columns.get_visible() == {"a", "b"}


def test_visible_columns_follow_configured_order():
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS)
    columns.toggle("phone")
    ids = [c["id"] for c in columns.visible_columns()]
    assert ids == [c["id"] for c in DEFAULT_USER_COLUMNS if c["visible"] or c["id"] == "phone"]


def test_project_keeps_only_visible_fields():
    columns = ColumnVisibility([{"id": "name", "label": "Name", "visible": True},
                                {"id": "phone", "label": "Phone", "visible": False}])
    record = {"id": "u1", "name": "Ann", "phone": "555", "passwordHash": "x"}
    assert columns.project(record) == {"id": "u1", "name": "Ann"}


def test_serialize_deserialize():
    state = {"name": True, "phone": False}
    assert deserialize(serialize(state), {"name": False, "phone": True}) == state
    assert deserialize(None, state) is None


def test_user_columns_persist_in_preferences():
    columns = user_columns("admin-1")
    assert not columns.loaded_from_store
    columns.toggle("department")
    assert "department" in user_columns("admin-1").get_visible()
    assert "department" not in user_columns("admin-2").get_visible()
