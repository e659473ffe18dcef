"""
TaxDesk — Column Visibility

Which directory columns are shown, and therefore which fields are exported.
One ColumnVisibility per (user, table); it is the only place that answers
"which fields are visible".

Persistence:
  - Stored through a key/value store (get/set) under one fixed key.
  - Value is a JSON array of {"id": ..., "visible": ...} pairs.
  - Missing or unreadable value → defaults. Unknown ids in the stored value
    are ignored; columns absent from it keep their default.
  - save() is best-effort: failures are logged and the in-memory state wins.
"""
import copy as _copy
import json

from portal.config import DEFAULT_USER_COLUMNS, USER_COLUMNS_KEY


class ColumnVisibility:
    """Column id → visible flag, seeded from an injected default configuration."""

    def __init__(self, defaults: list = None, store=None, key: str = USER_COLUMNS_KEY):
        self.defaults = _copy.deepcopy(defaults if defaults is not None else DEFAULT_USER_COLUMNS)
        self.store = store
        self.key = key
        self.loaded_from_store = False
        self._visible = self._default_state()

    def _default_state(self) -> dict:
        return {c["id"]: bool(c.get("visible", True)) for c in self.defaults}

    # ── state access ──
    @property
    def state(self) -> dict:
        return dict(self._visible)

    def is_visible(self, column_id: str) -> bool:
        return self._visible.get(column_id, False)

    def get_visible(self) -> set:
        return {cid for cid, visible in self._visible.items() if visible}

    def visible_columns(self) -> list:
        """Visible column definitions in configured order."""
        return [c for c in self.defaults if self._visible.get(c["id"])]

    def as_list(self) -> list:
        return [{"id": c["id"], "label": c.get("label", c["id"]),
                 "visible": self._visible[c["id"]]} for c in self.defaults]

    def project(self, record: dict) -> dict:
        """Restrict a record to the visible fields (id always kept)."""
        out = {"id": record.get("id")} if "id" in record else {}
        for c in self.visible_columns():
            out[c["id"]] = record.get(c["id"])
        return out

    # ── transitions ──
    def toggle(self, column_id: str) -> dict:
        """Flip one column and save. Unknown ids are ignored."""
        if column_id not in self._visible:
            return self.state
        self._visible[column_id] = not self._visible[column_id]
        self.save()
        return self.state

    def reset(self) -> dict:
        self._visible = self._default_state()
        self.loaded_from_store = False
        self.save()
        return self.state

    # ── persistence ──
    def load(self) -> dict:
        """Load from the store, falling back to defaults on any problem."""
        self._visible = self._default_state()
        self.loaded_from_store = False
        if self.store is None:
            return self.state
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            print(f"[Columns] load failed for '{self.key}': {e}")
            return self.state
        restored = deserialize(raw, self._visible)
        if restored is not None:
            self._visible = restored
            self.loaded_from_store = True
        return self.state

    def save(self, state: dict = None) -> bool:
        """Persist the state. Never raises; returns whether the write succeeded."""
        if state is not None:
            for cid, visible in state.items():
                if cid in self._visible:
                    self._visible[cid] = bool(visible)
        if self.store is None:
            return False
        try:
            self.store.set(self.key, serialize(self._visible))
            return True
        except Exception as e:
            print(f"[Columns] save failed for '{self.key}': {e}")
            return False


# ============================================================
# SERIALIZATION
# ============================================================
def serialize(visible: dict) -> str:
    return json.dumps([{"id": cid, "visible": flag} for cid, flag in visible.items()])


def deserialize(raw, defaults: dict):
    """Merge a stored value onto defaults. None when the value is unusable."""
    if not raw:
        return None
    try:
        entries = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except (ValueError, TypeError):
        return None
    if not isinstance(entries, list):
        return None
    merged = dict(defaults)
    recognised = 0
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        cid, visible = entry.get("id"), entry.get("visible")
        if cid in merged and isinstance(visible, bool):
            merged[cid] = visible
            recognised += 1
    return merged if recognised else None


def user_columns(user_id: str) -> ColumnVisibility:
    """Load the directory column configuration for one admin user."""
    from portal.db import PreferenceStore
    columns = ColumnVisibility(DEFAULT_USER_COLUMNS, PreferenceStore(user_id), USER_COLUMNS_KEY)
    columns.load()
    return columns
