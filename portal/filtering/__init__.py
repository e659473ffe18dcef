"""
TaxDesk — Directory Filter Evaluator

Combines the parsed search query with the multi-select role/status filters
and the created-date / active flags into one pass over the user records.

Rules:
  - Dimensions are AND-combined; values inside a multi-select are OR-combined.
  - An empty selection (or None) means "no restriction", never "match none".
  - A selected value no record carries simply matches nothing.
  - Output keeps input order. Same records + same FilterState → same result.

FilterState is immutable: the pill helpers at the bottom return new states.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Iterable, List, Optional

from portal.config import SEARCHABLE_FIELDS
from portal.search import ParsedQuery, parse, describe, matches, field_value


@dataclass(frozen=True)
class FilterState:
    search_text: str = ""
    selected_roles: frozenset = frozenset()
    selected_statuses: frozenset = frozenset()
    created_after: Optional[date] = None
    created_before: Optional[date] = None
    is_active: Optional[bool] = None

    @property
    def query(self) -> ParsedQuery:
        return parse(self.search_text)


@dataclass
class FilterResult:
    records: list = field(default_factory=list)
    total_count: int = 0
    filtered_count: int = 0
    selected_count: int = 0

    def to_dict(self) -> dict:
        return {"records": self.records, "totalCount": self.total_count,
                "filteredCount": self.filtered_count, "selectedCount": self.selected_count}


EMPTY_FILTER = FilterState()


# ============================================================
# DATE HELPERS
# ============================================================
def to_date(value) -> Optional[date]:
    """Lenient date coercion: date, datetime or ISO string. Anything else → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


# ============================================================
# PREDICATES
# ============================================================
def _in_selection(value: str, selection: frozenset) -> bool:
    return not selection or value in selection


def _in_date_range(record, state: FilterState) -> bool:
    if state.created_after is None and state.created_before is None:
        return True
    created = to_date(record.get("createdAt") if isinstance(record, dict)
                      else getattr(record, "createdAt", None))
    if created is None:
        return False
    if state.created_after is not None and created < state.created_after:
        return False
    if state.created_before is not None and created > state.created_before:
        return False
    return True


def _active_flag(record) -> bool:
    value = record.get("isActive") if isinstance(record, dict) else getattr(record, "isActive", None)
    return value is not False


def record_matches(record, state: FilterState, query: ParsedQuery,
                   searchable_fields=SEARCHABLE_FIELDS) -> bool:
    if not _in_selection(field_value(record, "role"), state.selected_roles):
        return False
    if not _in_selection(field_value(record, "status"), state.selected_statuses):
        return False
    if state.is_active is not None and _active_flag(record) != state.is_active:
        return False
    if not _in_date_range(record, state):
        return False
    return matches(query, record, searchable_fields)


# ============================================================
# EVALUATION
# ============================================================
def evaluate(records: Iterable, state: FilterState = EMPTY_FILTER,
             searchable_fields=SEARCHABLE_FIELDS, selected_ids=None) -> FilterResult:
    """Filter records in one pass and count total / filtered / still-selected."""
    query = state.query
    selected = set(selected_ids or ())
    total = 0
    kept = []
    selected_count = 0
    for record in records:
        total += 1
        if record_matches(record, state, query, searchable_fields):
            kept.append(record)
            if selected and field_value(record, "id") in selected:
                selected_count += 1
    return FilterResult(records=kept, total_count=total,
                        filtered_count=len(kept), selected_count=selected_count)


# ============================================================
# REQUEST PARAMS → FILTER STATE
# ============================================================
def _split_values(values) -> frozenset:
    """Accept a list of params, each possibly comma-separated. Blanks dropped."""
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    out = set()
    for v in values:
        for part in str(v).split(","):
            part = part.strip()
            if part:
                out.add(part)
    return frozenset(out)


def _to_bool(value) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in ("true", "1", "yes"):
        return True
    if v in ("false", "0", "no"):
        return False
    return None


def filter_state_from_params(search: str = None, roles=None, statuses=None,
                             created_after=None, created_before=None,
                             is_active=None) -> FilterState:
    return FilterState(
        search_text=search or "",
        selected_roles=_split_values(roles),
        selected_statuses=_split_values(statuses),
        created_after=to_date(created_after),
        created_before=to_date(created_before),
        is_active=_to_bool(is_active),
    )


# ============================================================
# FILTER PILLS
# ============================================================
def has_active_filters(state: FilterState) -> bool:
    return bool(state.search_text.strip() or state.selected_roles or state.selected_statuses
                or state.created_after or state.created_before or state.is_active is not None)


def active_filter_pills(state: FilterState) -> List[dict]:
    """One pill per removable filter item, in a stable display order."""
    pills = []
    query = state.query
    if not query.is_empty:
        pills.append({"kind": "search", "value": state.search_text.strip(),
                      "label": f"Search: {describe(query)}"})
    for role in sorted(state.selected_roles):
        pills.append({"kind": "role", "value": role, "label": f"Role: {role}"})
    for status in sorted(state.selected_statuses):
        pills.append({"kind": "status", "value": status, "label": f"Status: {status}"})
    if state.created_after:
        pills.append({"kind": "created_after", "value": state.created_after.isoformat(),
                      "label": f"Created after: {state.created_after.isoformat()}"})
    if state.created_before:
        pills.append({"kind": "created_before", "value": state.created_before.isoformat(),
                      "label": f"Created before: {state.created_before.isoformat()}"})
    if state.is_active is not None:
        pills.append({"kind": "is_active", "value": state.is_active,
                      "label": "Active only" if state.is_active else "Inactive only"})
    return pills


def remove_filter(state: FilterState, kind: str, value=None) -> FilterState:
    """Drop one pill. Unknown kinds leave the state unchanged."""
    if kind == "search":
        return replace(state, search_text="")
    if kind == "role":
        return replace(state, selected_roles=state.selected_roles - {value})
    if kind == "status":
        return replace(state, selected_statuses=state.selected_statuses - {value})
    if kind == "created_after":
        return replace(state, created_after=None)
    if kind == "created_before":
        return replace(state, created_before=None)
    if kind == "is_active":
        return replace(state, is_active=None)
    return state


def clear_filters() -> FilterState:
    return EMPTY_FILTER
