"""
TaxDesk — Directory Export
Delimited-text (CSV/TSV) serialization of filtered records, projected
through the visible columns, plus the download filename convention:
  <entity>-<YYYY-MM-DD>-<scope>-<count>.<ext>   scope ∈ all | filtered | selected
"""
import csv
import io
from datetime import date

from portal.config import EXPORT_FORMATS, EXPORT_ENTITY_USERS
from portal.filtering import has_active_filters
from portal.search import field_value


# ============================================================
# FIELD ENCODING
# ============================================================
def format_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return "; ".join(format_value(v) for v in value)
    return str(value)


def _raw(record, key: str):
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def escape_field(value, delimiter: str = ",") -> str:
    """Quote a field when it holds the delimiter, a quote or a line break; double inner quotes."""
    text = format_value(value)
    if delimiter in text or '"' in text or "\n" in text or "\r" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def to_delimited(records: list, columns: list, delimiter: str = ",") -> str:
    """Header of column labels, then one line per record in column order."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow([format_value(c.get("label", c["id"])) for c in columns])
    for record in records:
        writer.writerow([format_value(_raw(record, c["id"])) for c in columns])
    return buf.getvalue()


# ============================================================
# SCOPE & FILENAME
# ============================================================
def export_scope(filter_state, selected_ids=None) -> str:
    if selected_ids:
        return "selected"
    if filter_state is not None and has_active_filters(filter_state):
        return "filtered"
    return "all"


def export_filename(entity: str, scope: str, count: int, fmt: str = "csv", on: date = None) -> str:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    day = (on or date.today()).isoformat()
    return f"{entity}-{day}-{scope}-{count}.{fmt}"


# ============================================================
# EXPORT BUILDER
# ============================================================
def build_export(filtered_records: list, filter_state, columns, selected_ids=None,
                 fmt: str = "csv", entity: str = EXPORT_ENTITY_USERS, on: date = None) -> dict:
    """Serialize filtered records (or the selected subset of them) for download.

    `columns` is a ColumnVisibility; only its visible columns are written."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    fmt_info = EXPORT_FORMATS[fmt]

    scope = export_scope(filter_state, selected_ids)
    rows = filtered_records
    if scope == "selected":
        selected = set(selected_ids)
        rows = [r for r in filtered_records if field_value(r, "id") in selected]

    content = to_delimited(rows, columns.visible_columns(), fmt_info["delimiter"])
    return {
        "content": content,
        "filename": export_filename(entity, scope, len(rows), fmt, on),
        "media_type": fmt_info["media_type"],
        "scope": scope,
        "count": len(rows),
    }
