"""
TaxDesk — Bulk User Actions

Change role, status or department for a set of selected users.
preview_bulk_action() is a dry run: it reports per-user before/after values
without touching anything. apply_bulk_action() performs the same change,
logs one activity entry per changed user, and returns the same counts.
"""
from datetime import datetime

from portal.config import BULK_ACTION_TYPES, BULK_MAX_USERS, USER_ROLES, USER_STATUSES
from portal.db import log_activity


def selection_label(count: int) -> str:
    return f"{count} user selected" if count == 1 else f"{count} users selected"


def validate_action(action_type: str, value, user_ids=None) -> list:
    """Return a list of error messages; empty when the action can run."""
    errors = []
    if action_type not in BULK_ACTION_TYPES:
        errors.append(f"Invalid action type. Must be one of: {', '.join(BULK_ACTION_TYPES)}")
    elif action_type == "role" and value not in USER_ROLES:
        errors.append(f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")
    elif action_type == "status" and value not in USER_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(USER_STATUSES)}")
    elif action_type == "department" and not (isinstance(value, str) and value.strip()):
        errors.append("Department is required")
    if user_ids is not None:
        if not isinstance(user_ids, (list, tuple, set)) or not user_ids:
            errors.append("No users selected")
        elif not all(isinstance(uid, str) for uid in user_ids):
            errors.append("Invalid user id")
        elif len(user_ids) > BULK_MAX_USERS:
            errors.append(f"Too many users selected (max {BULK_MAX_USERS})")
    return errors


def _normalize_value(action_type: str, value):
    if action_type == "department":
        return (value or "").strip()
    return value


def preview_bulk_action(users: list, user_ids, action_type: str, value) -> dict:
    """Dry run over `users` (already tenant-scoped). Never mutates."""
    value = _normalize_value(action_type, value)
    by_id = {u.get("id"): u for u in users}
    ids = list(dict.fromkeys(user_ids))  # dedupe, keep order

    changes = []
    not_found = []
    for uid in ids:
        user = by_id.get(uid)
        if user is None:
            not_found.append(uid)
            continue
        current = user.get(action_type)
        changes.append({"id": uid, "name": user.get("name", ""), "field": action_type,
                        "from": current, "to": value, "willChange": current != value})

    will_change = sum(1 for c in changes if c["willChange"])
    return {
        "actionType": action_type, "value": value,
        "changes": changes, "notFound": not_found,
        "summary": f"Preview: {len(changes)} {'user' if len(changes) == 1 else 'users'}",
        "counts": {"total": len(ids), "willChange": will_change,
                   "unchanged": len(changes) - will_change, "notFound": len(not_found)},
    }


def apply_bulk_action(db: dict, users: list, user_ids, action_type: str, value,
                      performed_by: str = "System") -> dict:
    """Apply the action to `users` (records inside `db`). Caller saves the db."""
    preview = preview_bulk_action(users, user_ids, action_type, value)
    by_id = {u.get("id"): u for u in users}
    now = datetime.now().isoformat()

    for change in preview["changes"]:
        if not change["willChange"]:
            continue
        user = by_id[change["id"]]
        user[action_type] = change["to"]
        user["updatedAt"] = now
        if action_type == "status":
            user["isActive"] = change["to"] == "ACTIVE"
        log_activity(db, "bulk_update", userId=change["id"], field=action_type,
                     **{"from": change["from"], "to": change["to"]}, performedBy=performed_by)

    updated = preview["counts"]["willChange"]
    print(f"[Bulk] {action_type}={preview['value']} applied to {updated} users by {performed_by}")
    return {"success": True, "updated": updated, "counts": preview["counts"],
            "notFound": preview["notFound"]}
