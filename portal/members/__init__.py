"""
TaxDesk — Team Members
Validation and record building for the team-member create/edit form.
"""
import re, uuid
import copy as _copy
from datetime import datetime

from portal.config import MEMBER_STATUSES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = {
    "name": "Team member name is required",
    "email": "Email is required",
    "title": "Job title is required",
    "department": "Department is required",
}

MEMBER_DEFAULTS = {
    "status": "ACTIVE",
    "phone": "",
    "specialties": [],
    "certifications": [],
    "availability": "9am-5pm",
    "notes": "",
}

EDITABLE_FIELDS = tuple(REQUIRED_FIELDS) + tuple(MEMBER_DEFAULTS)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_member(data: dict) -> dict:
    """Field → error message. Empty dict when valid."""
    errors = {}
    for field, message in REQUIRED_FIELDS.items():
        if _blank(data.get(field)):
            errors[field] = message
    email = str(data.get("email") or "").strip()
    if "email" not in errors and not EMAIL_RE.match(email):
        errors["email"] = "Invalid email format"
    status = data.get("status") or MEMBER_DEFAULTS["status"]
    if status not in MEMBER_STATUSES:
        errors["status"] = f"Invalid status. Must be one of: {', '.join(MEMBER_STATUSES)}"
    for field in ("specialties", "certifications"):
        if data.get(field) is not None and not isinstance(data[field], list):
            errors[field] = f"{field.capitalize()} must be a list"
    return errors


def _clean(data: dict) -> dict:
    out = {}
    for field in EDITABLE_FIELDS:
        if field in data:
            value = data[field]
            out[field] = value.strip() if isinstance(value, str) else value
    if isinstance(out.get("email"), str):
        out["email"] = out["email"].lower()
    return out


def build_member(data: dict, tenant_id: str, created_by: str = "system") -> dict:
    """New team-member record from validated form data."""
    now = datetime.now().isoformat()
    member = {**_copy.deepcopy(MEMBER_DEFAULTS), **{k: v for k, v in _clean(data).items() if v is not None}}
    member.update({
        "id": "TM-" + str(uuid.uuid4())[:8].upper(),
        "tenantId": tenant_id,
        "createdAt": now, "updatedAt": now,
        "createdBy": created_by,
    })
    return member


def update_member(existing: dict, changes: dict) -> dict:
    """Merged record for validation; the caller writes it back when valid."""
    merged = {**existing, **{k: v for k, v in _clean(changes).items() if v is not None}}
    merged["updatedAt"] = datetime.now().isoformat()
    return merged
