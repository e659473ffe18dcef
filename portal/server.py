"""
TaxDesk — Admin Portal API
User directory search/filter/export, column preferences, bulk actions,
team members and billing invoices. Every admin route is tenant-scoped.
"""

import os
from typing import List, Optional

from fastapi import FastAPI, Form, Query, Body, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from portal.config import (
    DIRECTORY_MIN_LEVEL, BULK_ACTION_MIN_LEVEL, SEARCHABLE_FIELDS, EXPORT_ENTITY_USERS
)
from portal.db import get_db, save_db, tenant_records, log_activity, DATABASE_URL
from portal.auth import (
    authenticate, create_jwt, public_user, get_current_user, require_role
)
from portal.filtering import (
    evaluate, filter_state_from_params, active_filter_pills, has_active_filters
)
from portal.columns import user_columns
from portal.export import build_export
from portal.bulk import validate_action, preview_bulk_action, apply_bulk_action, selection_label
from portal.members import validate_member, build_member, update_member
from portal.invoices import list_tenant_invoices

VERSION = "1.4.0"

app = FastAPI(title="TaxDesk Admin Portal", version=VERSION)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"])


# ============================================================
# HELPERS
# ============================================================
def _directory_users(user: dict) -> list:
    db = get_db()
    return [public_user(u) for u in tenant_records(db, "users", user["tenantId"])]


def _filter_directory(user: dict, q, role, status, created_after, created_before, is_active, selected):
    state = filter_state_from_params(q, role, status, created_after, created_before, is_active)
    selected_ids = [s for s in (selected or []) if s]
    result = evaluate(_directory_users(user), state, SEARCHABLE_FIELDS, selected_ids)
    return state, selected_ids, result


# ============================================================
# SYSTEM & AUTH ROUTES
# ============================================================
@app.get("/api/health")
async def health():
    return {"status": "ok", "product": "TaxDesk Admin Portal", "version": VERSION,
            "storage": "postgres" if DATABASE_URL else "file"}

@app.post("/api/auth/login")
async def login(email: str = Form(...), password: str = Form(...)):
    user = authenticate(email, password)
    if not user:
        raise HTTPException(401, "Invalid email or password")
    return {"token": create_jwt(user), "user": public_user(user)}


# ============================================================
# USER DIRECTORY ROUTES
# ============================================================
@app.get("/api/admin/users")
async def list_users(
    q: str = "",
    role: List[str] = Query(default=[]),
    status: List[str] = Query(default=[]),
    created_after: Optional[str] = None,
    created_before: Optional[str] = None,
    is_active: Optional[str] = None,
    selected: List[str] = Query(default=[]),
    user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL)),
):
    state, selected_ids, result = _filter_directory(
        user, q, role, status, created_after, created_before, is_active, selected)
    columns = user_columns(user["id"])
    query = state.query
    return {
        "users": [columns.project(u) for u in result.records],
        "columns": columns.as_list(),
        "counts": {"total": result.total_count, "filtered": result.filtered_count,
                   "selected": result.selected_count},
        "selectionLabel": selection_label(result.selected_count) if selected_ids else None,
        "filters": active_filter_pills(state),
        "hasActiveFilters": has_active_filters(state),
        "query": {"operator": query.operator, "operand": query.operand},
    }

@app.get("/api/admin/users/export")
async def export_users(
    q: str = "",
    role: List[str] = Query(default=[]),
    status: List[str] = Query(default=[]),
    created_after: Optional[str] = None,
    created_before: Optional[str] = None,
    is_active: Optional[str] = None,
    selected: List[str] = Query(default=[]),
    fmt: str = Query("csv", alias="format"),
    user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL)),
):
    state, selected_ids, result = _filter_directory(
        user, q, role, status, created_after, created_before, is_active, selected)
    try:
        export = build_export(result.records, state, user_columns(user["id"]),
                              selected_ids, fmt.lower(), EXPORT_ENTITY_USERS)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return Response(export["content"], media_type=export["media_type"],
                    headers={"Content-Disposition": f'attachment; filename="{export["filename"]}"',
                             "X-Export-Scope": export["scope"],
                             "X-Export-Count": str(export["count"])})


# ============================================================
# COLUMN VISIBILITY ROUTES
# ============================================================
@app.get("/api/admin/users/columns")
async def get_columns(user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    columns = user_columns(user["id"])
    return {"columns": columns.as_list(), "visible": sorted(columns.get_visible()),
            "source": "saved" if columns.loaded_from_store else "defaults"}

@app.post("/api/admin/users/columns/{column_id}/toggle")
async def toggle_column(column_id: str, user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    columns = user_columns(user["id"])
    if column_id not in columns.state:
        raise HTTPException(404, f"Unknown column: {column_id}")
    columns.toggle(column_id)
    return {"columns": columns.as_list(), "visible": sorted(columns.get_visible())}

@app.post("/api/admin/users/columns/reset")
async def reset_columns(user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    columns = user_columns(user["id"])
    columns.reset()
    return {"columns": columns.as_list(), "visible": sorted(columns.get_visible())}


# ============================================================
# BULK ACTIONS ROUTES
# ============================================================
def _bulk_args(payload: dict):
    user_ids = payload.get("userIds") or []
    action_type = payload.get("actionType", "")
    value = payload.get("value")
    errors = validate_action(action_type, value, user_ids)
    if errors:
        raise HTTPException(400, "; ".join(errors))
    return user_ids, action_type, value

@app.post("/api/admin/users/bulk/preview")
async def bulk_preview(payload: dict = Body(...), user: dict = Depends(require_role(BULK_ACTION_MIN_LEVEL))):
    user_ids, action_type, value = _bulk_args(payload)
    return preview_bulk_action(_directory_users(user), user_ids, action_type, value)

@app.post("/api/admin/users/bulk/apply")
async def bulk_apply(payload: dict = Body(...), user: dict = Depends(require_role(BULK_ACTION_MIN_LEVEL))):
    user_ids, action_type, value = _bulk_args(payload)
    db = get_db()
    users = tenant_records(db, "users", user["tenantId"])
    result = apply_bulk_action(db, users, user_ids, action_type, value, performed_by=user["email"])
    save_db(db)
    return result


# ============================================================
# TEAM MEMBERS ROUTES
# ============================================================
@app.get("/api/admin/entities/team-members")
async def list_team_members(user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    members = tenant_records(get_db(), "team_members", user["tenantId"])
    return {"teamMembers": members, "total": len(members)}

@app.post("/api/admin/entities/team-members", status_code=201)
async def create_team_member(payload: dict = Body(...), user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    errors = validate_member(payload)
    if errors:
        raise HTTPException(422, {"errors": errors})
    db = get_db()
    member = build_member(payload, user["tenantId"], created_by=user["email"])
    db["team_members"].append(member)
    log_activity(db, "team_member_created", memberId=member["id"], performedBy=user["email"])
    save_db(db)
    return {"success": True, "teamMember": member}

@app.patch("/api/admin/entities/team-members/{mid}")
async def edit_team_member(mid: str, payload: dict = Body(...), user: dict = Depends(require_role(DIRECTORY_MIN_LEVEL))):
    db = get_db()
    for i, m in enumerate(db["team_members"]):
        if m["id"] == mid and m.get("tenantId") == user["tenantId"]:
            merged = update_member(m, payload)
            errors = validate_member(merged)
            if errors:
                raise HTTPException(422, {"errors": errors})
            db["team_members"][i] = merged
            log_activity(db, "team_member_updated", memberId=mid, performedBy=user["email"])
            save_db(db)
            return {"success": True, "teamMember": merged}
    raise HTTPException(404, "Team member not found")


# ============================================================
# BILLING ROUTES
# ============================================================
@app.get("/api/billing/invoices")
async def billing_invoices(user: dict = Depends(get_current_user)):
    return {"success": True, "invoices": list_tenant_invoices(get_db(), user["tenantId"])}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    print(f"Starting TaxDesk Admin Portal v{VERSION} on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
