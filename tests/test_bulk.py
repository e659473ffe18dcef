"""Tests for bulk user actions and their dry-run preview."""

import copy

from portal.bulk import selection_label, validate_action, preview_bulk_action, apply_bulk_action


def test_selection_label():
    assert selection_label(1) == "1 user selected"
    assert selection_label(0) == "0 users selected"
    assert selection_label(42) == "42 users selected"


def test_validate_action():
    assert validate_action("role", "LEAD", ["u1"]) == []
    assert validate_action("status", "INACTIVE") == []
    assert validate_action("department", "  Audit ", ["u1"]) == []
    assert validate_action("delete", "x")[0].startswith("Invalid action type")
    assert validate_action("role", "OWNER")[0].startswith("Invalid role")
    assert validate_action("status", "ON_LEAVE")[0].startswith("Invalid status")
    assert validate_action("department", "   ") == ["Department is required"]
    assert validate_action("role", "LEAD", []) == ["No users selected"]


def test_preview_does_not_mutate(directory):
    before = copy.deepcopy(directory)
    preview = preview_bulk_action(directory, ["u1", "u2", "missing"], "role", "LEAD")
    assert directory == before
    assert preview["summary"] == "Preview: 2 users"
    assert preview["counts"] == {"total": 3, "willChange": 1, "unchanged": 1, "notFound": 1}
    assert preview["notFound"] == ["missing"]
    change = preview["changes"][0]
    assert (change["id"], change["from"], change["to"], change["willChange"]) == ("u1", "ADMIN", "LEAD", True)


def test_preview_single_user_summary(directory):
    preview = preview_bulk_action(directory, ["u3", "u3"], "department", " Tax ")
    assert preview["summary"] == "Preview: 1 user"
    assert preview["value"] == "Tax"
    assert preview["counts"]["total"] == 1


def test_apply_updates_users_and_logs(directory):
    db = {"activity_log": []}
    result = apply_bulk_action(db, directory, ["u1", "u2", "u3"], "status", "INACTIVE", performed_by="boss@acme.io")
    assert result["updated"] == 2
    assert result["counts"]["unchanged"] == 1
    by_id = {u["id"]: u for u in directory}
    assert by_id["u1"]["status"] == "INACTIVE"
    assert by_id["u1"]["isActive"] is False
    assert by_id["u3"]["status"] == "INACTIVE"
    assert [e["userId"] for e in db["activity_log"]] == ["u1", "u3"]
    assert db["activity_log"][0]["from"] == "ACTIVE"
    assert db["activity_log"][0]["performedBy"] == "boss@acme.io"


def test_validate_action_rejects_non_string_ids():
    assert validate_action("role", "LEAD", [["u1"]]) == ["Invalid user id"]
    assert validate_action("role", "LEAD", ["u1", 7]) == ["Invalid user id"]
    assert validate_action("role", "LEAD", ["u1", "u2"]) == []
