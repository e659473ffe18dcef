"""Pytest configuration and shared fixtures."""

import os
import tempfile

# Must be set before any portal module is imported
os.environ["PERSIST_DATA"] = "false"
os.environ["JWT_SECRET"] = "taxdesk-test-signing-key-0123456789abcdef"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="taxdesk-test-")
os.environ.pop("DATABASE_URL", None)

import pytest

from portal.db import get_db, reset_db, save_db


TENANT = "tenant-acme"
OTHER_TENANT = "tenant-globex"


def make_user(uid, name, email, role="STAFF", status="ACTIVE", tenant=TENANT, **extra):
    user = {"id": uid, "name": name, "email": email, "role": role, "status": status,
            "tenantId": tenant, "phone": "", "company": "Acme Tax LLP", "department": "",
            "isActive": status == "ACTIVE", "createdAt": "2025-01-15T09:00:00"}
    user.update(extra)
    return user


@pytest.fixture(autouse=True)
def clean_db():
    """Start every test with an empty store."""
    reset_db()
    yield
    reset_db()


@pytest.fixture
def records():
    return [
        make_user("1", "John Doe", "john@gmail.com", role="ADMIN", status="ACTIVE"),
        make_user("2", "Jane Lee", "jane@yahoo.com", role="LEAD", status="INACTIVE"),
    ]


@pytest.fixture
def directory():
    """A small tenant directory plus one user from another tenant."""
    return [
        make_user("u1", "John Doe", "john@gmail.com", role="ADMIN", department="Tax",
                  phone="555-0100", createdAt="2025-01-10T08:00:00"),
        make_user("u2", "Jane Lee", "jane@yahoo.com", role="LEAD", status="INACTIVE",
                  department="Audit", createdAt="2025-03-02T12:30:00"),
        make_user("u3", "Maria Gomez", "maria@gmail.com", role="STAFF", department="Payroll",
                  company="Gomez & Sons", createdAt="2025-06-20T16:45:00"),
        make_user("u4", "Sam Smith", "sam@acme.io", role="CLIENT", status="SUSPENDED",
                  company="Smith, Jones and Co", createdAt="2025-09-01T10:00:00"),
        make_user("x1", "Other Admin", "other@gmail.com", role="ADMIN", tenant=OTHER_TENANT),
    ]


@pytest.fixture
def seeded(directory):
    db = get_db()
    db["users"].extend(directory)
    save_db(db)
    return db


class MemoryStore:
    """Key/value store kept in a dict."""

    def __init__(self):
        self.data = {}
        self.writes = 0

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.writes += 1
        self.data[key] = value


class BrokenStore:
    """Store whose every read and write fails."""

    def get(self, key):
        raise IOError("storage unavailable")

    def set(self, key, value):
        raise IOError("storage unavailable")


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def broken_store():
    return BrokenStore()
