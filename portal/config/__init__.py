"""
TaxDesk — Configuration & Constants
Environment variables, feature flags, role matrix, directory columns and export settings.
"""
import os
from pathlib import Path

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.environ.get("DATA_DIR", str(BASE_DIR / "data")))

DB_PATH = DATA_DIR / "db.json"

# ============================================================
# FEATURE FLAGS
# ============================================================
PERSIST_DATA = os.environ.get("PERSIST_DATA", "true").lower() == "true"

if PERSIST_DATA:
    DATA_DIR.mkdir(parents=True, exist_ok=True)

# ============================================================
# AUTH
# ============================================================
JWT_SECRET = os.environ.get("JWT_SECRET", os.urandom(32).hex())
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.environ.get("JWT_EXPIRY_HOURS", "72"))

# ============================================================
# ROLE MATRIX
# ============================================================
# Level gates admin routes: bulk actions need ADMIN, directory reads need LEAD+.
ROLE_LEVELS = {
    "CLIENT":      {"title": "Client",       "level": 0},
    "STAFF":       {"title": "Staff",        "level": 1},
    "TEAM_MEMBER": {"title": "Team Member",  "level": 1},
    "LEAD":        {"title": "Team Lead",    "level": 2},
    "ADMIN":       {"title": "Administrator", "level": 3},
}
USER_ROLES = tuple(ROLE_LEVELS)
DEFAULT_ROLE = "CLIENT"
DIRECTORY_MIN_LEVEL = 2
BULK_ACTION_MIN_LEVEL = 3

USER_STATUSES = ("ACTIVE", "INACTIVE", "SUSPENDED")
MEMBER_STATUSES = ("ACTIVE", "INACTIVE", "ON_LEAVE")

# ============================================================
# USER DIRECTORY
# ============================================================
SEARCHABLE_FIELDS = ("name", "email", "phone", "company", "department")

# Order here is the render/export order.
DEFAULT_USER_COLUMNS = [
    {"id": "name",        "label": "Name",        "visible": True},
    {"id": "email",       "label": "Email",       "visible": True},
    {"id": "role",        "label": "Role",        "visible": True},
    {"id": "status",      "label": "Status",      "visible": True},
    {"id": "company",     "label": "Company",     "visible": True},
    {"id": "department",  "label": "Department",  "visible": False},
    {"id": "phone",       "label": "Phone",       "visible": False},
    {"id": "createdAt",   "label": "Created",     "visible": True},
    {"id": "lastLoginAt", "label": "Last Login",  "visible": False},
]
USER_COLUMNS_KEY = "admin-users-column-visibility"

# ============================================================
# EXPORT
# ============================================================
EXPORT_FORMATS = {
    "csv": {"delimiter": ",",  "media_type": "text/csv"},
    "tsv": {"delimiter": "\t", "media_type": "text/tab-separated-values"},
}
EXPORT_ENTITY_USERS = "users"

# ============================================================
# BULK ACTIONS
# ============================================================
BULK_ACTION_TYPES = ("role", "status", "department")
BULK_MAX_USERS = int(os.environ.get("BULK_MAX_USERS", "1000"))

# ============================================================
# BILLING
# ============================================================
BILLING_INVOICE_LIMIT = 50
DEFAULT_CURRENCY = "USD"
