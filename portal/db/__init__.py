"""
TaxDesk — Database Layer
File-based JSON store with PostgreSQL upgrade path, plus the per-user
preference store used for UI state such as column visibility.
"""
import os, json, uuid
from datetime import datetime
from portal.config import DB_PATH, PERSIST_DATA

# ============================================================
# DATABASE URL (PostgreSQL optional, file-based default)
# ============================================================
DATABASE_URL = os.environ.get("DATABASE_URL")

# ============================================================
# EMPTY DB SCHEMA
# ============================================================
EMPTY_DB = {
    "users": [], "team_members": [], "invoices": [],
    "activity_log": [], "preferences": {},
}

def _fresh_db():
    """Return a fresh empty database."""
    return json.loads(json.dumps(EMPTY_DB))

def _ensure_collections(db):
    """Add any collection an older stored state is missing."""
    for k, v in EMPTY_DB.items():
        if k not in db:
            db[k] = type(v)()
    return db

# ============================================================
# FILE BACKEND
# ============================================================
_db_cache = None

def _file_load():
    global _db_cache
    if DB_PATH.exists():
        try:
            with open(DB_PATH) as f:
                _db_cache = _ensure_collections(json.load(f))
        except (json.JSONDecodeError, IOError):
            _db_cache = _fresh_db()
    else:
        _db_cache = _fresh_db()
    return _db_cache

def _file_save(db):
    global _db_cache
    _db_cache = db
    if PERSIST_DATA:
        with open(DB_PATH, "w") as f:
            json.dump(db, f, indent=2, default=str)

def _file_get():
    global _db_cache
    if _db_cache is None:
        return _file_load()
    return _db_cache

# ============================================================
# POSTGRES BACKEND (optional)
# ============================================================
_pg_pool = None

def _pg_connect():
    """Initialize PostgreSQL connection pool."""
    global _pg_pool
    if DATABASE_URL and not _pg_pool:
        try:
            import psycopg2
            from psycopg2.pool import SimpleConnectionPool
            _pg_pool = SimpleConnectionPool(1, 5, DATABASE_URL)
            _pg_init()
            print("[DB] Connected to PostgreSQL")
        except Exception as e:
            print(f"[DB] PostgreSQL connection failed: {e}, falling back to file")

def _pg_init():
    """Create the state table if it doesn't exist."""
    if not _pg_pool:
        return
    conn = _pg_pool.getconn()
    try:
        cur = conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS portal_state (
                id TEXT PRIMARY KEY DEFAULT 'main',
                data JSONB NOT NULL DEFAULT '{}',
                updated_at TIMESTAMP DEFAULT NOW()
            )
        """)
        cur.execute("INSERT INTO portal_state (id, data) VALUES ('main', %s) ON CONFLICT DO NOTHING",
                    (json.dumps(EMPTY_DB),))
        conn.commit()
    except Exception as e:
        print(f"[DB] pg_init error: {e}")
        conn.rollback()
    finally:
        _pg_pool.putconn(conn)

def _pg_load():
    if not _pg_pool:
        return _file_get()
    conn = _pg_pool.getconn()
    try:
        cur = conn.cursor()
        cur.execute("SELECT data FROM portal_state WHERE id='main'")
        row = cur.fetchone()
        return _ensure_collections(row[0]) if row else _fresh_db()
    finally:
        _pg_pool.putconn(conn)

def _pg_save(db):
    if not _pg_pool:
        return _file_save(db)
    conn = _pg_pool.getconn()
    try:
        cur = conn.cursor()
        cur.execute("UPDATE portal_state SET data=%s, updated_at=NOW() WHERE id='main'",
                    (json.dumps(db, default=str),))
        conn.commit()
    finally:
        _pg_pool.putconn(conn)

# ============================================================
# PUBLIC API
# ============================================================
if DATABASE_URL:
    print("[DB] Using PostgreSQL backend")
    _pg_connect()
    save_db = _pg_save
    get_db = _pg_load
else:
    print("[DB] Using file backend (db.json)")
    save_db = _file_save
    get_db = _file_get


def reset_db():
    """Wipe every collection. Used in testing."""
    save_db(_fresh_db())


def tenant_records(db: dict, collection: str, tenant_id: str) -> list:
    """Records of one collection that belong to a tenant."""
    return [r for r in db.get(collection, []) if r.get("tenantId") == tenant_id]


def log_activity(db: dict, action: str, **details) -> dict:
    """Append an entry to the activity log (caller saves)."""
    entry = {"id": str(uuid.uuid4())[:8], "action": action,
             "timestamp": datetime.now().isoformat(), **details}
    db.setdefault("activity_log", []).append(entry)
    return entry

# ============================================================
# PREFERENCE STORE
# ============================================================
class PreferenceStore:
    """Key/value store for one user's UI preferences.
    Values are strings (callers serialize); stored under db["preferences"][user_id]."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def get(self, key: str):
        prefs = get_db().get("preferences", {}).get(self.user_id, {})
        return prefs.get(key)

    def set(self, key: str, value: str):
        db = get_db()
        db.setdefault("preferences", {}).setdefault(self.user_id, {})[key] = value
        save_db(db)
