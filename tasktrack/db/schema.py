"""
SQL DDL statements for the application tables.

Everything is created with IF NOT EXISTS, so create_tables() is safe to
call on every startup.
"""
from tasktrack.db.database import get_connection
from tasktrack.models.user import UserRole

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_ROLE_VALUES = ", ".join(f"'{role.value}'" for role in UserRole)

# user_name / email uniqueness is enforced here as well as in the service,
# so two racing inserts cannot both succeed.
CREATE_USERS_TABLE = f"""
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_name   TEXT    NOT NULL UNIQUE,
    email       TEXT    NOT NULL UNIQUE,
    full_name   TEXT    NOT NULL,
    role        TEXT    NOT NULL CHECK(role IN ({_ROLE_VALUES})),
    active      INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL,
    CHECK(created_at <= updated_at)
);
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_active ON users(active)",
    "CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)",
    "CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at)",
]


def create_tables() -> None:
    """Create all tables and indexes."""
    conn = get_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(CREATE_USERS_TABLE)
        for ddl in CREATE_INDEXES:
            cursor.execute(ddl)
        conn.commit()
    finally:
        conn.close()
