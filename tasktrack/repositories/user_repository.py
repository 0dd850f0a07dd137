"""
Repository layer for User persistence.
All SQL for the `users` table lives here.
"""
import sqlite3
from typing import Optional
from datetime import datetime, timezone
import logging

from tasktrack.core.exceptions import DuplicateUserError
from tasktrack.core.logging_config import log_db_timing
from tasktrack.models.page import Sort, SortDirection
from tasktrack.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Domain property -> column. Only these may appear in ORDER BY.
SORT_COLUMNS = {
    "id": "id",
    "user_name": "user_name",
    "email": "email",
    "full_name": "full_name",
    "role": "role",
    "active": "active",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


def to_db_timestamp(value: datetime) -> str:
    """Normalise a datetime to the UTC ISO-8601 text stored in the table."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _escape_like(fragment: str) -> str:
    return (
        fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )


class UserRepository:
    """sqlite3 implementation of ``UserRepositoryPort``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Store the database connection for query execution."""
        logger.trace("Initializing UserRepository")
        self._conn = conn

    def _fetch_one(self, sql: str, params: tuple) -> Optional[User]:
        row = self._conn.execute(sql, params).fetchone()
        return User.from_row(row) if row else None

    def _fetch_all(self, sql: str, params: tuple = ()) -> list[User]:
        rows = self._conn.execute(sql, params).fetchall()
        return [User.from_row(r) for r in rows]

    def _exists(self, sql: str, params: tuple) -> bool:
        return self._conn.execute(sql, params).fetchone() is not None

    def _count(self, sql: str, params: tuple) -> int:
        return int(self._conn.execute(sql, params).fetchone()[0])

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @log_db_timing
    def find_by_id(self, user_id: int) -> Optional[User]:
        """Return a user by id (active or not) or None if missing."""
        logger.trace("Fetching user by id=%s", user_id)
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    @log_db_timing
    def find_by_username(self, user_name: str) -> Optional[User]:
        logger.trace("Fetching user by user_name=%s", user_name)
        return self._fetch_one(
            "SELECT * FROM users WHERE user_name = ?", (user_name,)
        )

    @log_db_timing
    def find_by_email(self, email: str) -> Optional[User]:
        logger.trace("Fetching user by email=%s", email)
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    @log_db_timing
    def exists_by_id(self, user_id: int) -> bool:
        return self._exists("SELECT 1 FROM users WHERE id = ?", (user_id,))

    @log_db_timing
    def exists_by_username(self, user_name: str) -> bool:
        return self._exists(
            "SELECT 1 FROM users WHERE user_name = ?", (user_name,)
        )

    @log_db_timing
    def exists_by_email(self, email: str) -> bool:
        return self._exists("SELECT 1 FROM users WHERE email = ?", (email,))

    @log_db_timing
    def find_all(self) -> list[User]:
        """Return every user, including deactivated ones."""
        logger.trace("Listing all users")
        return self._fetch_all("SELECT * FROM users ORDER BY id")

    @log_db_timing
    def find_page(self, page: int, size: int, sort: Sort) -> tuple[list[User], int]:
        """Return one page of users ordered by *sort* and the total row count."""
        column = SORT_COLUMNS.get(sort.property)
        if column is None:
            raise ValueError(f"Unsupported sort property: {sort.property}")
        direction = "DESC" if sort.direction == SortDirection.DESC else "ASC"
        order_by = f"{column} {direction}"
        if column != "id":
            # stable ordering across pages when the sort key has duplicates
            order_by += ", id ASC"

        logger.trace("Listing users page=%s size=%s order_by=%s", page, size, order_by)
        items = self._fetch_all(
            f"SELECT * FROM users ORDER BY {order_by} LIMIT ? OFFSET ?",
            (size, page * size),
        )
        total = self._count("SELECT COUNT(*) FROM users", ())
        return items, total

    @log_db_timing
    def find_by_active(self, active: bool) -> list[User]:
        logger.trace("Listing users active=%s", active)
        return self._fetch_all(
            "SELECT * FROM users WHERE active = ? ORDER BY id", (int(active),)
        )

    @log_db_timing
    def find_by_role(self, role: UserRole) -> list[User]:
        logger.trace("Listing users role=%s", role.value)
        return self._fetch_all(
            "SELECT * FROM users WHERE role = ? ORDER BY id", (role.value,)
        )

    @log_db_timing
    def find_by_active_and_role(self, active: bool, role: UserRole) -> list[User]:
        return self._fetch_all(
            "SELECT * FROM users WHERE active = ? AND role = ? ORDER BY id",
            (int(active), role.value),
        )

    @log_db_timing
    def search_by_full_name(self, fragment: str) -> list[User]:
        """Case-insensitive 'contains' match on full_name."""
        logger.trace("Searching users full_name~%s", fragment)
        return self._fetch_all(
            "SELECT * FROM users WHERE full_name LIKE ? ESCAPE '\\' "
            "ORDER BY full_name, id",
            (f"%{_escape_like(fragment)}%",),
        )

    @log_db_timing
    def find_created_between(self, start: datetime, end: datetime) -> list[User]:
        return self._fetch_all(
            "SELECT * FROM users WHERE created_at BETWEEN ? AND ? ORDER BY created_at, id",
            (to_db_timestamp(start), to_db_timestamp(end)),
        )

    @log_db_timing
    def find_created_after(self, since: datetime) -> list[User]:
        return self._fetch_all(
            "SELECT * FROM users WHERE created_at > ? ORDER BY created_at, id",
            (to_db_timestamp(since),),
        )

    @log_db_timing
    def find_updated_between(self, start: datetime, end: datetime) -> list[User]:
        return self._fetch_all(
            "SELECT * FROM users WHERE updated_at BETWEEN ? AND ? ORDER BY updated_at, id",
            (to_db_timestamp(start), to_db_timestamp(end)),
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    def save(self, user: User) -> User:
        """
        Insert the user when it has no id yet, otherwise update the row.
        Timestamps are owned here: both are set on insert, and only
        updated_at is refreshed on update.
        """
        now = to_db_timestamp(datetime.now(tz=timezone.utc))
        try:
            if user.id is None:
                logger.info("Creating user record user_name=%s", user.user_name)
                cursor = self._conn.execute(
                    """
                    INSERT INTO users
                        (user_name, email, full_name, role, active, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user.user_name,
                        user.email,
                        user.full_name,
                        user.role.value,
                        int(user.active),
                        now,
                        now,
                    ),
                )
                user_id = cursor.lastrowid
            else:
                logger.info("Updating user record id=%s", user.id)
                self._conn.execute(
                    """
                    UPDATE users
                    SET user_name  = ?,
                        email      = ?,
                        full_name  = ?,
                        role       = ?,
                        active     = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        user.user_name,
                        user.email,
                        user.full_name,
                        user.role.value,
                        int(user.active),
                        now,
                        user.id,
                    ),
                )
                user_id = user.id
        except sqlite3.IntegrityError as exc:
            duplicate = self._duplicate_from_integrity_error(exc, user)
            if duplicate is None:
                raise
            raise duplicate from exc
        return self.find_by_id(user_id)  # type: ignore[return-value]

    @log_db_timing
    def delete_by_id(self, user_id: int) -> None:
        """Permanently remove the row."""
        logger.warning("Deleting user row id=%s", user_id)
        self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @log_db_timing
    def count_by_role(self, role: UserRole) -> int:
        return self._count("SELECT COUNT(*) FROM users WHERE role = ?", (role.value,))

    @log_db_timing
    def count_by_active(self, active: bool) -> int:
        return self._count(
            "SELECT COUNT(*) FROM users WHERE active = ?", (int(active),)
        )

    @staticmethod
    def _duplicate_from_integrity_error(
        exc: sqlite3.IntegrityError, user: User
    ) -> Optional[DuplicateUserError]:
        """Map a unique-constraint violation onto DuplicateUserError."""
        message = str(exc)
        if "users.user_name" in message:
            return DuplicateUserError("user_name", user.user_name)
        if "users.email" in message:
            return DuplicateUserError("email", user.email)
        return None
