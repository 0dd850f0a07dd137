"""
Domain model (plain Python dataclass) representing a User row from the DB.
This is the internal representation used across service and repository layers.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    DEVELOPER = "DEVELOPER"
    TESTER = "TESTER"


@dataclass
class User:
    user_name: str
    email: str
    full_name: str
    role: UserRole
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "User":
        """Build a User from a sqlite3.Row object."""
        return cls(
            id=row["id"],
            user_name=row["user_name"],
            email=row["email"],
            full_name=row["full_name"],
            role=UserRole(row["role"]),
            active=bool(row["active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
