"""
Persistence port for users.

The service layer depends only on this Protocol. ``UserRepository`` provides
the sqlite3 implementation; unit tests inject a mock that conforms to it.
"""
from datetime import datetime
from typing import Optional, Protocol

from tasktrack.models.page import Sort
from tasktrack.models.user import User, UserRole


class UserRepositoryPort(Protocol):
    # Lookups by key
    def find_by_id(self, user_id: int) -> Optional[User]: ...

    def find_by_username(self, user_name: str) -> Optional[User]: ...

    def find_by_email(self, email: str) -> Optional[User]: ...

    # Existence checks
    def exists_by_id(self, user_id: int) -> bool: ...

    def exists_by_username(self, user_name: str) -> bool: ...

    def exists_by_email(self, email: str) -> bool: ...

    # Listings
    def find_all(self) -> list[User]: ...

    def find_page(self, page: int, size: int, sort: Sort) -> tuple[list[User], int]:
        """Return the requested page and the total number of users."""
        ...

    def find_by_active(self, active: bool) -> list[User]: ...

    def find_by_role(self, role: UserRole) -> list[User]: ...

    def find_by_active_and_role(self, active: bool, role: UserRole) -> list[User]: ...

    def search_by_full_name(self, fragment: str) -> list[User]: ...

    def find_created_between(self, start: datetime, end: datetime) -> list[User]: ...

    def find_created_after(self, since: datetime) -> list[User]: ...

    def find_updated_between(self, start: datetime, end: datetime) -> list[User]: ...

    # Writes
    def save(self, user: User) -> User:
        """Insert when ``user.id`` is None, otherwise update. Returns the stored row."""
        ...

    def delete_by_id(self, user_id: int) -> None: ...

    # Aggregates
    def count_by_role(self, role: UserRole) -> int: ...

    def count_by_active(self, active: bool) -> int: ...
