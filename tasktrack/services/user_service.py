"""
User lifecycle service: creation, retrieval, update, deactivation,
reactivation and permanent deletion.

Business rules enforced here:
- Usernames and emails are unique across all users, active or not.
  The username is checked before the email.
- Soft delete only flips ``active``; the row stays readable by id.
- Hard delete is permanent and has no compensating operation.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from tasktrack.core.exceptions import (
    DuplicateUserError,
    UserNotFoundError,
    ValidationFailedError,
)
from tasktrack.models.page import Page, Sort
from tasktrack.models.user import User, UserRole
from tasktrack.repositories.user_port import UserRepositoryPort

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, repository: UserRepositoryPort) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_user(self, candidate: User) -> User:
        """
        Persist a new user after checking username, then email, uniqueness.

        Raises:
            DuplicateUserError: if either value is already taken.
        """
        logger.info("Creating user user_name=%s", candidate.user_name)
        if self._repo.exists_by_username(candidate.user_name):
            logger.warning("Username already exists: %s", candidate.user_name)
            raise DuplicateUserError("user_name", candidate.user_name)
        if self._repo.exists_by_email(candidate.email):
            logger.warning("Email already exists: %s", candidate.email)
            raise DuplicateUserError("email", candidate.email)

        user = self._repo.save(candidate)
        logger.info("User created id=%s", user.id)
        return user

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_user_by_id(self, user_id: int) -> User:
        """Return the user (active or not) or raise UserNotFoundError."""
        user = self._repo.find_by_id(user_id)
        if user is None:
            logger.warning("User id=%s not found", user_id)
            raise UserNotFoundError(user_id)
        return user

    def get_user_by_username(self, user_name: str) -> User:
        user = self._repo.find_by_username(user_name)
        if user is None:
            logger.warning("User user_name=%s not found", user_name)
            raise UserNotFoundError(user_name, field="username")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self._repo.find_by_email(email)
        if user is None:
            logger.warning("User email=%s not found", email)
            raise UserNotFoundError(email, field="email")
        return user

    def list_users(self) -> list[User]:
        return self._repo.find_all()

    def list_users_page(self, page: int, size: int, sort: Sort) -> Page[User]:
        """Return one page of users. Bounds on page/size are checked by the caller."""
        logger.info(
            "Listing users page=%s size=%s sort=%s,%s",
            page,
            size,
            sort.property,
            sort.direction.value,
        )
        items, total = self._repo.find_page(page, size, sort)
        return Page(items=items, page=page, size=size, total_elements=total)

    def list_active_users(self) -> list[User]:
        return self._repo.find_by_active(True)

    def list_users_by_role(
        self, role: UserRole, active: Optional[bool] = None
    ) -> list[User]:
        if active is None:
            return self._repo.find_by_role(role)
        return self._repo.find_by_active_and_role(active, role)

    def search_users(self, name: str) -> list[User]:
        return self._repo.search_by_full_name(name)

    def list_users_created_between(self, start: datetime, end: datetime) -> list[User]:
        _check_range(start, end)
        return self._repo.find_created_between(start, end)

    def list_users_created_since(self, since: datetime) -> list[User]:
        return self._repo.find_created_after(since)

    def list_users_updated_between(self, start: datetime, end: datetime) -> list[User]:
        _check_range(start, end)
        return self._repo.find_updated_between(start, end)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_user(self, user_id: int, new_values: User) -> User:
        """
        Overwrite the mutable fields of an existing user.

        Username and email are re-checked for uniqueness only when they
        differ from the stored values, so keeping your own username never
        conflicts with yourself. created_at is never touched.
        """
        logger.info("Updating user id=%s", user_id)
        existing = self.get_user_by_id(user_id)

        if existing.user_name != new_values.user_name:
            if self._repo.exists_by_username(new_values.user_name):
                logger.warning("Username already exists: %s", new_values.user_name)
                raise DuplicateUserError("user_name", new_values.user_name)

        if existing.email != new_values.email:
            if self._repo.exists_by_email(new_values.email):
                logger.warning("Email already exists: %s", new_values.email)
                raise DuplicateUserError("email", new_values.email)

        existing.user_name = new_values.user_name
        existing.email = new_values.email
        existing.full_name = new_values.full_name
        existing.role = new_values.role
        existing.active = new_values.active

        updated = self._repo.save(existing)
        logger.info("User updated id=%s", user_id)
        return updated

    # ------------------------------------------------------------------
    # Soft delete / reactivate
    # ------------------------------------------------------------------

    def deactivate_user(self, user_id: int) -> User:
        """Soft delete: set active=False. Deactivating an inactive user is a no-op save."""
        logger.info("Deactivating user id=%s", user_id)
        return self._set_active(user_id, False)

    def reactivate_user(self, user_id: int) -> User:
        logger.info("Reactivating user id=%s", user_id)
        return self._set_active(user_id, True)

    def _set_active(self, user_id: int, active: bool) -> User:
        user = self.get_user_by_id(user_id)
        user.active = active
        saved = self._repo.save(user)
        logger.info("User id=%s active=%s", user_id, active)
        return saved

    # ------------------------------------------------------------------
    # Hard delete
    # ------------------------------------------------------------------

    def hard_delete_user(self, user_id: int) -> None:
        """Permanently remove the user. This cannot be undone."""
        logger.warning("HARD DELETING user id=%s", user_id)
        if not self._repo.exists_by_id(user_id):
            raise UserNotFoundError(user_id)
        self._repo.delete_by_id(user_id)
        logger.warning("User permanently deleted id=%s", user_id)

    # ------------------------------------------------------------------
    # Availability and statistics
    # ------------------------------------------------------------------

    def is_username_available(self, user_name: str) -> bool:
        return not self._repo.exists_by_username(user_name)

    def is_email_available(self, email: str) -> bool:
        return not self._repo.exists_by_email(email)

    def count_users_by_role(self, role: UserRole) -> int:
        return self._repo.count_by_role(role)

    def count_active_users(self) -> int:
        return self._repo.count_by_active(True)

    def user_stats(self) -> dict:
        """Active user count plus a per-role breakdown (every role present, zero included)."""
        return {
            "active_users": self.count_active_users(),
            "by_role": {role: self.count_users_by_role(role) for role in UserRole},
        }


def _as_utc(value: datetime) -> datetime:
    # naive datetimes are treated as UTC, matching how timestamps are stored
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_range(start: datetime, end: datetime) -> None:
    if _as_utc(start) > _as_utc(end):
        raise ValidationFailedError(
            "Start of range must not be after its end",
            {"start": "must be before or equal to end"},
        )
