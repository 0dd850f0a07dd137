"""Unit tests for UserService (mocked repository port)."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from conftest import make_user
from tasktrack.core.exceptions import (
    DuplicateUserError,
    UserNotFoundError,
    ValidationFailedError,
)
from tasktrack.models.page import Sort, SortDirection
from tasktrack.models.user import User, UserRole
from tasktrack.repositories.user_port import UserRepositoryPort
from tasktrack.services.user_service import UserService

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _stored(**overrides) -> User:
    values = dict(id=1, created_at=NOW, updated_at=NOW)
    values.update(overrides)
    return make_user(**values)


@pytest.fixture
def repo() -> MagicMock:
    mock = MagicMock(spec=UserRepositoryPort)
    mock.save.side_effect = lambda user: user
    return mock


@pytest.fixture
def service(repo: MagicMock) -> UserService:
    return UserService(repo)


class TestCreateUser:
    def test_saves_when_username_and_email_are_free(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.exists_by_username.return_value = False
        repo.exists_by_email.return_value = False
        repo.save.side_effect = None
        repo.save.return_value = _stored()

        result = service.create_user(make_user())

        assert result.id == 1
        assert result.active is True
        repo.save.assert_called_once()

    def test_duplicate_username_never_saves(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.exists_by_username.return_value = True

        with pytest.raises(DuplicateUserError) as excinfo:
            service.create_user(make_user())

        assert excinfo.value.field == "user_name"
        assert excinfo.value.value == "alice"
        assert "Username already exists" in excinfo.value.message
        repo.save.assert_not_called()

    def test_duplicate_email_never_saves(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.exists_by_username.return_value = False
        repo.exists_by_email.return_value = True

        with pytest.raises(DuplicateUserError) as excinfo:
            service.create_user(make_user())

        assert excinfo.value.field == "email"
        repo.save.assert_not_called()

    def test_username_conflict_reported_before_email(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.exists_by_username.return_value = True
        repo.exists_by_email.return_value = True

        with pytest.raises(DuplicateUserError) as excinfo:
            service.create_user(make_user())

        assert excinfo.value.field == "user_name"
        repo.exists_by_email.assert_not_called()


class TestGetUser:
    def test_returns_user_by_id(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = _stored()
        assert service.get_user_by_id(1).user_name == "alice"

    def test_inactive_user_still_returned(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored(active=False)
        assert service.get_user_by_id(1).active is False

    def test_missing_id_raises(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError) as excinfo:
            service.get_user_by_id(999)

        assert "999" in excinfo.value.message

    def test_missing_username_raises(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_username.return_value = None

        with pytest.raises(UserNotFoundError) as excinfo:
            service.get_user_by_username("ghost")

        assert excinfo.value.message == "User not found with username: ghost"

    def test_missing_email_raises(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_email.return_value = None

        with pytest.raises(UserNotFoundError):
            service.get_user_by_email("ghost@x.com")


class TestListUsers:
    def test_page_metadata(self, service: UserService, repo: MagicMock) -> None:
        repo.find_page.return_value = ([_stored(), _stored(id=2)], 5)
        sort = Sort("user_name", SortDirection.DESC)

        page = service.list_users_page(1, 2, sort)

        repo.find_page.assert_called_once_with(1, 2, sort)
        assert page.total_elements == 5
        assert page.total_pages == 3
        assert page.is_first is False
        assert page.is_last is False

    def test_active_users_use_storage_query(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_active.return_value = []
        service.list_active_users()
        repo.find_by_active.assert_called_once_with(True)

    def test_role_filter_with_and_without_active(
        self, service: UserService, repo: MagicMock
    ) -> None:
        service.list_users_by_role(UserRole.TESTER)
        repo.find_by_role.assert_called_once_with(UserRole.TESTER)

        service.list_users_by_role(UserRole.TESTER, active=False)
        repo.find_by_active_and_role.assert_called_once_with(False, UserRole.TESTER)

    def test_reversed_range_rejected(self, service: UserService, repo: MagicMock) -> None:
        with pytest.raises(ValidationFailedError):
            service.list_users_created_between(NOW, NOW - timedelta(days=1))
        repo.find_created_between.assert_not_called()

    def test_mixed_naive_and_aware_range(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_updated_between.return_value = []
        service.list_users_updated_between(datetime(2025, 1, 1), NOW)
        repo.find_updated_between.assert_called_once()


class TestUpdateUser:
    def test_missing_user_raises(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            service.update_user(999, make_user())
        repo.save.assert_not_called()

    def test_same_username_skips_username_check(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored()
        repo.exists_by_email.return_value = False

        result = service.update_user(1, make_user(email="new@x.com"))

        repo.exists_by_username.assert_not_called()
        repo.exists_by_email.assert_called_once_with("new@x.com")
        assert result.email == "new@x.com"

    def test_unchanged_email_skips_email_check(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored()

        service.update_user(1, make_user(full_name="Alice B"))

        repo.exists_by_username.assert_not_called()
        repo.exists_by_email.assert_not_called()

    def test_changed_username_conflict(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored()
        repo.exists_by_username.return_value = True

        with pytest.raises(DuplicateUserError) as excinfo:
            service.update_user(1, make_user(user_name="bob"))

        assert excinfo.value.value == "bob"
        repo.save.assert_not_called()

    def test_changed_email_conflict(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = _stored()
        repo.exists_by_email.return_value = True

        with pytest.raises(DuplicateUserError) as excinfo:
            service.update_user(1, make_user(email="bob@x.com"))

        assert excinfo.value.field == "email"

    def test_overwrites_mutable_fields_and_keeps_created_at(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored()

        result = service.update_user(
            1,
            make_user(full_name="Alice Admin", role=UserRole.ADMIN, active=False),
        )

        assert result.id == 1
        assert result.full_name == "Alice Admin"
        assert result.role == UserRole.ADMIN
        assert result.active is False
        assert result.created_at == NOW


class TestLifecycle:
    def test_deactivate_sets_inactive(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = _stored()

        result = service.deactivate_user(1)

        assert result.active is False
        repo.save.assert_called_once()

    def test_deactivate_is_idempotent(self, service: UserService, repo: MagicMock) -> None:
        repo.find_by_id.return_value = _stored(active=False)
        assert service.deactivate_user(1).active is False

    def test_reactivate_restores_and_keeps_fields(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored(active=False)

        result = service.reactivate_user(1)

        assert result.active is True
        assert result.user_name == "alice"
        assert result.created_at == NOW

    def test_reactivate_active_user_succeeds(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.find_by_id.return_value = _stored()
        assert service.reactivate_user(1).active is True

    @pytest.mark.parametrize("operation", ["deactivate_user", "reactivate_user"])
    def test_missing_user_raises(
        self, service: UserService, repo: MagicMock, operation: str
    ) -> None:
        repo.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            getattr(service, operation)(999)
        repo.save.assert_not_called()


class TestHardDelete:
    def test_deletes_existing_user(self, service: UserService, repo: MagicMock) -> None:
        repo.exists_by_id.return_value = True

        service.hard_delete_user(1)

        repo.delete_by_id.assert_called_once_with(1)
        repo.find_by_id.assert_not_called()

    def test_missing_user_raises(self, service: UserService, repo: MagicMock) -> None:
        repo.exists_by_id.return_value = False

        with pytest.raises(UserNotFoundError) as excinfo:
            service.hard_delete_user(999)

        assert excinfo.value.value == 999
        repo.delete_by_id.assert_not_called()


class TestAvailabilityAndCounts:
    def test_availability_negates_existence(
        self, service: UserService, repo: MagicMock
    ) -> None:
        repo.exists_by_username.return_value = True
        repo.exists_by_email.return_value = False

        assert service.is_username_available("alice") is False
        assert service.is_email_available("free@x.com") is True

    def test_counts(self, service: UserService, repo: MagicMock) -> None:
        repo.count_by_role.return_value = 2
        repo.count_by_active.return_value = 7

        assert service.count_users_by_role(UserRole.ADMIN) == 2
        assert service.count_active_users() == 7
        repo.count_by_active.assert_called_once_with(True)

    def test_stats_cover_every_role(self, service: UserService, repo: MagicMock) -> None:
        repo.count_by_role.return_value = 1
        repo.count_by_active.return_value = 3

        stats = service.user_stats()

        assert stats["active_users"] == 3
        assert set(stats["by_role"]) == set(UserRole)
