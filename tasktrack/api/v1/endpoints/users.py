"""
User management endpoints:
  POST   /users                          – Create a user
  GET    /users                          – Paged list (page, size, sort)
  GET    /users/all                      – Every user, unpaged
  GET    /users/active                   – Active users
  GET    /users/role/{role}              – Users with a role (optionally ?active=)
  GET    /users/search                   – Full-name search
  GET    /users/created                  – Users created in a time range
  GET    /users/updated                  – Users updated in a time range
  GET    /users/stats                    – Active / per-role counts
  GET    /users/availability/username    – Is a username free?
  GET    /users/availability/email       – Is an email free?
  GET    /users/username/{username}      – Lookup by username
  GET    /users/email/{email}            – Lookup by email
  GET    /users/{id}                     – Lookup by id
  PUT    /users/{id}                     – Replace a user's mutable fields
  DELETE /users/{id}                     – Soft delete (deactivate)
  PUT    /users/{id}/reactivate          – Reactivate
  DELETE /users/{id}/permanent           – Hard delete (requires ?confirm=true)
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from tasktrack.core.dependencies import get_user_service
from tasktrack.core.exceptions import ValidationFailedError
from tasktrack.models.user import UserRole
from tasktrack.schemas.user import (
    AvailabilityResponse,
    PagedUserResponse,
    UserCreate,
    UserResponse,
    UserStatsResponse,
    UserUpdate,
    normalize_email,
    parse_sort,
)
from tasktrack.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

# Keeps page * size (the SQL OFFSET) well inside SQLite's integer range.
MAX_PAGE = (2**31 - 1) // 100


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """
    Create a user. `userName` and `email` must not be used by any other
    user, active or deactivated. New users start active.
    """
    return service.create_user(data.to_domain())


# ---------------------------------------------------------------------------
# Collections (static paths before /{user_id})
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=PagedUserResponse,
    summary="List users, paged and sorted",
)
def list_users_page(
    page: int = Query(0, ge=0, le=MAX_PAGE, description="Zero-based page index"),
    size: int = Query(10, ge=1, le=100, description="Items per page"),
    sort: str = Query(
        "id,asc",
        description="property,direction – e.g. `createdAt,desc`",
    ),
    service: UserService = Depends(get_user_service),
):
    """
    Sortable properties: `id`, `userName`, `email`, `fullName`, `role`,
    `active`, `createdAt`, `updatedAt`.
    """
    result = service.list_users_page(page, size, parse_sort(sort))
    return {
        "content": result.items,
        "page": result.page,
        "size": result.size,
        "total_elements": result.total_elements,
        "total_pages": result.total_pages,
        "first": result.is_first,
        "last": result.is_last,
    }


@router.get("/all", response_model=list[UserResponse], summary="List every user")
def list_all_users(service: UserService = Depends(get_user_service)):
    return service.list_users()


@router.get("/active", response_model=list[UserResponse], summary="List active users")
def list_active_users(service: UserService = Depends(get_user_service)):
    return service.list_active_users()


@router.get(
    "/role/{role}",
    response_model=list[UserResponse],
    summary="List users with a role",
)
def list_users_by_role(
    role: UserRole,
    active: Optional[bool] = Query(None, description="Restrict to active or inactive users"),
    service: UserService = Depends(get_user_service),
):
    return service.list_users_by_role(role, active=active)


@router.get("/search", response_model=list[UserResponse], summary="Search by full name")
def search_users(
    name: str = Query(..., min_length=1, description="Case-insensitive fragment"),
    service: UserService = Depends(get_user_service),
):
    return service.search_users(name)


@router.get(
    "/created",
    response_model=list[UserResponse],
    summary="Users created in a time range",
)
def list_users_created(
    start: datetime = Query(..., description="Inclusive lower bound"),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound; open if omitted"),
    service: UserService = Depends(get_user_service),
):
    """Without `end`, returns users created strictly after `start`."""
    if end is None:
        return service.list_users_created_since(start)
    return service.list_users_created_between(start, end)


@router.get(
    "/updated",
    response_model=list[UserResponse],
    summary="Users updated in a time range",
)
def list_users_updated(
    start: datetime = Query(...),
    end: datetime = Query(...),
    service: UserService = Depends(get_user_service),
):
    return service.list_users_updated_between(start, end)


@router.get("/stats", response_model=UserStatsResponse, summary="User counts")
def user_stats(service: UserService = Depends(get_user_service)):
    return service.user_stats()


@router.get(
    "/availability/username",
    response_model=AvailabilityResponse,
    summary="Check whether a username is free",
)
def username_availability(
    value: str = Query(..., min_length=1),
    service: UserService = Depends(get_user_service),
):
    return AvailabilityResponse(value=value, available=service.is_username_available(value))


@router.get(
    "/availability/email",
    response_model=AvailabilityResponse,
    summary="Check whether an email is free",
)
def email_availability(
    value: str = Query(..., min_length=1),
    service: UserService = Depends(get_user_service),
):
    email = normalize_email(value, field="value")
    return AvailabilityResponse(value=email, available=service.is_email_available(email))


# ---------------------------------------------------------------------------
# Single user
# ---------------------------------------------------------------------------

@router.get(
    "/username/{username}",
    response_model=UserResponse,
    summary="Get a user by username",
)
def get_user_by_username(username: str, service: UserService = Depends(get_user_service)):
    return service.get_user_by_username(username)


@router.get("/email/{email}", response_model=UserResponse, summary="Get a user by email")
def get_user_by_email(email: str, service: UserService = Depends(get_user_service)):
    return service.get_user_by_email(normalize_email(email))


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user by id")
def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    """Deactivated users are still returned."""
    return service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
def update_user(
    user_id: int,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    """
    Replace `userName`, `email`, `fullName`, `role` and `active`.
    `createdAt` is never changed; `updatedAt` is refreshed.
    """
    return service.update_user(user_id, data.to_domain())


@router.delete(
    "/{user_id}",
    response_model=UserResponse,
    summary="Soft-delete (deactivate) a user",
)
def deactivate_user(user_id: int, service: UserService = Depends(get_user_service)):
    """
    Sets `active` to false. The row is **not removed** and stays readable;
    use `PUT /users/{id}/reactivate` to undo.
    """
    return service.deactivate_user(user_id)


@router.put(
    "/{user_id}/reactivate",
    response_model=UserResponse,
    summary="Reactivate a user",
)
def reactivate_user(user_id: int, service: UserService = Depends(get_user_service)):
    return service.reactivate_user(user_id)


@router.delete(
    "/{user_id}/permanent",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Permanently delete a user",
)
def hard_delete_user(
    user_id: int,
    confirm: bool = Query(False, description="Must be true; deletion cannot be undone"),
    service: UserService = Depends(get_user_service),
):
    """⚠️ Irreversible. The request is rejected unless `confirm=true` is passed."""
    if not confirm:
        raise ValidationFailedError(
            "Permanent deletion requires confirm=true",
            {"confirm": "must be true"},
        )
    service.hard_delete_user(user_id)
