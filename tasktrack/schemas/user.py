"""
Pydantic schemas for User request/response validation.

Field names are snake_case in Python and camelCase on the wire
(``userName``, ``fullName``, ``totalElements`` ...).
"""
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from tasktrack.core.exceptions import ValidationFailedError
from tasktrack.models.page import Sort, SortDirection
from tasktrack.models.user import User, UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserCreate(CamelModel):
    user_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole

    @field_validator("user_name", "full_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    def to_domain(self) -> User:
        # active defaults to True on the domain model
        return User(
            user_name=self.user_name,
            email=str(self.email),
            full_name=self.full_name,
            role=self.role,
        )


class UserUpdate(UserCreate):
    active: bool

    def to_domain(self) -> User:
        user = super().to_domain()
        user.active = self.active
        return user


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(CamelModel):
    id: int
    user_name: str
    email: str
    full_name: str
    role: UserRole
    active: bool
    created_at: datetime
    updated_at: datetime


class PagedUserResponse(CamelModel):
    content: list[UserResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool


class UserStatsResponse(CamelModel):
    active_users: int
    by_role: dict[UserRole, int]


class AvailabilityResponse(CamelModel):
    value: str
    available: bool


class ErrorResponse(CamelModel):
    status: int
    error: str
    message: str
    path: str
    field_errors: Optional[dict[str, str]] = None


# ---------------------------------------------------------------------------
# Email lookups
# ---------------------------------------------------------------------------

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(raw: str, field: str = "email") -> str:
    """
    Normalise an address the same way request bodies are, so lookups match
    what was stored (e.g. ``Alice@X.COM`` -> ``Alice@x.com``).

    Raises:
        ValidationFailedError: if *raw* is not a valid address.
    """
    try:
        return _email_adapter.validate_python(raw)
    except ValidationError:
        raise ValidationFailedError(
            f"Invalid email address: {raw}",
            {field: "value is not a valid email address"},
        ) from None


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

# Wire name -> domain property accepted by the repository.
SORTABLE_FIELDS = {
    "id": "id",
    "userName": "user_name",
    "email": "email",
    "fullName": "full_name",
    "role": "role",
    "active": "active",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def parse_sort(raw: Optional[str]) -> Sort:
    """
    Parse ``property[,direction]`` (e.g. ``createdAt,desc``) into a Sort.

    Raises:
        ValidationFailedError: for an unknown property or direction.
    """
    if not raw or not raw.strip():
        return Sort()

    name, _, direction = (part.strip() for part in raw.partition(","))
    prop = SORTABLE_FIELDS.get(name)
    if prop is None:
        raise ValidationFailedError(
            f"Invalid sort property: {name}",
            {"sort": f"must be one of {', '.join(SORTABLE_FIELDS)}"},
        )
    try:
        sort_direction = SortDirection(direction.upper() or "ASC")
    except ValueError:
        raise ValidationFailedError(
            f"Invalid sort direction: {direction}",
            {"sort": "direction must be asc or desc"},
        ) from None
    return Sort(property=prop, direction=sort_direction)
