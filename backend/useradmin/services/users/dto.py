"""
Commands, queries and output DTOs for :class:`UserService`.

Commands are transient, already-validated inputs. Each one maps to exactly one
service operation and carries only the fields that operation may change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from useradmin.models.user import UserStatus

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from useradmin.models.user import User

# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class CreateUserCommand:
    """
    Input for user creation.

    :param uuid: External identifier; generated when omitted.
    :param password: Raw password; hashed with a fresh salt by the service.
    :param status: Initial account state.
    """

    first_name: str
    last_name: str
    login_name: str
    password: str
    email: str
    middle_name: str = ""
    status: str = UserStatus.ACTIVE.value
    uuid: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateUserCommand:
    """Profile edit. Only name parts are mutable through this path."""

    id: int
    first_name: str
    last_name: str
    middle_name: str = ""


@dataclass(frozen=True, slots=True)
class UpdateStatusCommand:
    id: int
    status: str


@dataclass(frozen=True, slots=True)
class UpdatePasswordCommand:
    id: int
    password: str


@dataclass(frozen=True, slots=True)
class ForgotPasswordCommand:
    email: str


# --------------------------------------------------------------------------- #
# Queries
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class SearchUserQuery:
    """
    Paginated user search.

    :param page: 1-based page; ``<= 0`` means "use the configured default".
    :param per_page: Page size; ``<= 0`` means "use the configured default".
    :param login_name: Exact login match.
    :param email: Exact (normalized) email match.
    :param status: Exact status match.
    :param name: Case-insensitive substring over first/middle/last name.
    """

    page: int = 0
    per_page: int = 0
    login_name: str | None = None
    email: str | None = None
    status: str | None = None
    name: str | None = None


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Read model of a stored user. Credential columns never leave the service.
    """

    id: int
    uuid: str
    first_name: str
    middle_name: str
    last_name: str
    login_name: str
    email: str
    status: str
    created_at: datetime
    created_by: str | None
    updated_at: datetime | None

    @classmethod
    def from_model(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            uuid=user.uuid,
            first_name=user.first_name,
            middle_name=user.middle_name,
            last_name=user.last_name,
            login_name=user.login_name,
            email=user.email,
            status=user.status,
            created_at=user.created_at,
            created_by=user.created_by,
            updated_at=user.updated_at,
        )


@dataclass(frozen=True, slots=True)
class SearchUserResult:
    """
    One page of users. ``page`` and ``per_page`` echo the values actually applied.
    """

    users: list[UserOut] = field(default_factory=list)
    page: int = 0
    per_page: int = 0
    total: int = 0
