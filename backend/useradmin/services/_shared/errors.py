"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or HTTP.
They are the stable contract between the storage accessor, repositories and
application services.

The translation to HTTP responses (RFC 7807) is handled exclusively by
``useradmin/core/errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite reports the offending
    ``table.column`` pair, so both spellings are accepted by callers.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :type exc: IntegrityError
    :param constraint_name: Constraint name or ``table.column`` marker.
    :type constraint_name: str
    :returns: ``True`` if the IntegrityError mentions the given constraint.
    :rtype: bool
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from the storage accessor, repositories or
      domain logic.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity expected to exist is absent.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} with id {self.key} not found"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"{self.entity} {self.detail}"


class StorageError(ServiceError):
    """Underlying database or connectivity failure."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message)


class CanceledError(ServiceError):
    """The operation was aborted because its context was canceled or timed out."""

    def __init__(self, message: str = "Operation canceled") -> None:
        super().__init__(message)


class InvalidCredentialsError(ServiceError):
    """Credential verification failed (unknown login, bad password, inactive user)."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)
