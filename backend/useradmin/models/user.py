"""User model definition for the identity administration backend."""

from __future__ import annotations

import enum
import secrets
from typing import Any

from sqlalchemy import CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from useradmin.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

SALT_BYTES = 16


class UserStatus(str, enum.Enum):
    """Account states. Transitions only happen through an explicit status update."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Administrated identity.

    Fields
    ------
    uuid : str
        External identifier, client-supplied or generated on create.
    first_name, middle_name, last_name : str
        Free-text name parts; the only fields a profile update may touch.
    login_name : str
        Unique, immutable login handle.
    password_hash : str
        Salted hash stored in the ``password`` column (write via ``password``).
    salt : str
        Random per-user value mixed into the hash.
    email : str
        Contact email. Stored normalized (lowercase, trimmed).
    status : str
        One of :class:`UserStatus`.
    created_by : str | None
        Creator identifier; empty for self-registration.
    """

    __tablename__ = "users"

    uuid: Mapped[str] = mapped_column(String(36), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    login_name: Mapped[str] = mapped_column(String(64), nullable=False)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    salt: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=UserStatus.PENDING.value
    )
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True, default="")

    __table_args__ = (
        UniqueConstraint("login_name", name="uq_users_login_name"),
        UniqueConstraint("uuid", name="uq_users_uuid"),
        CheckConstraint(
            "status IN ('active', 'inactive', 'pending')",
            name="status_valid",
        ),
        Index("ix_users_email", "email"),
        Index("ix_users_status", "status"),
    )

    # -------------------- Password API --------------------
    @staticmethod
    def new_salt() -> str:
        return secrets.token_hex(SALT_BYTES)

    @staticmethod
    def hash_password(raw: str, salt: str) -> str:
        """
        Return the salted hash for ``raw``.

        :param raw: Plain text password.
        :param salt: Per-user salt.
        :raises ValueError: If ``raw`` is empty.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(salt + raw)

    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """Hash and set the password, drawing a salt first when none is set."""
        if not self.salt:
            self.salt = self.new_salt()
        self.password_hash = self.hash_password(raw, self.salt)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored salted hash.

        :returns: ``True`` if it matches; otherwise ``False``.
        """
        if not self.password_hash or not self.salt:
            return False
        return bool(check_password_hash(self.password_hash, self.salt + raw))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and sanity-check the email; full validation happens at the API layer.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("login_name")
    def _normalize_login_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Login name is required.")
        return value.strip()

    @validates("status")
    def _validate_status(self, key: str, value: str | UserStatus) -> str:
        raw = value.value if isinstance(value, UserStatus) else value
        if raw not in UserStatus.values():
            raise ValueError(f"Unknown status {raw!r}.")
        return raw
