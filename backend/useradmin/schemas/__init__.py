"""Marshmallow schemas for request validation and response serialization."""

from __future__ import annotations

from .user import (
    CreateUserSchema,
    ForgotPasswordSchema,
    SearchUserQuerySchema,
    SearchUserResultSchema,
    UpdatePasswordSchema,
    UpdateStatusSchema,
    UpdateUserSchema,
    UserSchema,
)

__all__ = [
    "CreateUserSchema",
    "ForgotPasswordSchema",
    "SearchUserQuerySchema",
    "SearchUserResultSchema",
    "UpdatePasswordSchema",
    "UpdateStatusSchema",
    "UpdateUserSchema",
    "UserSchema",
]
