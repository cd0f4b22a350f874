"""User resource schemas.

Wire format is camelCase (``firstName``, ``loginName``, ``perPage``); Python
attributes stay snake_case through ``data_key``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from useradmin.models.user import UserStatus
from useradmin.services.users.dto import (
    CreateUserCommand,
    ForgotPasswordCommand,
    SearchUserQuery,
)

# (page - 1) * per_page must stay inside a signed 64-bit OFFSET.
MAX_PAGE = 2**31 - 1


def _not_blank(value: str) -> None:
    if not value.strip():
        raise ValidationError("Must not be blank.")


def _dotted_domain(value: str) -> None:
    """Mirror the model rule: the part after ``@`` needs a dot."""
    if "." not in value.rpartition("@")[2]:
        raise ValidationError("Email domain must contain a dot.")


_STATUS = validate.OneOf(UserStatus.values())
_NAME = validate.Length(min=1, max=100)
_LOGIN = [validate.Length(min=1, max=64), _not_blank]
_EMAIL = [validate.Length(max=254), _dotted_domain]


class CreateUserSchema(Schema):
    """Payload for creating a user; loads into :class:`CreateUserCommand`."""

    uuid = fields.UUID(load_default=None)
    first_name = fields.String(data_key="firstName", required=True, validate=_NAME)
    middle_name = fields.String(
        data_key="middleName", load_default="", validate=validate.Length(max=100)
    )
    last_name = fields.String(data_key="lastName", required=True, validate=_NAME)
    login_name = fields.String(
        data_key="loginName", required=True, validate=_LOGIN
    )
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))
    email = fields.Email(required=True, validate=_EMAIL)
    status = fields.String(load_default=UserStatus.ACTIVE.value, validate=_STATUS)

    @post_load
    def make_command(self, data: dict[str, Any], **_: Any) -> CreateUserCommand:
        raw_uuid = data.pop("uuid", None)
        return CreateUserCommand(
            uuid=str(raw_uuid) if raw_uuid is not None else None,
            login_name=data.pop("login_name").strip(),
            **data,
        )


class SearchUserQuerySchema(Schema):
    """Query-string parameters for user search. Unknown keys are ignored."""

    class Meta:
        unknown = EXCLUDE

    # Values <= 0 are replaced by the configured defaults in the service.
    page = fields.Integer(load_default=0, validate=validate.Range(max=MAX_PAGE))
    per_page = fields.Integer(data_key="perPage", load_default=0)
    login_name = fields.String(
        data_key="loginName", load_default=None, validate=validate.Length(min=1, max=64)
    )
    email = fields.String(load_default=None, validate=validate.Length(min=1, max=254))
    status = fields.String(load_default=None, validate=_STATUS)
    name = fields.String(load_default=None, validate=validate.Length(min=1, max=100))

    @post_load
    def make_query(self, data: dict[str, Any], **_: Any) -> SearchUserQuery:
        return SearchUserQuery(**data)


class UpdateUserSchema(Schema):
    """Profile edit; only name parts are accepted."""

    first_name = fields.String(data_key="firstName", required=True, validate=_NAME)
    middle_name = fields.String(
        data_key="middleName", load_default="", validate=validate.Length(max=100)
    )
    last_name = fields.String(data_key="lastName", required=True, validate=_NAME)


class UpdateStatusSchema(Schema):
    status = fields.String(required=True, validate=_STATUS)


class UpdatePasswordSchema(Schema):
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class ForgotPasswordSchema(Schema):
    email = fields.Email(required=True, validate=_EMAIL)

    @post_load
    def make_command(self, data: dict[str, Any], **_: Any) -> ForgotPasswordCommand:
        return ForgotPasswordCommand(**data)


class UserSchema(Schema):
    """Public representation of a user. Credential columns are never dumped."""

    id = fields.Integer(required=True)
    uuid = fields.String(required=True)
    first_name = fields.String(data_key="firstName")
    middle_name = fields.String(data_key="middleName")
    last_name = fields.String(data_key="lastName")
    login_name = fields.String(data_key="loginName")
    email = fields.String()
    status = fields.String()
    created_at = fields.DateTime(data_key="createdAt")
    created_by = fields.String(data_key="createdBy", allow_none=True)
    updated_at = fields.DateTime(data_key="updatedAt", allow_none=True)


class SearchUserResultSchema(Schema):
    """Envelope for one page of users."""

    users = fields.List(fields.Nested(UserSchema))
    page = fields.Integer()
    per_page = fields.Integer(data_key="perPage")
    total = fields.Integer()
