"""Tests for the user marshmallow schemas."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from marshmallow import ValidationError

from useradmin.schemas import (
    CreateUserSchema,
    SearchUserQuerySchema,
    SearchUserResultSchema,
    UserSchema,
)
from useradmin.schemas.user import MAX_PAGE
from useradmin.services.users.dto import (
    CreateUserCommand,
    SearchUserQuery,
    SearchUserResult,
    UserOut,
)


def _payload(**overrides):
    data = {
        "firstName": "Alice",
        "lastName": "Liddell",
        "loginName": " alice ",
        "password": "Sup3rSecret!",
        "email": "alice@example.com",
    }
    data.update(overrides)
    return data


class TestCreateUserSchema:
    def test_loads_command_with_defaults(self):
        cmd = CreateUserSchema().load(_payload())

        assert isinstance(cmd, CreateUserCommand)
        assert cmd.login_name == "alice"
        assert cmd.middle_name == ""
        assert cmd.status == "active"
        assert cmd.uuid is None

    def test_uuid_is_normalized_to_string(self):
        cmd = CreateUserSchema().load(_payload(uuid="1B9D6BCD-BBFD-4B2D-9B5D-AB8DFBBD4BED"))
        assert cmd.uuid == "1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed"

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("email", "not-an-email"),
            ("password", "short"),
            ("status", "banned"),
            ("loginName", ""),
            ("loginName", "   "),
            ("email", "bob@localhost"),
            ("uuid", "not-a-uuid"),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError) as excinfo:
            CreateUserSchema().load(_payload(**{field: value}))
        assert field in excinfo.value.messages

    def test_requires_names(self):
        payload = _payload()
        del payload["firstName"]
        with pytest.raises(ValidationError):
            CreateUserSchema().load(payload)


class TestSearchUserQuerySchema:
    def test_parses_camel_case_params(self):
        query = SearchUserQuerySchema().load(
            {"page": "2", "perPage": "5", "loginName": "bob", "extra": "ignored"}
        )
        assert query == SearchUserQuery(page=2, per_page=5, login_name="bob")

    def test_malformed_page_rejected(self):
        with pytest.raises(ValidationError):
            SearchUserQuerySchema().load({"page": "abc"})

    def test_negative_values_pass_through_for_defaulting(self):
        query = SearchUserQuerySchema().load({"page": "-1", "perPage": "-5"})
        assert (query.page, query.per_page) == (-1, -5)

    def test_page_beyond_offset_range_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            SearchUserQuerySchema().load({"page": str(MAX_PAGE + 1)})
        assert "page" in excinfo.value.messages


def test_user_schema_dumps_camel_case_without_credentials():
    out = UserOut(
        id=1,
        uuid="u-1",
        first_name="Alice",
        middle_name="",
        last_name="Liddell",
        login_name="alice",
        email="alice@example.com",
        status="active",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        created_by="",
        updated_at=None,
    )

    data = UserSchema().dump(out)

    assert data["loginName"] == "alice"
    assert data["updatedAt"] is None
    assert "password" not in data and "salt" not in data


def test_search_result_schema_uses_per_page_key():
    data = SearchUserResultSchema().dump(SearchUserResult(users=[], page=1, per_page=20, total=0))
    assert data == {"users": [], "page": 1, "perPage": 20, "total": 0}
