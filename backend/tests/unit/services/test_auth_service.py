"""Unit tests for AuthService credential verification."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from useradmin.services._shared.errors import InvalidCredentialsError


def test_valid_credentials_return_user(auth_service, ctx):
    user = UserFactory(login_name="alice")

    out = auth_service.verify_credentials(ctx, "alice", DEFAULT_PASSWORD)

    assert out.id == user.id
    assert out.login_name == "alice"


def test_explicit_password_is_verified(auth_service, ctx):
    UserFactory(login_name="bob", password="b0b-secret")

    assert auth_service.verify_credentials(ctx, "bob", "b0b-secret").login_name == "bob"


@pytest.mark.parametrize(
    ("login_name", "password"),
    [
        ("alice", "wrong-password"),
        ("nobody", DEFAULT_PASSWORD),
        ("", ""),
    ],
)
def test_bad_credentials_rejected(auth_service, ctx, login_name, password):
    UserFactory(login_name="alice")

    with pytest.raises(InvalidCredentialsError):
        auth_service.verify_credentials(ctx, login_name, password)


@pytest.mark.parametrize("status", ["inactive", "pending"])
def test_non_active_user_rejected(auth_service, ctx, status):
    UserFactory(login_name="carol", status=status)

    with pytest.raises(InvalidCredentialsError):
        auth_service.verify_credentials(ctx, "carol", DEFAULT_PASSWORD)
