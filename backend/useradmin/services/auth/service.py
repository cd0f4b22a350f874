"""Credential verification service (no token issuance)."""

from __future__ import annotations

from useradmin.models.user import UserStatus
from useradmin.repositories.user import UserRepository
from useradmin.services._shared.base import BaseService
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import InvalidCredentialsError
from useradmin.services.users.dto import UserOut


class AuthService(BaseService):
    """
    Verify a login name / password pair.

    Every failure (unknown login, wrong password, non-active account) raises
    the same :class:`InvalidCredentialsError` so callers cannot tell which
    check rejected the attempt.
    """

    def verify_credentials(
        self, ctx: ServiceContext | None, login_name: str, password: str
    ) -> UserOut:
        """
        :returns: The authenticated user.
        :raises InvalidCredentialsError: When verification fails.
        """
        with self.ro_uow(ctx) as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_login(ctx, login_name or "")
            if user is None or not user.verify_password(password or ""):
                self.log.info("auth.rejected login=%s", login_name)
                raise InvalidCredentialsError()
            if user.status != UserStatus.ACTIVE.value:
                self.log.info("auth.rejected login=%s status=%s", login_name, user.status)
                raise InvalidCredentialsError()
            return UserOut.from_model(user)
