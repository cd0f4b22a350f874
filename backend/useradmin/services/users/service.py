"""
UserService
===========

Application service for the `User` aggregate:
- Creation with login-name uniqueness
- Paginated search with configured defaults
- Narrow profile, status and password updates
- Password recovery requests (accepted, not yet delivered)
"""

from __future__ import annotations

import logging
import uuid as uuid_lib

from useradmin.core.database import Database
from useradmin.models.user import User
from useradmin.repositories.user import UserRepository
from useradmin.services._shared.base import BaseService, PaginationDefaults, utcnow
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import ConflictError, NotFoundError
from useradmin.services.users.dto import (
    CreateUserCommand,
    ForgotPasswordCommand,
    SearchUserQuery,
    SearchUserResult,
    UpdatePasswordCommand,
    UpdateStatusCommand,
    UpdateUserCommand,
    UserOut,
)


class UserService(BaseService):
    """
    Business rules above the user store.

    Responsibilities
    ----------------
    - Reject duplicate login names before inserting.
    - Stamp ``created_at`` / ``updated_at`` and ``created_by``.
    - Generate uuid, salt and password hash on create.
    - Turn store-level absence into :class:`NotFoundError`.
    - Inject pagination defaults into searches.

    Errors raised by the storage accessor (``StorageError``,
    ``CanceledError``) propagate unchanged. Nothing is retried.
    """

    def __init__(
        self,
        database: Database,
        *,
        pagination: PaginationDefaults | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(database, log=log)
        self.pagination = pagination or PaginationDefaults()

    # --------------------------------------------------------------------- #
    # Creation
    # --------------------------------------------------------------------- #

    def create(self, ctx: ServiceContext | None, cmd: CreateUserCommand) -> UserOut:
        """
        Create a user.

        :param ctx: Operation context (deadline, cancellation, actor).
        :param cmd: Validated creation command.
        :returns: The stored user.
        :rtype: UserOut
        :raises ConflictError: If the login name is already taken.
        """
        with self.rw_uow(ctx) as uow:
            repo: UserRepository = uow.users

            if repo.is_user_taken(ctx, cmd.login_name):
                raise ConflictError("User", f"with login name {cmd.login_name} already exists")

            salt = User.new_salt()
            user = User(
                uuid=cmd.uuid or str(uuid_lib.uuid4()),
                first_name=cmd.first_name,
                middle_name=cmd.middle_name or "",
                last_name=cmd.last_name,
                login_name=cmd.login_name,
                email=cmd.email,
                status=cmd.status,
                salt=salt,
                password_hash=User.hash_password(cmd.password, salt),
                created_at=utcnow(),
                created_by=_created_by(ctx),
            )
            repo.create(ctx, user)
            self.log.info("user.created id=%s login=%s", user.id, user.login_name)
            return UserOut.from_model(user)

    # --------------------------------------------------------------------- #
    # Retrieval
    # --------------------------------------------------------------------- #

    def search(self, ctx: ServiceContext | None, query: SearchUserQuery) -> SearchUserResult:
        """
        Return one page of users.

        ``page`` / ``per_page`` values ``<= 0`` are replaced by the configured
        defaults; the result echoes the values actually applied.
        """
        page, per_page = self.pagination.resolve(query.page, query.per_page)
        resolved = SearchUserQuery(
            page=page,
            per_page=per_page,
            login_name=query.login_name,
            email=query.email,
            status=query.status,
            name=query.name,
        )
        with self.ro_uow(ctx) as uow:
            result = uow.users.search(ctx, resolved)
            return SearchUserResult(
                users=[UserOut.from_model(u) for u in result.items],
                page=page,
                per_page=per_page,
                total=result.total,
            )

    def get_by_id(self, ctx: ServiceContext | None, user_id: int) -> UserOut:
        """
        Retrieve a user by identifier.

        :raises NotFoundError: If the user does not exist.
        """
        with self.ro_uow(ctx) as uow:
            return UserOut.from_model(self._require(ctx, uow.users, user_id))

    # --------------------------------------------------------------------- #
    # Narrow mutations
    # --------------------------------------------------------------------- #

    def update(self, ctx: ServiceContext | None, cmd: UpdateUserCommand) -> UserOut:
        """
        Update the name parts of a user. No other column is touched.

        :returns: The refreshed user.
        :raises NotFoundError: If the user does not exist.
        """
        with self.rw_uow(ctx) as uow:
            repo: UserRepository = uow.users
            user = self._require(ctx, repo, cmd.id)
            repo.update(
                ctx,
                cmd.id,
                first_name=cmd.first_name,
                middle_name=cmd.middle_name or "",
                last_name=cmd.last_name,
                updated_at=utcnow(),
            )
            return UserOut.from_model(user)

    def update_status(self, ctx: ServiceContext | None, cmd: UpdateStatusCommand) -> None:
        """
        Move a user to ``cmd.status``.

        :raises NotFoundError: If the user does not exist.
        """
        with self.rw_uow(ctx) as uow:
            repo: UserRepository = uow.users
            self._require(ctx, repo, cmd.id)
            repo.update_status(ctx, cmd.id, status=cmd.status, updated_at=utcnow())
            self.log.info("user.status_changed id=%s status=%s", cmd.id, cmd.status)

    def update_password(self, ctx: ServiceContext | None, cmd: UpdatePasswordCommand) -> None:
        """
        Replace a user's password, hashing it with the user's existing salt.

        :raises NotFoundError: If the user does not exist.
        """
        with self.rw_uow(ctx) as uow:
            repo: UserRepository = uow.users
            user = self._require(ctx, repo, cmd.id)
            salt = user.salt or User.new_salt()
            repo.update_password(
                ctx,
                cmd.id,
                password_hash=User.hash_password(cmd.password, salt),
                updated_at=utcnow(),
            )
            self.log.info("user.password_changed id=%s", cmd.id)

    def forgot_password(self, ctx: ServiceContext | None, cmd: ForgotPasswordCommand) -> None:
        # Recovery delivery (mail, token) is not wired; the request is only recorded.
        self.log.info("user.forgot_password_requested email=%s", cmd.email.strip().lower())

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    @staticmethod
    def _require(ctx: ServiceContext | None, repo: UserRepository, user_id: int) -> User:
        user = repo.get_by_id(ctx, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user


def _created_by(ctx: ServiceContext | None) -> str:
    if ctx is None or ctx.actor_id is None:
        return ""
    return str(ctx.actor_id)
