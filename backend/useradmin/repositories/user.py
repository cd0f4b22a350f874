"""User store: persistence-only access to the ``users`` table."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError

from useradmin.models.user import User
from useradmin.repositories.base import BaseRepository, Page
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import ConflictError, violates
from useradmin.services.users.dto import SearchUserQuery


class UserRepository(BaseRepository[User]):
    """Translate typed user operations into parameterized statements.

    Absence is a normal result here (``None``); turning it into an error is
    the service's decision. Narrow mutations (``update``, ``update_status``,
    ``update_password``) only ever touch their own columns plus
    ``updated_at``.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _filterable_fields(self):
        return {
            "login_name": User.login_name,
            "email": User.email,
            "status": User.status,
            "uuid": User.uuid,
        }

    def _updatable_fields(self):
        """Columns reachable through the narrow mutations below."""
        return {
            "first_name",
            "middle_name",
            "last_name",
            "status",
            "password_hash",
            "updated_at",
        }

    # ---------------------------- Lookups ----------------------------

    def is_user_taken(self, ctx: ServiceContext | None, login_name: str) -> bool:
        """Return ``True`` when ``login_name`` already belongs to a user."""
        return self.exists(ctx, login_name=login_name.strip())

    def get_by_id(self, ctx: ServiceContext | None, user_id: int) -> User | None:
        return self.get(ctx, user_id)

    def get_by_login(self, ctx: ServiceContext | None, login_name: str) -> User | None:
        stmt = select(User).where(User.login_name == login_name.strip())
        return cast(User | None, self.db.execute(ctx, stmt).scalars().first())

    def search(self, ctx: ServiceContext | None, query: SearchUserQuery) -> Page[User]:
        """Return one page of users matching ``query`` plus the total match count.

        ``query.page`` and ``query.per_page`` must already be resolved (``>= 1``).
        """
        stmt = self._search_select(query)
        return self.paginate(ctx, stmt, page=query.page, limit=query.per_page)

    def _search_select(self, query: SearchUserQuery) -> Select[Any]:
        stmt: Select[Any] = select(User)
        stmt = self._apply_equality_filters(
            stmt,
            {
                "login_name": query.login_name,
                "email": query.email.strip().lower() if query.email else None,
                "status": query.status,
            },
        )
        if query.name:
            pattern = f"%{query.name.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.middle_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )
        return stmt

    # ---------------------------- Writes ----------------------------

    def create(self, ctx: ServiceContext | None, user: User) -> User:
        """Insert ``user``; a storage-level uniqueness violation becomes ``ConflictError``."""
        try:
            return self.add(ctx, user)
        except ConflictError as exc:
            cause = exc.__cause__
            if isinstance(cause, IntegrityError) and violates(cause, "uuid"):
                raise ConflictError("User", f"with uuid {user.uuid} already exists") from cause
            raise ConflictError(
                "User", f"with login name {user.login_name} already exists"
            ) from cause

    def update(
        self,
        ctx: ServiceContext | None,
        user_id: int,
        *,
        first_name: str,
        middle_name: str,
        last_name: str,
        updated_at: datetime,
    ) -> int:
        return self.update_columns(
            ctx,
            user_id,
            {
                "first_name": first_name,
                "middle_name": middle_name,
                "last_name": last_name,
                "updated_at": updated_at,
            },
        )

    def update_status(
        self, ctx: ServiceContext | None, user_id: int, *, status: str, updated_at: datetime
    ) -> int:
        return self.update_columns(ctx, user_id, {"status": status, "updated_at": updated_at})

    def update_password(
        self,
        ctx: ServiceContext | None,
        user_id: int,
        *,
        password_hash: str,
        updated_at: datetime,
    ) -> int:
        return self.update_columns(
            ctx, user_id, {"password_hash": password_hash, "updated_at": updated_at}
        )
