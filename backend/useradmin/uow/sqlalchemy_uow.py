"""
SQLAlchemy implementation of UnitOfWork on top of the storage accessor.
"""

from __future__ import annotations

from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Session

from useradmin.core.database import Database
from useradmin.repositories import UserRepository
from useradmin.services._shared.context import ServiceContext
from useradmin.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share one storage accessor (and session)."""

    def __init__(self, database: Database, ctx: ServiceContext | None = None) -> None:
        self.db = database
        self.ctx = ctx
        self.users = UserRepository(database)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write UoW: commits on a clean exit, rolls back when the block raises.
    """

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.db.commit(self.ctx)

    def rollback(self) -> None:
        self.db.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only UoW: refuses to commit and ends its own transaction with a rollback.

    When the session is already inside a transaction on entry (an outer write
    scope, or a test fixture), the block attaches to it and leaves it alone on
    exit. In both cases an ORM ``before_flush`` guard rejects pending writes
    for the duration of the block.
    """

    def __init__(self, database: Database, ctx: ServiceContext | None = None) -> None:
        super().__init__(database, ctx)
        self._session: Session | None = None
        self._owns_transaction = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._session = self.db.current_session()
        self._owns_transaction = not self._session.in_transaction()
        event.listen(self._session, "before_flush", _block_flush)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owns_transaction:
                self.rollback()
        finally:
            if self._session is not None:
                with suppress(InvalidRequestError):
                    event.remove(self._session, "before_flush", _block_flush)
                self._session = None
            self._owns_transaction = False

    def commit(self) -> None:
        """
        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.db.rollback()


def _block_flush(session, flush_context, instances) -> None:
    if session.new or session.dirty or session.deleted:
        raise RuntimeError(
            "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
        )
