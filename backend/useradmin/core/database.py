"""Storage accessor wrapping the shared SQLAlchemy handle.

Every database round-trip made by a repository goes through :class:`Database`
so that:

- the caller's :class:`~useradmin.services._shared.context.ServiceContext` is
  honoured (a canceled or expired context aborts before touching the DB);
- driver exceptions surface as domain errors (``ConflictError`` for
  constraint violations, ``StorageError`` for everything else);
- the engine's connection pool is released exactly once on shutdown.

The engine pool is thread-safe and the session registry is scoped per
thread/app-context, so no additional locking happens here.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar, cast

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.engine import Result, make_url
from sqlalchemy.exc import ArgumentError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.base import Executable

from useradmin.core.logger import get_logger
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import CanceledError, ConflictError, StorageError

E = TypeVar("E")

EXTENSION_KEY = "database"


class Database:
    """Thin, context-aware facade over a Flask-SQLAlchemy extension."""

    def __init__(self, sqlalchemy: SQLAlchemy, *, log: logging.Logger | None = None) -> None:
        self._db = sqlalchemy
        self._app: Flask | None = None
        self._closed = False
        self._close_lock = threading.Lock()
        self.log = log or get_logger("storage")

    # ------------------------------ Lifecycle ---------------------------------

    def open(self, app: Flask) -> Database:
        """Bind to ``app`` and register under ``app.extensions["database"]``."""
        self._app = app
        app.extensions[EXTENSION_KEY] = self
        self.log.info("storage.open url=%s", _safe_url(app))
        return self

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> Session:
        """Return the active (thread/app-context scoped) SQLAlchemy session."""
        return cast(Session, self._db.session)

    def current_session(self) -> Session:
        """Return the concrete session currently bound to this thread/app context."""
        return cast(Session, self._db.session())

    def ping(self, ctx: ServiceContext | None = None) -> bool:
        """Health check: run ``SELECT 1`` on a pooled connection, outside the session."""
        try:
            with self.guard(ctx), self._db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (StorageError, ConflictError):
            self.log.warning("storage.ping_failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        """Dispose the engine pool. Safe to call more than once; only the first call acts."""
        with self._close_lock:
            if self._closed:
                self.log.debug("storage.close_skipped")
                return
            self._closed = True

        if self._app is None:
            return
        with self._app.app_context():
            self._db.session.remove()
            self._db.engine.dispose()
        self.log.info("storage.closed")

    # ------------------------------ Primitives --------------------------------

    @contextmanager
    def guard(self, ctx: ServiceContext | None) -> Iterator[None]:
        """Check ``ctx`` before the round-trip and translate driver errors."""
        if ctx is not None:
            ctx.raise_if_done()
        try:
            yield
        except IntegrityError as exc:
            raise ConflictError("Resource", "violates a uniqueness constraint") from exc
        except SQLAlchemyError as exc:
            if ctx is not None and ctx.is_canceled():
                raise CanceledError("Operation canceled: shutdown in progress") from exc
            self.log.error("storage.error", exc_info=True)
            raise StorageError(str(exc.__class__.__name__)) from exc

    def execute(self, ctx: ServiceContext | None, stmt: Executable) -> Result[Any]:
        """Execute a Core/ORM statement within the caller's context."""
        with self.guard(ctx):
            return self.session.execute(stmt)

    def scalar(self, ctx: ServiceContext | None, stmt: Executable) -> Any:
        """Execute ``stmt`` and return the first column of the first row (or ``None``)."""
        with self.guard(ctx):
            return self.session.execute(stmt).scalar()

    def scalars(self, ctx: ServiceContext | None, stmt: Executable) -> list[Any]:
        """Execute ``stmt`` and return all first-column values."""
        with self.guard(ctx):
            return list(self.session.execute(stmt).scalars().all())

    def add(self, ctx: ServiceContext | None, instance: E) -> E:
        """Stage ``instance`` and flush so the storage-assigned PK materializes."""
        with self.guard(ctx):
            self.session.add(instance)
            self.session.flush()
        return instance

    def flush(self, ctx: ServiceContext | None = None) -> None:
        with self.guard(ctx):
            self.session.flush()

    def commit(self, ctx: ServiceContext | None = None) -> None:
        with self.guard(ctx):
            self.session.commit()

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            raise StorageError("Rollback failed") from exc


def _safe_url(app: Flask) -> str:
    """Return the configured DB URL with the password masked."""
    raw = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    try:
        return make_url(raw).render_as_string(hide_password=True)
    except ArgumentError:  # pragma: no cover - malformed URL is reported by the engine
        return "<unparseable>"


def get_database(app: Flask) -> Database:
    """Return the accessor registered on ``app`` by :meth:`Database.open`."""
    database = app.extensions.get(EXTENSION_KEY)
    if database is None:
        raise RuntimeError("Database is not initialized. Call Database.open(app) first.")
    return cast(Database, database)
