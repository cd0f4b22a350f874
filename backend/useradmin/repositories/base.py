"""Generic repository base and query utilities for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:

- Every statement runs through the :class:`~useradmin.core.database.Database`
  accessor together with the caller's context.
- Deterministic pagination (primary-key ordering) with a total count.
- Equality filters restricted to a per-repository whitelist.
- Column updates restricted to a per-repository whitelist and issued as a
  single ``UPDATE`` touching only those columns.
- No business logic, no commit/rollback: services own the Unit of Work.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select, update
from sqlalchemy.orm import InstrumentedAttribute

from useradmin.core.database import Database
from useradmin.services._shared.context import ServiceContext

E = TypeVar("E")  # SQLAlchemy mapped entity type


@dataclass(slots=True)
class Page(Generic[E]):
    """Result page with metadata.

    :param items: Entities in the current page.
    :param total: Total number of rows matching the query.
    :param page: 1-based page number that was applied.
    :param limit: Page size that was applied.
    """

    items: Sequence[E]
    total: int
    page: int
    limit: int


def paginate_select(
    database: Database,
    ctx: ServiceContext | None,
    stmt: Select[Any],
    *,
    page: int,
    limit: int,
) -> tuple[list[Any], int]:
    """Execute ``stmt`` with ``OFFSET (page-1)*limit LIMIT limit`` plus a ``COUNT``.

    The statement's ``ORDER BY`` is stripped for the count.

    :param page: 1-based page number (clamped to ``>= 1``).
    :param limit: Page size (clamped to ``>= 1``).
    :returns: ``(items, total)``.
    """
    page = max(int(page), 1)
    limit = max(int(limit), 1)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int(database.scalar(ctx, count_stmt) or 0)

    offset = (page - 1) * limit
    items = database.scalars(ctx, stmt.limit(limit).offset(offset))
    return items, total


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and MAY override ``_filterable_fields``
    and ``_updatable_fields``. This class never opens, commits or rolls back
    transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, database: Database) -> None:
        self.db = database

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        return cast(InstrumentedAttribute[Any], getattr(self.model, "id"))

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist of public keys usable as equality filters."""
        return {}

    def _updatable_fields(self) -> set[str]:
        """Whitelist of attribute names an ``UPDATE`` may assign."""
        return set()

    # ------------------------------ Internals --------------------------------

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        """Apply whitelisted equality filters; ``None`` values and unknown keys are ignored."""
        if not filters:
            return stmt
        allowed = self._filterable_fields()
        clauses = [
            allowed[k] == v for k, v in filters.items() if k in allowed and v is not None
        ]
        return stmt.where(and_(*clauses)) if clauses else stmt

    def _sanitize_update_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """
        Return ``fields`` unchanged if every key is whitelisted.

        :raises ValueError: On unknown keys or when nothing is updatable.
        """
        allowed = self._updatable_fields()
        if not allowed:
            raise ValueError("No updatable fields configured for this repository.")
        unknown = [k for k in fields if k not in allowed]
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        return dict(fields)

    # --------------------------------- CRUD ----------------------------------

    def add(self, ctx: ServiceContext | None, instance: E) -> E:
        """Persist ``instance`` and flush so its primary key is assigned."""
        return self.db.add(ctx, instance)

    def get(self, ctx: ServiceContext | None, entity_id: Any) -> E | None:
        """Return the entity with primary key ``entity_id`` or ``None``."""
        stmt = select(self.model).where(self._pk_attr() == entity_id)
        return cast(E | None, self.db.execute(ctx, stmt).scalars().first())

    def exists(self, ctx: ServiceContext | None, **filters: Any) -> bool:
        """Return ``True`` when at least one row matches the equality filters."""
        stmt: Select[Any] = select(self._pk_attr())
        stmt = self._apply_equality_filters(stmt, filters)
        return self.db.scalar(ctx, stmt.limit(1)) is not None

    def count(self, ctx: ServiceContext | None) -> int:
        return int(self.db.scalar(ctx, select(func.count()).select_from(self.model)) or 0)

    def update_columns(
        self,
        ctx: ServiceContext | None,
        entity_id: Any,
        fields: Mapping[str, Any],
    ) -> int:
        """
        Issue ``UPDATE ... SET <fields> WHERE id = :entity_id``.

        Only whitelisted attributes are accepted. The identity map is kept in
        sync so later reads in the same session observe the new values.

        :returns: Number of rows matched.
        """
        values = {
            getattr(self.model, key): value
            for key, value in self._sanitize_update_fields(fields).items()
        }
        stmt = (
            update(self.model)
            .where(self._pk_attr() == entity_id)
            .values(values)
            .execution_options(synchronize_session="evaluate")
        )
        result = self.db.execute(ctx, stmt)
        return int(getattr(result, "rowcount", 0) or 0)

    def paginate(
        self,
        ctx: ServiceContext | None,
        stmt: Select[Any],
        *,
        page: int,
        limit: int,
    ) -> Page[E]:
        """Paginate ``stmt`` ordered by primary key."""
        stmt = stmt.order_by(self._pk_attr().asc())
        items, total = paginate_select(self.db, ctx, stmt, page=page, limit=limit)
        return Page(items=cast(list[E], items), total=total, page=page, limit=limit)
