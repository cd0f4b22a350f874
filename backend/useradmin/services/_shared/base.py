"""Base class and helpers shared by application services."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from useradmin.core.database import Database
from useradmin.core.logger import get_logger
from useradmin.services._shared.context import ServiceContext
from useradmin.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(frozen=True, slots=True)
class PaginationDefaults:
    """
    Page values substituted when a query leaves them unset.

    :param page: Default 1-based page number.
    :param per_page: Default page size.
    :param max_per_page: Upper bound applied to any requested page size.
    """

    page: int = 1
    per_page: int = 20
    max_per_page: int = 200

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> PaginationDefaults:
        return cls(
            page=int(config.get("PAGINATION_PAGE", 1)),
            per_page=int(config.get("PAGINATION_PER_PAGE", 20)),
            max_per_page=int(config.get("PAGINATION_MAX_PER_PAGE", 200)),
        )

    def resolve(self, page: int, per_page: int) -> tuple[int, int]:
        """
        Return the ``(page, per_page)`` pair actually applied.

        Non-positive values fall back to the defaults; the page size is
        capped at ``max_per_page``.
        """
        page = page if page > 0 else max(self.page, 1)
        per_page = per_page if per_page > 0 else max(self.per_page, 1)
        return page, min(per_page, max(self.max_per_page, 1))


def utcnow() -> datetime:
    """Timezone-aware current instant used for every service-side timestamp."""
    return datetime.now(timezone.utc)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work bound to
      the caller's :class:`ServiceContext`.
    * Hold the injected storage accessor and component logger.

    Notes
    -----
    - Services are built once per application; the per-request context is
      passed to every operation.
    - Services never touch the session directly; always use a Unit of Work.
    """

    def __init__(self, database: Database, *, log: logging.Logger | None = None) -> None:
        """
        :param database: Storage accessor shared by every unit of work.
        :param log: Component logger; defaults to ``get_logger("service")``.
        """
        self.database = database
        self.log = log or get_logger("service")

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self, ctx: ServiceContext | None) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork(self.database, ctx)

    def ro_uow(self, ctx: ServiceContext | None) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(self.database, ctx)
