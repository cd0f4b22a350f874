"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from useradmin.repositories.base import BaseRepository, Page, paginate_select
from useradmin.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "paginate_select",
    # Domain
    "UserRepository",
]
