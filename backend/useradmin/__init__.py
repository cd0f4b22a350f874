"""User identity administration backend.

Provide convenient access to :func:`useradmin.factory.create_app` so callers
can ``from useradmin import create_app``.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
