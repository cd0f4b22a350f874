"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Import-safe singleton; the per-app storage accessor wraps it (see database.py)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)


def _init_cors(app: Flask) -> None:
    """Allow the configured admin front-ends to call ``/api/*``.

    A blank or ``"*"`` ``CORS_ORIGINS`` allows any origin but disables
    credential support.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")

    CORS(
        app,
        resources={rf"{prefix}/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy and CORS to ``app``.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. Importing
        :mod:`useradmin.models` here registers every table on ``metadata``.
    """
    db.init_app(app)

    from useradmin import models as _models  # noqa: F401

    _init_cors(app)
