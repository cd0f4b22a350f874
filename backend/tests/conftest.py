"""Pytest fixtures configuring an isolated database layer.

Each test gets its own application bound to a fresh in-memory SQLite
database, so committed data never leaks between cases.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from flask import Flask

from tests.helpers.config import TestConfig
from useradmin.core.database import Database, get_database
from useradmin.core.extensions import db as _db  # Flask-SQLAlchemy instance
from useradmin.factory import create_app  # application factory under test
from useradmin.services._shared.context import ServiceContext
from useradmin.services.auth.service import AuthService
from useradmin.services.users.service import UserService


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application instance with :class:`TestConfig` applied and an app
        context pushed for the duration of the test.
    """
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    get_database(application).close()


@pytest.fixture()
def db(app: Flask) -> Generator[Any, None, None]:
    """Create database tables for the test.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture()
def session(db: Any) -> Any:
    """Return the scoped session shared by factories, repositories and services."""
    return db.session


@pytest.fixture()
def database(app: Flask, db: Any) -> Database:
    """Storage accessor registered by the application factory."""
    return get_database(app)


@pytest.fixture()
def ctx() -> ServiceContext:
    """Operation context with a generous deadline and no cancellation."""
    return ServiceContext.with_timeout(5.0)


@pytest.fixture()
def user_service(app: Flask, db: Any) -> UserService:
    return app.extensions["user_service"]


@pytest.fixture()
def auth_service(app: Flask, db: Any) -> AuthService:
    return app.extensions["auth_service"]


@pytest.fixture()
def client(app: Flask, db: Any) -> Any:
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory


# -- Hook up Factory Boy to the test session -----------------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the database."""
    from tests.factories import SQLAlchemySession

    if "db" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
