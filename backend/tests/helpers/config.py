"""Application configuration used across the test suite."""

from __future__ import annotations

from useradmin.core.config import TestingConfig


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps logging quiet and the CORS policy permissive.
    """

    __test__ = False  # not a pytest test class

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    CORS_ORIGINS = "*"
    REQUEST_TIMEOUT_SECONDS = 5.0
