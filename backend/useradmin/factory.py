"""Application factory wiring config, storage, services and the HTTP router."""

from __future__ import annotations

import threading

from flask import Flask

from useradmin.core.config import BaseConfig, get_config
from useradmin.core.logger import configure_logging, get_logger
from useradmin.core.logger import init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    shutdown_event: threading.Event | None = None,
    abort_event: threading.Event | None = None,
) -> Flask:
    """Build and configure the Flask application.

    Wiring order follows the dependency graph: config, storage, services,
    router. The storage accessor and services are registered under
    ``app.extensions`` and shared by every request.

    :param config: Config object (or import path); ``APP_ENV`` decides when omitted.
    :param shutdown_event: Stop signal shared with the process supervisor.
        Once set, new requests are refused with 503. A private event is
        created when omitted.
    :param abort_event: Set by the HTTP listener when the shutdown grace
        period expires; cancels the storage calls of requests still running.
    """

    app = Flask(__name__)

    app.config.from_object(get_config() if config is None else config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from useradmin.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from useradmin.core.database import Database

    database = Database(extensions.db, log=get_logger("storage")).open(app)

    from useradmin.api.deps import (
        ABORT_EVENT_KEY,
        AUTH_SERVICE_KEY,
        SHUTDOWN_EVENT_KEY,
        USER_SERVICE_KEY,
    )
    from useradmin.services._shared.base import PaginationDefaults
    from useradmin.services.auth.service import AuthService
    from useradmin.services.users.service import UserService

    app.extensions[SHUTDOWN_EVENT_KEY] = shutdown_event or threading.Event()
    app.extensions[ABORT_EVENT_KEY] = abort_event or threading.Event()
    app.extensions[USER_SERVICE_KEY] = UserService(
        database,
        pagination=PaginationDefaults.from_config(app.config),
        log=get_logger("user.service"),
    )
    app.extensions[AUTH_SERVICE_KEY] = AuthService(database, log=get_logger("auth.service"))

    from useradmin.api import init_app as init_api

    init_api(app)

    from useradmin.core import errors

    errors.init_app(app)

    from useradmin import cli as app_cli

    app_cli.init_app(app)

    return app
