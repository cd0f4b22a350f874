"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, jsonify, request

from useradmin.core.errors import BadRequest
from useradmin.core.logger import ensure_request_id
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import CanceledError
from useradmin.services.users.service import UserService

F = TypeVar("F", bound=Callable[..., Any])

USER_SERVICE_KEY = "user_service"
AUTH_SERVICE_KEY = "auth_service"
SHUTDOWN_EVENT_KEY = "shutdown_event"
ABORT_EVENT_KEY = "abort_event"

INT64_MAX = 2**63 - 1


def get_user_service() -> UserService:
    """Return the :class:`UserService` wired by the application factory."""

    return cast(UserService, current_app.extensions[USER_SERVICE_KEY])


def shutdown_event() -> threading.Event:
    """Return the process-wide stop signal shared with the supervisor."""

    return cast(threading.Event, current_app.extensions[SHUTDOWN_EVENT_KEY])


def abort_event() -> threading.Event:
    """Return the signal that cancels requests still running after the grace period."""

    return cast(threading.Event, current_app.extensions[ABORT_EVENT_KEY])


def service_context() -> ServiceContext:
    """Build the operation context for the current request.

    The deadline is ``REQUEST_TIMEOUT_SECONDS`` from now. Work that starts
    after shutdown began is refused; work already running is only canceled
    by the abort signal.

    :raises CanceledError: When the supervisor is shutting down.
    """

    if shutdown_event().is_set():
        raise CanceledError("Operation canceled: shutdown in progress")
    return ServiceContext.with_timeout(
        current_app.config.get("REQUEST_TIMEOUT_SECONDS"),
        cancel_event=abort_event(),
        request_id=ensure_request_id(),
    )


def parse_int64(raw: str, *, name: str = "id") -> int:
    """Parse a base-10 signed 64-bit integer path value.

    :raises BadRequest: When ``raw`` is not a valid int64.
    """

    value = raw.strip()
    digits = value[1:] if value[:1] in "+-" else value
    if not digits or not digits.isascii() or not digits.isdigit():
        raise BadRequest(f"Invalid {name}: {raw!r}")
    parsed = int(value)
    if not -INT64_MAX - 1 <= parsed <= INT64_MAX:
        raise BadRequest(f"Invalid {name}: {raw!r}")
    return parsed


def json_body() -> dict[str, Any]:
    """Return the JSON request body; a missing or non-object body is a 400."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def empty_response(status: int) -> Response:
    """Return a body-less response with ``status``."""

    return Response(status=status)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
