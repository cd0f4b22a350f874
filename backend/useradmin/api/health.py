"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app

from useradmin.api.deps import json_response, service_context, timing
from useradmin.core.database import get_database

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report whether the database answers; 503 when it does not."""

    ok = get_database(current_app).ping(service_context())
    payload = {"status": "ok" if ok else "degraded", "db": "ok" if ok else "fail"}
    return json_response(payload, status=200 if ok else 503)
