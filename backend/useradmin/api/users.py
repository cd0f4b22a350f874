"""User endpoints."""

from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, request

from useradmin.api.deps import (
    empty_response,
    get_user_service,
    json_body,
    json_response,
    parse_int64,
    service_context,
    timing,
)
from useradmin.schemas import (
    CreateUserSchema,
    ForgotPasswordSchema,
    SearchUserQuerySchema,
    SearchUserResultSchema,
    UpdatePasswordSchema,
    UpdateStatusSchema,
    UpdateUserSchema,
    UserSchema,
)
from useradmin.services.users.dto import (
    SearchUserQuery,
    UpdatePasswordCommand,
    UpdateStatusCommand,
    UpdateUserCommand,
)

bp = Blueprint("users", __name__)

user_schema = UserSchema()
search_result_schema = SearchUserResultSchema()
create_schema = CreateUserSchema()
search_query_schema = SearchUserQuerySchema()
update_schema = UpdateUserSchema()
update_status_schema = UpdateStatusSchema()
update_password_schema = UpdatePasswordSchema()
forgot_password_schema = ForgotPasswordSchema()


@bp.post("/")
@timing
def create_user():
    """Create a user. Success carries no body."""

    cmd = create_schema.load(json_body())
    get_user_service().create(service_context(), cmd)
    return empty_response(200)


@bp.get("/")
@timing
def search_users():
    """Return one page of users; an empty query string means all defaults."""

    query = search_query_schema.load(request.args) if request.args else SearchUserQuery()
    result = get_user_service().search(service_context(), query)
    return json_response(search_result_schema.dump(asdict(result)))


@bp.get("/<raw_id>")
@timing
def get_user(raw_id: str):
    """Return a single user."""

    user = get_user_service().get_by_id(service_context(), parse_int64(raw_id))
    return json_response(user_schema.dump(user))


@bp.put("/<raw_id>")
@timing
def update_user(raw_id: str):
    """Replace the name parts of a user and return the refreshed record."""

    user_id = parse_int64(raw_id)
    data = update_schema.load(json_body())
    user = get_user_service().update(service_context(), UpdateUserCommand(id=user_id, **data))
    return json_response(user_schema.dump(user))


@bp.patch("/<raw_id>/status")
@timing
def update_status(raw_id: str):
    user_id = parse_int64(raw_id)
    data = update_status_schema.load(json_body())
    get_user_service().update_status(
        service_context(), UpdateStatusCommand(id=user_id, status=data["status"])
    )
    return empty_response(204)


@bp.put("/<raw_id>/password")
@timing
def update_password(raw_id: str):
    user_id = parse_int64(raw_id)
    data = update_password_schema.load(json_body())
    get_user_service().update_password(
        service_context(), UpdatePasswordCommand(id=user_id, password=data["password"])
    )
    return empty_response(204)


@bp.post("/forgot-password")
@timing
def forgot_password():
    """Accept a password recovery request. Nothing is delivered yet."""

    cmd = forgot_password_schema.load(json_body())
    get_user_service().forgot_password(service_context(), cmd)
    return empty_response(202)
