from __future__ import annotations

import uuid
from typing import Any, Mapping, Optional

from flask import Flask, request

from ..common.responses import error, paginated, success
from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import (
    AlreadyExistsError,
    AuthenticationError,
    DomainError,
    NotFoundError,
    OperationCancelledError,
    ValidationError,
)
from ..container import Container
from .model import CreateUserRequest, LoginRequest, UpdateUserRequest, UserStatusRequest

INTERNAL_ERROR = "Internal server error"


def _int_arg(value: Optional[str], default: int) -> int:
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def parse_paging(args: Mapping[str, str]) -> tuple[int, int]:
    """Invalid or non-positive values fall back to the defaults; limit is capped."""
    page = _int_arg(args.get("page"), DEFAULT_PAGE)
    limit = min(_int_arg(args.get("limit"), DEFAULT_PAGE_LIMIT), MAX_PAGE_LIMIT)
    return page, limit


def _optional_filter(args: Mapping[str, str], name: str, enum_cls):
    raw = (args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}") from None


def _json_body() -> Mapping[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("invalid JSON: expected an object")
    return payload


def _parse_user_id(raw: str) -> str:
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise ValidationError("invalid user ID") from None


def register(app: Flask, container: Container) -> None:
    service = container.user_service
    log = container.controller_logger

    def _validation_response(e: ValidationError):
        if e.errors:
            return error({"errors": e.errors}, 400, message=str(e))
        return error(str(e), 400)

    def _failure(e: DomainError, action: str, **ctx):
        """Map a service error to a response; anything unnamed is an internal failure."""
        extra = " ".join(f"{k}={v}" for k, v in ctx.items())
        if isinstance(e, ValidationError):
            log.info("%s: validation failed %s %s", action, e, extra)
            return _validation_response(e)
        if isinstance(e, NotFoundError):
            log.info("%s: not found %s", action, extra)
            return error("User not found", 404)
        if isinstance(e, AlreadyExistsError):
            log.info("%s: %s %s", action, e, extra)
            return error(str(e), 409)
        if isinstance(e, AuthenticationError):
            log.warning("%s: %s %s", action, e, extra)
            return error(str(e), 401)
        if isinstance(e, OperationCancelledError):
            log.warning("%s: %s %s", action, e, extra)
            return error("Request timed out", 504)
        log.error("%s failed: %s %s", action, e, extra)
        return error(INTERNAL_ERROR, 500)

    @app.route("/api/v1/users", methods=["POST"], endpoint="create_user")
    def create_user():
        try:
            req = CreateUserRequest.from_payload(_json_body())
            user = service.create_user(req)
        except DomainError as e:
            return _failure(e, "create user")

        log.info("user created successfully user_id=%s", user.user_id)
        return success(user.to_public_dict(), "User created successfully", status=201)

    @app.route("/api/v1/users", methods=["GET"], endpoint="list_users")
    def list_users():
        page, limit = parse_paging(request.args)
        try:
            role = _optional_filter(request.args, "role", UserRole)
            status = _optional_filter(request.args, "status", UserStatus)
            users = service.list_users(role=role, status=status, page=page, limit=limit)
            total = service.count_users(role=role, status=status)
        except DomainError as e:
            return _failure(e, "list users")

        return paginated([u.to_public_dict() for u in users], page=page, limit=limit, total=total)

    @app.route("/api/v1/users/<user_id>", methods=["GET"], endpoint="get_user")
    def get_user(user_id: str):
        try:
            user = service.get_user_by_id(_parse_user_id(user_id))
        except DomainError as e:
            return _failure(e, "get user", user_id=user_id)

        return success(user.to_public_dict())

    @app.route("/api/v1/users/<user_id>", methods=["PUT"], endpoint="update_user")
    def update_user(user_id: str):
        try:
            uid = _parse_user_id(user_id)
            req = UpdateUserRequest.from_payload(_json_body())
            user = service.update_user(uid, req)
        except DomainError as e:
            return _failure(e, "update user", user_id=user_id)

        log.info("user updated successfully user_id=%s", user.user_id)
        return success(user.to_public_dict(), "User updated successfully")

    @app.route("/api/v1/users/<user_id>/status", methods=["PATCH"], endpoint="update_user_status")
    def update_user_status(user_id: str):
        try:
            uid = _parse_user_id(user_id)
            req = UserStatusRequest.from_payload(_json_body())
            service.update_user_status(uid, req.status)
        except DomainError as e:
            return _failure(e, "update user status", user_id=user_id)

        log.info("user status updated user_id=%s status=%s", user_id, req.status.value)
        return success({"id": uid, "status": req.status.value}, "User status updated successfully")

    @app.route("/api/v1/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    def delete_user(user_id: str):
        # Soft delete: the row stays, the account becomes inactive.
        try:
            service.update_user_status(_parse_user_id(user_id), UserStatus.INACTIVE)
        except DomainError as e:
            return _failure(e, "delete user", user_id=user_id)

        log.info("user deleted successfully user_id=%s", user_id)
        return success(None, "User deleted successfully")

    @app.route("/api/v1/auth/login", methods=["POST"], endpoint="login")
    def login():
        email = None
        try:
            req = LoginRequest.from_payload(_json_body())
            email = req.email
            user = service.login(req.email, req.password)
        except DomainError as e:
            return _failure(e, "login", email=email)

        log.info("user logged in successfully user_id=%s", user.user_id)
        return success(user.to_public_dict(), "Login successful")
