from __future__ import annotations

import logging
from typing import Callable, List, Optional, TypeVar

from werkzeug.security import check_password_hash, generate_password_hash

from ..core.constants import PASSWORD_HASH_METHOD, PASSWORD_SALT_LENGTH
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import (
    AccountInactiveError,
    AlreadyExistsError,
    DuplicateKeyError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    OperationCancelledError,
    PersistenceError,
    QueryTimeoutError,
)
from .model import CreateUserRequest, UpdateUserRequest, User
from .repository import UserRepository

T = TypeVar("T")


def hash_password(password: str) -> str:
    """Salted scrypt hash; method, cost and salt are embedded in the result."""
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD, salt_length=PASSWORD_SALT_LENGTH)


def verify_password(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # Malformed or unsupported stored hash.
        return False


class UserService:
    """Use cases for the user entity: registration, profile, status and login.

    Business-rule violations raise the named ``DomainError`` kinds. Failures of
    the repository are logged and surface as ``InternalError``, or as
    ``OperationCancelledError`` when the database gave up on a slow statement.
    """

    def __init__(self, users: UserRepository, *, logger: logging.Logger):
        self._users = users
        self._log = logger

    def _call(self, action: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except DuplicateKeyError as e:
            # users.email is the only unique key besides the generated id.
            self._log.info("%s rejected by unique constraint: %s", action, e)
            raise AlreadyExistsError("user with this email already exists") from e
        except QueryTimeoutError as e:
            self._log.warning("%s timed out: %s", action, e)
            raise OperationCancelledError(f"{action} timed out") from e
        except PersistenceError as e:
            self._log.error("%s failed: %s", action, e, exc_info=True)
            raise InternalError(f"{action} failed") from e

    def _require(self, user_id: str) -> User:
        user = self._call("get user", lambda: self._users.get_by_id(user_id))
        if user is None:
            raise NotFoundError("user not found")
        return user

    def create_user(self, req: CreateUserRequest) -> User:
        existing = self._call("check existing user", lambda: self._users.get_by_email(req.email))
        if existing is not None:
            raise AlreadyExistsError("user with this email already exists")

        try:
            password_hash = hash_password(req.password)
        except ValueError as e:
            self._log.error("hashing password failed: %s", e, exc_info=True)
            raise InternalError("hashing password failed") from e

        user = self._call(
            "create user",
            lambda: self._users.create_user(
                email=req.email,
                password_hash=password_hash,
                first_name=req.first_name,
                last_name=req.last_name,
                role=req.role,
                status=UserStatus.ACTIVE,
                phone=req.phone or None,
            ),
        )

        self._log.info("user created user_id=%s role=%s", user.user_id, user.role.value)
        return user

    def get_user_by_id(self, user_id: str) -> User:
        return self._require(user_id)

    def get_user_by_email(self, email: str) -> User:
        user = self._call("get user", lambda: self._users.get_by_email(email))
        if user is None:
            raise NotFoundError("user not found")
        return user

    def update_user(self, user_id: str, req: UpdateUserRequest) -> User:
        existing = self._require(user_id)

        # Phone and avatar are only replaced when the request carries a value.
        phone = req.phone if req.phone else existing.phone
        avatar_url = req.avatar_url if req.avatar_url else existing.avatar_url

        updated = self._call(
            "update user",
            lambda: self._users.update_user(
                user_id=user_id,
                first_name=req.first_name,
                last_name=req.last_name,
                phone=phone,
                avatar_url=avatar_url,
            ),
        )
        if updated is None:
            raise NotFoundError("user not found")

        self._log.info("user updated user_id=%s", user_id)
        return updated

    def update_user_status(self, user_id: str, status: UserStatus) -> None:
        self._require(user_id)

        if not self._call("update user status", lambda: self._users.update_status(user_id, status=status)):
            raise NotFoundError("user not found")

        self._log.info("user status changed user_id=%s status=%s", user_id, status.value)

    def list_users(
        self,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        page: int,
        limit: int,
    ) -> List[User]:
        offset = (page - 1) * limit
        users = self._call(
            "list users",
            lambda: self._users.list_users(role=role, status=status, limit=limit, offset=offset),
        )
        return list(users)

    def count_users(self, *, role: Optional[UserRole] = None, status: Optional[UserStatus] = None) -> int:
        return self._call("count users", lambda: self._users.count_users(role=role, status=status))

    def login(self, email: str, password: str) -> User:
        user = self._call("get user", lambda: self._users.get_by_email(email))
        if user is None:
            raise InvalidCredentialsError("invalid credentials")

        if not verify_password(user.password_hash, password):
            raise InvalidCredentialsError("invalid credentials")

        if user.status != UserStatus.ACTIVE:
            raise AccountInactiveError("user account is inactive")

        self._log.info("user logged in user_id=%s", user.user_id)
        return user
