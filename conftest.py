from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

import pytest

from src.marketplace_backend.marketplace_backend.container import Container
from src.marketplace_backend.marketplace_backend.core.enums import UserRole, UserStatus
from src.marketplace_backend.marketplace_backend.core.exceptions import DuplicateKeyError
from src.marketplace_backend.marketplace_backend.users.model import User
from src.marketplace_backend.marketplace_backend.users.service import UserService


class InMemoryUsers:
    """UserRepository double; enforces the unique email like the real table does."""

    def __init__(self):
        self.by_id: Dict[str, User] = {}
        self._clock = datetime(2026, 1, 1, 9, 0, 0)
        self.fail_with: Optional[Exception] = None
        self.calls: list[str] = []

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def add(self, user: User) -> User:
        self.by_id[user.user_id] = user
        return user

    def create_user(self, *, email, password_hash, first_name, last_name, role, status, phone) -> User:
        self._maybe_fail("create_user")
        if any(u.email == email for u in self.by_id.values()):
            raise DuplicateKeyError(f"Duplicate entry '{email}' for key 'uq_users_email'")
        now = self._tick()
        return self.add(
            User(
                user_id=str(uuid.uuid4()),
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                role=role,
                status=status,
                phone=phone,
                created_at=now,
                updated_at=now,
            )
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        self._maybe_fail("get_by_id")
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        self._maybe_fail("get_by_email")
        return next((u for u in self.by_id.values() if u.email == email), None)

    def update_user(self, *, user_id, first_name, last_name, phone, avatar_url) -> Optional[User]:
        self._maybe_fail("update_user")
        user = self.by_id.get(user_id)
        if user is None:
            return None
        return self.add(
            dataclasses.replace(
                user,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                avatar_url=avatar_url,
                updated_at=self._tick(),
            )
        )

    def update_status(self, user_id: str, *, status: UserStatus) -> bool:
        self._maybe_fail("update_status")
        user = self.by_id.get(user_id)
        if user is None:
            return False
        self.add(dataclasses.replace(user, status=status))
        return True

    def _filtered(self, role, status):
        rows = [
            u
            for u in self.by_id.values()
            if (role is None or u.role == role) and (status is None or u.status == status)
        ]
        rows.sort(key=lambda u: u.created_at, reverse=True)
        return rows

    def list_users(self, *, role=None, status=None, limit, offset):
        self._maybe_fail("list_users")
        return self._filtered(role, status)[offset : offset + limit]

    def count_users(self, *, role=None, status=None) -> int:
        self._maybe_fail("count_users")
        return len(self._filtered(role, status))


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def user_service(users_repo) -> UserService:
    return UserService(users_repo, logger=logging.getLogger("tests.users.service"))


@pytest.fixture
def app(monkeypatch, users_repo, user_service):
    from src.marketplace_backend.marketplace_backend.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    container = Container(
        conn=None,
        users_repo=users_repo,
        user_service=user_service,
        controller_logger=logging.getLogger("tests.users.controller"),
    )
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(users_repo):
    """Insert a user straight into the fake repository (no hashing)."""

    def _make(email: str, *, role=UserRole.GAMER, status=UserStatus.ACTIVE, password_hash="x$y$z", **extra):
        now = users_repo._tick()
        return users_repo.add(
            User(
                user_id=str(uuid.uuid4()),
                email=email,
                password_hash=password_hash,
                first_name=extra.pop("first_name", "Test"),
                last_name=extra.pop("last_name", "User"),
                role=role,
                status=status,
                created_at=now,
                updated_at=now,
                **extra,
            )
        )

    return _make
