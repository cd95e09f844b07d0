from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Sequence

from ..core.enums import UserRole, UserStatus
from ..core.exceptions import PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = """
    id, email, password_hash, first_name, last_name, role, status,
    avatar_url, phone, created_at, updated_at
"""

_FILTERS = """
    WHERE (%s IS NULL OR role=%s)
      AND (%s IS NULL OR status=%s)
"""


def _row_to_user(row: Dict[str, Any]) -> User:
    try:
        role = UserRole(row["role"])
        status = UserStatus(row["status"])
    except ValueError as e:
        raise PersistenceError(f"Unexpected enum value in users row {row.get('id')}: {e}") from e
    return User(
        user_id=str(row["id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=role,
        status=status,
        avatar_url=row.get("avatar_url"),
        phone=row.get("phone"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _filter_params(role: Optional[UserRole], status: Optional[UserStatus]) -> tuple:
    role_v = role.value if role else None
    status_v = status.value if status else None
    return (role_v, role_v, status_v, status_v)


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, where: str, value: str) -> Optional[User]:
        cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s LIMIT 1", (value,))
        row = fetchone(cur)
        if not row:
            return None
        return _row_to_user(row)

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        status: UserStatus,
        phone: Optional[str],
    ) -> User:
        user_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            # users.email is UNIQUE; a concurrent insert with the same email fails here.
            cur.execute(
                """
                INSERT INTO users(id, email, password_hash, first_name, last_name, role, status, phone)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (user_id, email, password_hash, first_name, last_name, role.value, status.value, phone),
            )
            created = self._select_one(cur, "id", user_id)
        if created is None:
            raise PersistenceError(f"Inserted user {user_id} could not be read back")
        return created

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, "id", user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, "email", email)

    def update_user(
        self,
        *,
        user_id: str,
        first_name: str,
        last_name: str,
        phone: Optional[str],
        avatar_url: Optional[str],
    ) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET first_name=%s, last_name=%s, phone=%s, avatar_url=%s
                WHERE id=%s
                """,
                (first_name, last_name, phone, avatar_url, user_id),
            )
            if cur.rowcount == 0:
                return None
            return self._select_one(cur, "id", user_id)

    def update_status(self, user_id: str, *, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE id=%s", (status.value, user_id))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        limit: int,
        offset: int,
    ) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                {_FILTERS}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                _filter_params(role, status) + (int(limit), int(offset)),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def count_users(
        self,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users {_FILTERS}", _filter_params(role, status))
            row = fetchone(cur)
            return int(row["total"]) if row else 0
