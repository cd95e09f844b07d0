from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

import mysql.connector

from ..core.enums import UserRole
from ..core.exceptions import NotFoundError
from ..users.model import CreateUserRequest, User
from ..users.service import UserService
from .connection import DBConfig

log = logging.getLogger("marketplace_backend.database.bootstrap")

SCHEMA_PATH = Path(__file__).resolve().parents[4] / "database" / "schema.sql"


_DB_SELECTION_RE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")
_LINE_COMMENT_RE = re.compile(r"(?m)^\s*--.*$")


def schema_body(sql: str) -> str:
    """Drop comment lines and any CREATE DATABASE / USE from a schema script.

    The target database comes from ``DB_CONFIG``, never from the file.
    """
    return _LINE_COMMENT_RE.sub("", _DB_SELECTION_RE.sub("", sql))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Yield the ``;``-separated statements of ``sql``, ignoring ``;`` inside quoted literals."""
    buf: list[str] = []
    quote: Optional[str] = None
    chars = iter(sql)

    for ch in chars:
        if ch == "\\":
            buf.append(ch)
            buf.append(next(chars, ""))
        elif quote is not None:
            buf.append(ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connect_timeout,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    target = DBConfig.from_dict(db_config)
    ensure_database_exists(db_config)

    schema_path = Path(schema_path)
    sql = schema_body(schema_path.read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    log.info("schema applied from %s to %s", schema_path, target.database)


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def ensure_super_admin(
    service: UserService,
    *,
    email: str,
    password: str,
    first_name: str = "Super",
    last_name: str = "Admin",
) -> Optional[User]:
    """Create the initial super admin unless an account with that email exists.

    Returns the new user, or ``None`` when nothing was created.
    """

    try:
        service.get_user_by_email(email)
        log.info("super admin %s already present", email)
        return None
    except NotFoundError:
        pass

    req = CreateUserRequest.from_payload(
        {
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "role": UserRole.SUPER_ADMIN.value,
        }
    )
    user = service.create_user(req)
    log.info("super admin %s created", email)
    return user
