from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateKeyError, PersistenceError, QueryTimeoutError
from .connection import DatabaseConnection

# ER_QUERY_TIMEOUT: "Query execution was interrupted, maximum statement execution time exceeded".
_ER_QUERY_TIMEOUT = 3024
_TIMEOUT_ERRNOS = {_ER_QUERY_TIMEOUT, errorcode.ER_QUERY_INTERRUPTED}


def translate_db_error(exc: mysql.connector.Error) -> PersistenceError:
    """Map a driver error onto the persistence error kinds the services understand."""

    errno = getattr(exc, "errno", None)
    if errno == errorcode.ER_DUP_ENTRY:
        return DuplicateKeyError(str(exc))
    if errno in _TIMEOUT_ERRNOS:
        return QueryTimeoutError(str(exc))
    return PersistenceError(str(exc))


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise translate_db_error(e) from e
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise translate_db_error(e) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
