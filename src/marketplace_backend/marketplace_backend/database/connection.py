from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from mysql.connector import pooling
from mysql.connector.constants import ClientFlag


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_name: str = "marketplace"
    pool_size: int = 10
    # 0 disables the per-statement limit.
    statement_timeout_ms: int = 0
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "marketplace")),
            pool_name=str(db_config.get("pool_name", "marketplace")),
            pool_size=int(db_config.get("pool_size", 10)),
            statement_timeout_ms=int(db_config.get("statement_timeout_ms", 0)),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
        )


class DatabaseConnection:
    """Pooled DB connection factory shared by every request.

    Connections are borrowed per operation; ``close()`` on a pooled connection
    hands it back to the pool. The pool is created lazily on first use.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._lock = threading.Lock()

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=self._config.pool_name,
                    pool_size=int(self._config.pool_size),
                    pool_reset_session=True,
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                    connection_timeout=int(self._config.connect_timeout),
                    # rowcount reports matched rows, so an UPDATE that changes nothing still counts.
                    client_flags=[ClientFlag.FOUND_ROWS],
                )
        return self._pool

    def connect(self):
        conn = self._get_pool().get_connection()
        if self._config.statement_timeout_ms > 0:
            # Session reset on return to the pool clears this, so set it on every checkout.
            try:
                cur = conn.cursor()
                try:
                    cur.execute("SET SESSION max_execution_time = %s", (int(self._config.statement_timeout_ms),))
                finally:
                    cur.close()
            except BaseException:
                # Hand the connection back, otherwise the pool slot is lost.
                conn.close()
                raise
        return conn
