from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import UserService

LOGGER_NAME = "marketplace_backend"


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository

    user_service: UserService
    controller_logger: logging.Logger


def build_container(*, db_config: dict, logger: Optional[logging.Logger] = None) -> Container:
    root = logger or logging.getLogger(LOGGER_NAME)
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    user_service = UserService(users_repo, logger=root.getChild("users.service"))

    return Container(
        conn=conn,
        users_repo=users_repo,
        user_service=user_service,
        controller_logger=root.getChild("users.controller"),
    )
