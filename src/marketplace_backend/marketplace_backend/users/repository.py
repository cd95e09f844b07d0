from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import UserRole, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete
    database. Lookups return ``None`` when no row matches; errors are reserved
    for failed lookups.
    """

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
        raise NotImplementedError

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def update_user(
        self,
        *,
        user_id: str,
        first_name: str,
        last_name: str,
        phone: Optional[str],
        avatar_url: Optional[str],
    ) -> Optional[User]:
        raise NotImplementedError

    def update_status(self, user_id: str, *, status: UserStatus) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        limit: int,
        offset: int,
    ) -> Sequence[User]:
        """Newest first."""

        raise NotImplementedError

    def count_users(
        self,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> int:
        raise NotImplementedError
