from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Role assigned at creation; not changeable through profile updates."""

    GAMER = "gamer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, Enum):
    """Account lifecycle state. ``INACTIVE`` doubles as the soft-delete marker."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
