from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..common.validators import (
    optional_text,
    require_choice,
    require_email,
    require_length_between,
    require_min_length,
    require_url,
)
from ..core.constants import (
    AVATAR_URL_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    MIN_PASSWORD_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    PHONE_MAX_LENGTH,
    PHONE_MIN_LENGTH,
)
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; persistence lives in the repository. ``password_hash``
    never leaves the process, see ``to_public_dict``.
    """

    user_id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: UserRole
    status: UserStatus
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.avatar_url is not None:
            out["avatar_url"] = self.avatar_url
        if self.phone is not None:
            out["phone"] = self.phone
        return out


class _FieldErrors:
    """Runs field validators and gathers every failure instead of stopping at the first."""

    def __init__(self) -> None:
        self.errors: List[dict] = []

    def check(self, field: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except ValidationError as e:
            self.errors.append({"field": field, "message": str(e)})
            return None

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(f"validation failed with {len(self.errors)} errors", self.errors)


def _optional_phone(value: Optional[str]) -> Optional[str]:
    phone = optional_text(value, "phone")
    if phone is None:
        return None
    return require_length_between(phone, "phone", PHONE_MIN_LENGTH, PHONE_MAX_LENGTH)


def _optional_avatar_url(value: Optional[str]) -> Optional[str]:
    url = optional_text(value, "avatar_url")
    if url is None:
        return None
    return require_url(url, "avatar_url", AVATAR_URL_MAX_LENGTH)


def _name(value: Optional[str], field: str) -> str:
    return require_length_between(value, field, NAME_MIN_LENGTH, NAME_MAX_LENGTH)


@dataclass(frozen=True)
class CreateUserRequest:
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole
    phone: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CreateUserRequest":
        v = _FieldErrors()
        email = v.check("email", lambda: require_email(payload.get("email"), "email", EMAIL_MAX_LENGTH))
        password = v.check(
            "password",
            lambda: require_min_length(payload.get("password"), "password", MIN_PASSWORD_LENGTH),
        )
        first_name = v.check("first_name", lambda: _name(payload.get("first_name"), "first_name"))
        last_name = v.check("last_name", lambda: _name(payload.get("last_name"), "last_name"))
        role = v.check("role", lambda: require_choice(payload.get("role"), "role", UserRole))
        phone = v.check("phone", lambda: _optional_phone(payload.get("phone")))
        v.raise_if_any()
        return cls(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )


@dataclass(frozen=True)
class UpdateUserRequest:
    """Profile update.

    ``phone`` and ``avatar_url`` set to ``None`` mean "keep the stored value";
    an empty string in the payload is read the same way.
    """

    first_name: str
    last_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UpdateUserRequest":
        v = _FieldErrors()
        first_name = v.check("first_name", lambda: _name(payload.get("first_name"), "first_name"))
        last_name = v.check("last_name", lambda: _name(payload.get("last_name"), "last_name"))
        phone = v.check("phone", lambda: _optional_phone(payload.get("phone")))
        avatar_url = v.check("avatar_url", lambda: _optional_avatar_url(payload.get("avatar_url")))
        v.raise_if_any()
        return cls(first_name=first_name, last_name=last_name, phone=phone, avatar_url=avatar_url)


@dataclass(frozen=True)
class LoginRequest:
    email: str
    password: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LoginRequest":
        v = _FieldErrors()
        email = v.check("email", lambda: require_email(payload.get("email"), "email", EMAIL_MAX_LENGTH))
        password = v.check("password", lambda: _raw_password(payload.get("password")))
        v.raise_if_any()
        return cls(email=email, password=password)


@dataclass(frozen=True)
class UserStatusRequest:
    status: UserStatus

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UserStatusRequest":
        v = _FieldErrors()
        status = v.check("status", lambda: require_choice(payload.get("status"), "status", UserStatus))
        v.raise_if_any()
        return cls(status=status)


def _raw_password(value: Any) -> str:
    # Compared verbatim against the stored hash; whitespace is significant.
    if not isinstance(value, str) or value == "":
        raise ValidationError("password is required")
    return value
