from __future__ import annotations

import re
from typing import Optional, Type, TypeVar
from urllib.parse import urlparse

from ..core.exceptions import ValidationError

E = TypeVar("E")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    require_min_length(value, field_name, min_len)
    return require_max_length(value, field_name, max_len)


def require_email(value: Optional[str], field_name: str, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} must be a valid email")
    return require_max_length(value, field_name, max_len)


def require_url(value: str, field_name: str, max_len: int) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(f"{field_name} must be a valid URL")
    return require_max_length(value, field_name, max_len)


def require_choice(value: Optional[str], field_name: str, enum_cls: Type[E]) -> E:
    try:
        return enum_cls(value)  # type: ignore[call-arg]
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)  # type: ignore[attr-defined]
        raise ValidationError(f"{field_name} must be one of: {allowed}") from None


def optional_text(value: Optional[str], field_name: str) -> Optional[str]:
    """Blank and missing values both mean "not provided"."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    value = value.strip()
    return value or None
