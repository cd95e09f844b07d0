from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, errors: Optional[Sequence[dict]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class AlreadyExistsError(DomainError):
    """Raised when a user with the same email is already registered."""


class NotFoundError(DomainError):
    """Raised when the requested user does not exist."""


class AuthenticationError(DomainError):
    """Raised when login is refused."""


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password; deliberately indistinguishable."""


class AccountInactiveError(AuthenticationError):
    """Credentials are correct but the account is not active."""


class InternalError(DomainError):
    """Unexpected lookup, hashing or persistence failure."""


class OperationCancelledError(DomainError):
    """The operation exceeded its time limit and was abandoned."""


class PersistenceError(Exception):
    """Failure reported by the database layer."""


class DuplicateKeyError(PersistenceError):
    """A unique constraint rejected the statement."""


class QueryTimeoutError(PersistenceError):
    """The server interrupted a statement that ran past its time limit."""
