"""
Typed failures raised by the classroom core.

Why:
    Callers need to tell a bad form submission from a duplicate account, a
    rejected login or a broken disk without parsing messages. Each error keeps
    a short machine-readable `code` (e.g. ``"pending_approval"``) next to the
    human-readable message shown by the presentation layer.

Conventions:
    - Errors mix in the builtin that matches their concern (ValueError,
      LookupError, RuntimeError) so generic handlers keep working.
    - Mutator operations never raise NotFoundError for stale ids; they return
      None instead. The type exists for direct store access (blob `get`).
"""
from __future__ import annotations


class ClassroomError(Exception):
    """Base class for all classroom core failures."""

    default_message = "classroom error"

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(ClassroomError, ValueError):
    default_message = "Invalid input."


class ConflictError(ClassroomError):
    default_message = "An account with this email already exists."


class AuthError(ClassroomError):
    default_message = "Authentication failed."


class ForbiddenError(AuthError):
    default_message = "You are not allowed to perform this action."


class NotFoundError(ClassroomError, LookupError):
    default_message = "Not found."


class StorageFailure(ClassroomError, RuntimeError):
    default_message = "Storage operation failed."


__all__ = [
    "ClassroomError",
    "ValidationError",
    "ConflictError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "StorageFailure",
]
