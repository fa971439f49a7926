"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles to avoid drift between services and callers.
- Keep the login panel names used in error messages in one place.
"""

from __future__ import annotations

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"student", "teacher", "admin"})


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def panel_name(role: str) -> str:
    """Return the display name of the login panel for a role ("Teacher")."""
    role = str(getattr(role, "value", role) or "")
    return role[:1].upper() + role[1:]


__all__ = ["ALLOWED_ROLES", "normalize_email", "panel_name"]
