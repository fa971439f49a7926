"""
Role gates for mutator operations.

Each guard inspects the explicit `Session` handed to an operation and raises
`ForbiddenError` when the caller may not perform it. Guards run before any
store I/O.
"""
from __future__ import annotations

from typing import Optional

from classroom.errors import ForbiddenError
from classroom.identity_access.session import Session
from classroom.teaching.models import Course, User


def require_logged_in(session: Session) -> User:
    if session.user is None:
        raise ForbiddenError("login_required", "Please log in first.")
    return session.user


def require_admin(session: Session) -> User:
    user = require_logged_in(session)
    if not session.is_admin:
        raise ForbiddenError("admin_required")
    return user


def require_course_editor(session: Session) -> User:
    """Admins and approved teachers may manage courses."""
    user = require_logged_in(session)
    if not (session.is_admin or session.is_approved_teacher):
        raise ForbiddenError("course_editor_required")
    return user


def require_course_owner(session: Session, course: Optional[Course]) -> User:
    """Admins may edit any course; teachers only the ones they created."""
    user = require_course_editor(session)
    if session.is_admin or course is None:
        return user
    if (course.teacher_email or "").lower() != user.email.lower():
        raise ForbiddenError("course_not_owned", "You can only manage your own courses.")
    return user


__all__ = ["require_logged_in", "require_admin", "require_course_editor", "require_course_owner"]
