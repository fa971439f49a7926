"""
Session state and the session manager (login, logout, signup, teacher signup).

Why:
    The logged-in identity and its derived role flags are explicit state that
    is passed to every operation instead of living in module globals. A
    `Session` starts empty, is populated by `login()` or `restore()`, and is
    cleared by `logout()` or by a dangling session pointer.

Behavior:
    - `login()` waits a fixed artificial delay before answering and cannot be
      cancelled half-way; it either resolves or raises `AuthError`.
    - The admin panel accepts only the configured admin email. On the very
      first admin login the admin account is created when the bootstrap
      password is used.
    - Signups check email uniqueness (case-insensitive) against the freshest
      user list; duplicates raise `ConflictError` with no side effects.
    - Teacher signup spans both documents and the blob store: uploads first,
      then the pending user, then the verification request in the site
      document. A failed site commit removes the pending user again.

Permissions:
    Passwords are opaque strings compared verbatim; they are never logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import anyio

from classroom.config import Settings
from classroom.errors import AuthError, ConflictError, StorageFailure, ValidationError
from classroom.identity_access.domain import ALLOWED_ROLES, normalize_email, panel_name
from classroom.identity_access.stores import SessionPointerStore
from classroom.ids import IdGenerator
from classroom.storage.ports import BlobStoreProtocol, DocumentStoreProtocol
from classroom.storage.uploads import DEFAULT_POLICY, KIND_IMAGE, Upload, UploadPolicy
from classroom.teaching.models import (
    TeacherVerificationRequest,
    User,
    UserRole,
    UserStatus,
)
from classroom.teaching.services.cleanup import UploadBatch, restore_users
from classroom.teaching.state import SiteState

_log = logging.getLogger("classroom.identity_access")


@dataclass
class Session:
    """Identity of the caller plus derived role flags."""

    user: Optional[User] = None

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def is_approved_teacher(self) -> bool:
        return self.user is not None and self.user.is_approved_teacher

    @property
    def email(self) -> Optional[str]:
        return self.user.email if self.user is not None else None

    def populate(self, user: User) -> None:
        self.user = user

    def clear(self) -> None:
        self.user = None

    def sync(self, users: Sequence[User]) -> None:
        """Refresh the session user from a freshly saved user list.

        A user that no longer exists ends the session.
        """
        if self.user is None:
            return
        for candidate in users:
            if candidate.matches_email(self.user.email):
                self.user = candidate
                return
        self.clear()


def _find_user(users: Sequence[User], email: str) -> Optional[User]:
    for user in users:
        if user.matches_email(email):
            return user
    return None


def _require_text(value: str, code: str, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(code, message)
    return value


def _check_credentials_input(name: str, email: str, password: str, confirm_password: Optional[str]) -> tuple[str, str]:
    name = _require_text(name, "name_required", "Please enter your name.")
    email_l = normalize_email(email)
    if "@" not in email_l or email_l.startswith("@") or email_l.endswith("@"):
        raise ValidationError("invalid_email", "Please enter a valid email address.")
    if not password:
        raise ValidationError("password_required", "Please choose a password.")
    if confirm_password is not None and confirm_password != password:
        raise ValidationError("password_mismatch", "Passwords do not match.")
    return name, email_l


class SessionManager:
    def __init__(
        self,
        *,
        documents: DocumentStoreProtocol,
        pointer: SessionPointerStore,
        state: SiteState,
        blobs: BlobStoreProtocol,
        ids: IdGenerator,
        settings: Settings,
        policy: UploadPolicy = DEFAULT_POLICY,
    ) -> None:
        self._documents = documents
        self._pointer = pointer
        self._state = state
        self._blobs = blobs
        self._ids = ids
        self._settings = settings
        self._policy = policy

    # --- login / logout ------------------------------------------------------------

    async def login(self, session: Session, email: str, password: str, role: str) -> User:
        if str(getattr(role, "value", role)) not in ALLOWED_ROLES:
            raise ValidationError("invalid_role", f"Unknown login panel: {role!r}.")
        requested = UserRole(role)
        await anyio.sleep(self._settings.login_delay_seconds)
        users = await self._documents.load_users()
        email_l = normalize_email(email)

        if requested == UserRole.ADMIN:
            user = await self._login_admin(users, email_l, password)
        else:
            user = next((u for u in users if u.matches_email(email_l) and u.password == password), None)
            if user is None:
                self._reject("invalid_credentials", requested)
                raise AuthError("invalid_credentials", "Invalid email or password.")
            if user.role != requested:
                self._reject("wrong_panel", requested)
                raise AuthError("wrong_panel", f"Please use the {panel_name(user.role)} login panel.")
            if user.role == UserRole.TEACHER and user.status != UserStatus.APPROVED:
                self._reject("pending_approval", requested)
                raise AuthError("pending_approval", "Your teacher account is pending approval.")

        await self._pointer.set(user.email)
        session.populate(user)
        _log.info("login ok: role=%s", user.role.value)
        return user

    async def _login_admin(self, users: List[User], email_l: str, password: str) -> User:
        admin_email = normalize_email(self._settings.admin_email)
        if email_l != admin_email:
            self._reject("not_admin_email", UserRole.ADMIN)
            raise AuthError("not_admin_email", "Only the admin email can be used here.")
        admin = _find_user(users, admin_email)
        if admin is None and password == self._settings.admin_bootstrap_password:
            admin = User(
                name="Admin",
                email=admin_email,
                password=password,
                role=UserRole.ADMIN,
                status=UserStatus.APPROVED,
            )
            users.append(admin)
            await self._documents.save_users(users)
            _log.info("admin account bootstrapped")
            return admin
        if admin is None or admin.password != password:
            self._reject("invalid_password", UserRole.ADMIN)
            raise AuthError("invalid_password", "Invalid password for admin.")
        if admin.role != UserRole.ADMIN:
            self._reject("not_admin", UserRole.ADMIN)
            raise AuthError("not_admin", "This account does not have admin privileges.")
        return admin

    @staticmethod
    def _reject(reason: str, role: UserRole) -> None:
        _log.info("login rejected: panel=%s reason=%s", role.value, reason)

    async def logout(self, session: Session) -> None:
        """Clear the session unconditionally; never raises."""
        try:
            await self._pointer.clear()
        except StorageFailure as exc:
            _log.warning("session pointer clear failed: error=%s", exc.code)
        session.clear()

    async def restore(self, session: Session) -> Optional[User]:
        """Upgrade an anonymous session from the persisted session pointer.

        A pointer naming a user that no longer exists is an implicit logout:
        the pointer is cleared and the session stays anonymous.
        """
        email = await self._pointer.get()
        if not email:
            return None
        user = _find_user(await self._documents.load_users(), email)
        if user is None:
            _log.info("session pointer dangling; clearing")
            await self.logout(session)
            return None
        session.populate(user)
        return user

    # --- signup --------------------------------------------------------------------

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> User:
        name, email_l = _check_credentials_input(name, email, password, confirm_password)
        users = await self._documents.load_users()
        if _find_user(users, email_l) is not None:
            raise ConflictError("email_taken")
        user = User(name=name, email=email_l, password=password, role=UserRole.STUDENT, status=UserStatus.APPROVED)
        users.append(user)
        await self._documents.save_users(users)
        _log.info("student account created")
        return user

    async def teacher_signup(
        self,
        name: str,
        email: str,
        password: str,
        transaction_id: str,
        screenshot: Optional[Upload],
        designation: str,
        qualifications: str,
        experience: str,
        photo: Optional[Upload],
        confirm_password: Optional[str] = None,
    ) -> Optional[TeacherVerificationRequest]:
        name, email_l = _check_credentials_input(name, email, password, confirm_password)
        transaction_id = (transaction_id or "").strip()
        if not transaction_id or screenshot is None:
            raise ValidationError(
                "payment_proof_required", "Transaction ID and a payment screenshot are required."
            )
        self._policy.check(screenshot, KIND_IMAGE, required=True, field="payment_screenshot")
        self._policy.check(photo, KIND_IMAGE, required=True, field="profile_photo")
        if not self._state.is_loaded:
            return None

        users = await self._documents.load_users()
        if _find_user(users, email_l) is not None:
            raise ConflictError("email_taken")

        previous = list(users)
        users_saved = False
        batch = UploadBatch(self._blobs, context="teacher_signup")
        try:
            screenshot_key = await batch.put(screenshot)
            photo_key = await batch.put(photo)
            users.append(
                User(
                    name=name,
                    email=email_l,
                    password=password,
                    role=UserRole.TEACHER,
                    status=UserStatus.PENDING,
                )
            )
            await self._documents.save_users(users)
            users_saved = True

            request = TeacherVerificationRequest(
                id=self._ids.next_id(),
                user_name=name,
                user_email=email_l,
                transaction_id=transaction_id,
                screenshot_key=screenshot_key,
                photo_key=photo_key,
                designation=(designation or "").strip(),
                qualifications=(qualifications or "").strip(),
                experience=(experience or "").strip(),
            )
            site = self._state.site
            if site is None:
                raise RuntimeError("site document is not loaded")
            await self._state.commit(
                site.model_copy(
                    update={"teacher_verification_requests": [*site.teacher_verification_requests, request]}
                )
            )
        except Exception:
            if users_saved:
                await restore_users(self._documents, previous, context="teacher_signup")
            await batch.abort()
            raise
        _log.info("teacher registration queued: request=%s", request.id)
        return request


__all__ = ["Session", "SessionManager"]
