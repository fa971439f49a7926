"""
Payment and teacher verification workflows.

Why:
    These operations span the user list and the site document, which are
    persisted independently. The user list is always saved first and the site
    document second, so a queue entry never points at a missing user. When
    filing a request fails at the site commit, the previous user list is saved
    back so the caller can retry.

Behavior:
    - Filing a payment verification uploads the screenshot, records a pending
      enrollment on the caller's user record, then queues the request.
    - Approve/reject drop the request and release the screenshot after the
      site document is committed. Teacher approval transfers the request's
      photo key to a new Tutor; teacher rejection deletes the pending user and
      releases both blobs.
    - Decisions on ids that are no longer queued are silent no-ops.

Permissions:
    Any logged-in user may file a payment verification for themselves; only
    admins decide.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from classroom.errors import ConflictError, ForbiddenError, ValidationError
from classroom.identity_access.guards import require_admin, require_logged_in
from classroom.identity_access.session import Session
from classroom.storage.ports import DocumentStoreProtocol
from classroom.storage.uploads import KIND_IMAGE, Upload
from classroom.teaching.models import (
    Enrollment,
    EnrollmentStatus,
    SiteDocument,
    TeacherVerificationRequest,
    Tutor,
    User,
    UserRole,
    UserStatus,
    VerificationRequest,
)
from classroom.teaching.services.base import SiteMutator
from classroom.teaching.services.cleanup import UploadBatch, release_blobs, restore_users

_log = logging.getLogger("classroom.teaching")


def _find_request(requests, request_id: int):
    return next((r for r in requests if r.id == request_id), None)


def _find_user(users: List[User], email: str) -> Optional[User]:
    return next((u for u in users if u.matches_email(email)), None)


@dataclass(kw_only=True)
class VerificationsService(SiteMutator):
    documents: DocumentStoreProtocol

    # --- payment verification ------------------------------------------------------

    async def add_verification_request(
        self,
        session: Session,
        course_id: int,
        transaction_id: str,
        screenshot: Optional[Upload],
    ) -> Optional[VerificationRequest]:
        caller = require_logged_in(session)
        transaction_id = (transaction_id or "").strip()
        if not transaction_id or screenshot is None:
            raise ValidationError("payment_proof_required", "Transaction ID and a payment screenshot are required.")
        self.policy.check(screenshot, KIND_IMAGE, required=True, field="payment_screenshot")
        site = self.site
        if site is None or site.course(course_id) is None:
            return None

        users = await self.documents.load_users()
        user = _find_user(users, caller.email)
        if user is None:
            session.clear()
            raise ForbiddenError("login_required", "Please log in first.")
        existing = user.enrollment_for(course_id)
        if existing is not None:
            code = "already_enrolled" if existing.status == EnrollmentStatus.ENROLLED else "enrollment_pending"
            raise ConflictError(code, "You already requested access to this course.")

        previous = [u.model_copy(deep=True) for u in users]
        users_saved = False
        batch = UploadBatch(self.blobs, context="add_verification_request")
        try:
            screenshot_key = await batch.put(screenshot)
            user.enrollments.append(Enrollment(course_id=course_id, status=EnrollmentStatus.PENDING))
            await self.documents.save_users(users)
            users_saved = True

            site = self.state.site
            if site is None:
                raise RuntimeError("site document is not loaded")
            course = site.course(course_id)
            request = VerificationRequest(
                id=self.ids.next_id(),
                user_name=user.name,
                user_email=user.email,
                course_id=course_id,
                course_name=course.name if course is not None else "",
                transaction_id=transaction_id,
                screenshot_key=screenshot_key,
            )
            await self.state.commit(
                site.model_copy(update={"pending_verifications": [*site.pending_verifications, request]})
            )
        except Exception:
            if users_saved:
                await restore_users(self.documents, previous, context="add_verification_request")
            await batch.abort()
            raise
        session.sync(users)
        _log.info("payment verification queued: request=%s course=%s", request.id, course_id)
        return request

    async def approve_verification(self, session: Session, request_id: int) -> Optional[VerificationRequest]:
        return await self._decide_payment(session, request_id, approve=True)

    async def reject_verification(self, session: Session, request_id: int) -> Optional[VerificationRequest]:
        return await self._decide_payment(session, request_id, approve=False)

    async def _decide_payment(
        self, session: Session, request_id: int, *, approve: bool
    ) -> Optional[VerificationRequest]:
        require_admin(session)
        site = self.site
        request = _find_request(site.pending_verifications, request_id) if site is not None else None
        if request is None:
            return None

        users = await self.documents.load_users()
        user = _find_user(users, request.user_email)
        if user is not None:
            if approve:
                enrollment = user.enrollment_for(request.course_id)
                if enrollment is None:
                    user.enrollments.append(
                        Enrollment(course_id=request.course_id, status=EnrollmentStatus.ENROLLED)
                    )
                else:
                    enrollment.status = EnrollmentStatus.ENROLLED
            else:
                user.enrollments = [
                    e
                    for e in user.enrollments
                    if not (e.course_id == request.course_id and e.status == EnrollmentStatus.PENDING)
                ]
            await self.documents.save_users(users)
        else:
            _log.warning("verification for unknown user: request=%s", request_id)

        if not await self._drop_request("pending_verifications", request_id):
            return None
        context = "approve_verification" if approve else "reject_verification"
        await release_blobs(self.blobs, [request.screenshot_key], context=context)
        _log.info("payment verification decided: request=%s approved=%s", request_id, approve)
        return request

    # --- teacher verification ------------------------------------------------------

    async def approve_teacher_verification(self, session: Session, request_id: int) -> Optional[Tutor]:
        require_admin(session)
        site = self.site
        request = _find_request(site.teacher_verification_requests, request_id) if site is not None else None
        if request is None:
            return None

        users = await self.documents.load_users()
        user = _find_user(users, request.user_email)
        if user is not None and user.role == UserRole.TEACHER:
            user.status = UserStatus.APPROVED
            await self.documents.save_users(users)

        site = self.state.site
        if site is None or _find_request(site.teacher_verification_requests, request_id) is None:
            return None
        tutor = Tutor(
            id=self.ids.next_id(),
            name=request.user_name,
            designation=request.designation,
            qualifications=request.qualifications,
            experience=request.experience,
            photo_key=request.photo_key,
        )
        await self.state.commit(
            site.model_copy(
                update={
                    "tutors": [*site.tutors, tutor],
                    "teacher_verification_requests": [
                        r for r in site.teacher_verification_requests if r.id != request_id
                    ],
                }
            )
        )
        # The photo now belongs to the tutor; only the screenshot goes.
        await release_blobs(self.blobs, [request.screenshot_key], context="approve_teacher_verification")
        _log.info("teacher approved: request=%s tutor=%s", request_id, tutor.id)
        return tutor

    async def reject_teacher_verification(
        self, session: Session, request_id: int
    ) -> Optional[TeacherVerificationRequest]:
        require_admin(session)
        site = self.site
        request = _find_request(site.teacher_verification_requests, request_id) if site is not None else None
        if request is None:
            return None

        users = await self.documents.load_users()
        remaining = [
            u
            for u in users
            if not (u.matches_email(request.user_email) and u.role == UserRole.TEACHER and u.status == UserStatus.PENDING)
        ]
        if len(remaining) != len(users):
            await self.documents.save_users(remaining)

        if not await self._drop_request("teacher_verification_requests", request_id):
            return None
        await release_blobs(
            self.blobs, [request.screenshot_key, request.photo_key], context="reject_teacher_verification"
        )
        _log.info("teacher rejected: request=%s", request_id)
        return request

    async def _drop_request(self, attr: str, request_id: int) -> bool:
        """Commit the freshest site document without the given queue entry."""
        site: Optional[SiteDocument] = self.state.site
        if site is None:
            return False
        queue = getattr(site, attr)
        if _find_request(queue, request_id) is None:
            return False
        await self.state.commit(site.model_copy(update={attr: [r for r in queue if r.id != request_id]}))
        return True


__all__ = ["VerificationsService"]
