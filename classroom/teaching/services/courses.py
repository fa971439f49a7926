"""
Course and lecture use cases.

Courses own their image and every lecture's video and pdf blobs. Deleting a
course releases all of them after the course is gone from the committed
document; a failed release is logged and never blocks the deletion.

Permissions:
    Admins manage every course. Approved teachers create courses (stamped with
    their email as `teacher_email`) and manage only those.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from classroom.errors import ValidationError
from classroom.identity_access.guards import require_course_editor, require_course_owner
from classroom.identity_access.session import Session
from classroom.storage.uploads import KIND_IMAGE, KIND_PDF, KIND_VIDEO, Upload
from classroom.teaching.models import Course, Lecture, SiteDocument, UserRole
from classroom.teaching.services.base import UNSET, Change, SiteMutator, pick, strip_text

_log = logging.getLogger("classroom.teaching")


def _clean_name(value: str, code: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(code, f"{label} is required.")
    if len(value) > 200:
        raise ValidationError(code, f"{label} is too long.")
    return value


def _clean_fee(value: Any) -> float:
    try:
        fee = float(value)
    except (TypeError, ValueError):
        raise ValidationError("invalid_fee", "Fee must be a number.") from None
    if fee < 0:
        raise ValidationError("invalid_fee", "Fee cannot be negative.")
    return fee


def _replace_course(site: SiteDocument, course: Course) -> SiteDocument:
    return site.model_copy(update={"courses": [course if c.id == course.id else c for c in site.courses]})


def _replace_lecture(course: Course, lecture: Lecture) -> Course:
    return course.model_copy(update={"lectures": [lecture if l.id == lecture.id else l for l in course.lectures]})


class CoursesService(SiteMutator):
    def _owned_course(self, session: Session, course_id: int) -> Optional[Course]:
        site = self.site
        course = site.course(course_id) if site is not None else None
        require_course_owner(session, course)
        return course

    # --- courses -------------------------------------------------------------------

    async def add_course(
        self,
        session: Session,
        *,
        name: str,
        instructor: str = "",
        fee: Any = 0,
        description: str = "",
        image: Optional[Upload] = None,
    ) -> Optional[Course]:
        user = require_course_editor(session)
        name = _clean_name(name, "invalid_name", "Course name")
        fee = _clean_fee(fee)
        self.policy.check(image, KIND_IMAGE, field="course_image")
        teacher_email = user.email if user.role == UserRole.TEACHER else None

        def transform(site: SiteDocument, keys) -> Change:
            course = Course(
                id=self.ids.next_id(),
                name=name,
                instructor=(instructor or "").strip(),
                fee=fee,
                description=(description or "").strip(),
                image_key=keys["image"],
                teacher_email=teacher_email,
            )
            return Change(site.model_copy(update={"courses": [course, *site.courses]}), course)

        return await self._mutate("add_course", transform, {"image": image})

    async def update_course(
        self,
        session: Session,
        course_id: int,
        *,
        name: Any = UNSET,
        instructor: Any = UNSET,
        fee: Any = UNSET,
        description: Any = UNSET,
        image: Optional[Upload] = None,
    ) -> Optional[Course]:
        if name is not UNSET:
            name = _clean_name(name, "invalid_name", "Course name")
        instructor = strip_text(instructor)
        description = strip_text(description)
        if fee is not UNSET:
            fee = _clean_fee(fee)
        self.policy.check(image, KIND_IMAGE, field="course_image")
        if self._owned_course(session, course_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = site.course(course_id)
            if current is None:
                return None
            updated = current.model_copy(
                update={
                    "name": pick(name, current.name),
                    "instructor": pick(instructor, current.instructor),
                    "fee": pick(fee, current.fee),
                    "description": pick(description, current.description),
                }
            )
            release = []
            if keys["image"] is not None:
                updated = updated.model_copy(update={"image_key": keys["image"]})
                release.append(current.image_key)
            return Change(_replace_course(site, updated), updated, release)

        return await self._mutate("update_course", transform, {"image": image})

    async def delete_course(self, session: Session, course_id: int) -> Optional[Course]:
        if self._owned_course(session, course_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            course = site.course(course_id)
            if course is None:
                return None
            remaining = [c for c in site.courses if c.id != course_id]
            return Change(site.model_copy(update={"courses": remaining}), course, course.blob_keys())

        course = await self._mutate("delete_course", transform)
        if course is not None:
            _log.info("course deleted: id=%s lectures=%s", course.id, len(course.lectures))
        return course

    # --- lectures ------------------------------------------------------------------

    async def add_lecture(
        self,
        session: Session,
        course_id: int,
        *,
        title: str,
        description: str = "",
        video_url: Optional[str] = None,
        video: Optional[Upload] = None,
        pdf: Optional[Upload] = None,
    ) -> Optional[Lecture]:
        title = _clean_name(title, "invalid_title", "Lecture title")
        self.policy.check(video, KIND_VIDEO, field="lecture_video")
        self.policy.check(pdf, KIND_PDF, field="lecture_pdf")
        if self._owned_course(session, course_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            course = site.course(course_id)
            if course is None:
                return None
            lecture = Lecture(
                id=self.ids.next_id(),
                title=title,
                description=(description or "").strip(),
                # An uploaded video wins over an external URL.
                video_url=None if keys["video"] else ((video_url or "").strip() or None),
                video_key=keys["video"],
                pdf_key=keys["pdf"],
                pdf_file_name=pdf.filename if keys["pdf"] else None,
            )
            updated = course.model_copy(update={"lectures": [*course.lectures, lecture]})
            return Change(_replace_course(site, updated), lecture)

        return await self._mutate("add_lecture", transform, {"video": video, "pdf": pdf})

    async def update_lecture(
        self,
        session: Session,
        course_id: int,
        lecture_id: int,
        *,
        title: Any = UNSET,
        description: Any = UNSET,
        video_url: Any = UNSET,
        video: Optional[Upload] = None,
        pdf: Optional[Upload] = None,
    ) -> Optional[Lecture]:
        if title is not UNSET:
            title = _clean_name(title, "invalid_title", "Lecture title")
        description = strip_text(description)
        self.policy.check(video, KIND_VIDEO, field="lecture_video")
        self.policy.check(pdf, KIND_PDF, field="lecture_pdf")
        course = self._owned_course(session, course_id)
        if course is None or course.lecture(lecture_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            course = site.course(course_id)
            current = course.lecture(lecture_id) if course is not None else None
            if current is None:
                return None
            fields = {
                "title": pick(title, current.title),
                "description": pick(description, current.description),
            }
            release = []
            if keys["video"] is not None:
                fields.update(video_key=keys["video"], video_url=None)
                release.append(current.video_key)
            elif video_url is not UNSET:
                url = (video_url or "").strip() or None
                fields["video_url"] = url
                if url is not None:
                    # An external URL replaces an uploaded video.
                    fields["video_key"] = None
                    release.append(current.video_key)
            if keys["pdf"] is not None:
                fields.update(pdf_key=keys["pdf"], pdf_file_name=pdf.filename)
                release.append(current.pdf_key)
            updated = current.model_copy(update=fields)
            return Change(_replace_course(site, _replace_lecture(course, updated)), updated, release)

        return await self._mutate("update_lecture", transform, {"video": video, "pdf": pdf})

    async def delete_lecture(self, session: Session, course_id: int, lecture_id: int) -> Optional[Lecture]:
        if self._owned_course(session, course_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            course = site.course(course_id)
            lecture = course.lecture(lecture_id) if course is not None else None
            if lecture is None:
                return None
            updated = course.model_copy(update={"lectures": [l for l in course.lectures if l.id != lecture_id]})
            return Change(_replace_course(site, updated), lecture, lecture.blob_keys())

        return await self._mutate("delete_lecture", transform)

    async def update_lecture_pdf(
        self, session: Session, course_id: int, lecture_id: int, pdf: Upload
    ) -> Optional[Lecture]:
        self.policy.check(pdf, KIND_PDF, required=True, field="lecture_pdf")
        return await self.update_lecture(session, course_id, lecture_id, pdf=pdf)

    async def remove_lecture_pdf(self, session: Session, course_id: int, lecture_id: int) -> Optional[Lecture]:
        if self._owned_course(session, course_id) is None:
            return None

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            course = site.course(course_id)
            current = course.lecture(lecture_id) if course is not None else None
            if current is None:
                return None
            updated = current.model_copy(update={"pdf_key": None, "pdf_file_name": None})
            return Change(_replace_course(site, _replace_lecture(course, updated)), updated, [current.pdf_key])

        return await self._mutate("remove_lecture_pdf", transform)


__all__ = ["CoursesService"]
