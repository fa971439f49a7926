"""
Site and user document models.

Why:
    The site document and the user list are persisted as whole JSON documents.
    Pydantic gives us validation on load and a stable camelCase wire shape
    (``generalDownloads``, ``pdfFileName``) while Python code uses snake_case.

Conventions:
    - Models are treated as immutable values: services derive new versions with
      `model_copy(update=...)` and fresh lists instead of mutating in place.
      The user list is the exception; it is loaded fresh for every operation.
    - Blob references are plain key strings; `None` means "no blob".
    - Optional collections default to empty lists so older documents load.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class UserStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    ENROLLED = "enrolled"


class MessageStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class DocumentModel(BaseModel):
    """Base for persisted models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# --- Users ---------------------------------------------------------------------


class Enrollment(DocumentModel):
    course_id: int
    status: EnrollmentStatus = EnrollmentStatus.PENDING


class User(DocumentModel):
    name: str
    email: str
    password: str
    role: UserRole = UserRole.STUDENT
    status: UserStatus = UserStatus.APPROVED
    enrollments: List[Enrollment] = Field(default_factory=list)

    def matches_email(self, email: str) -> bool:
        return self.email.lower() == (email or "").strip().lower()

    def enrollment_for(self, course_id: int) -> Optional[Enrollment]:
        for enrollment in self.enrollments:
            if enrollment.course_id == course_id:
                return enrollment
        return None

    def is_enrolled(self, course_id: int) -> bool:
        enrollment = self.enrollment_for(course_id)
        return enrollment is not None and enrollment.status == EnrollmentStatus.ENROLLED

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_approved_teacher(self) -> bool:
        return self.role == UserRole.TEACHER and self.status == UserStatus.APPROVED


# --- Site content --------------------------------------------------------------


class Lecture(DocumentModel):
    id: int
    title: str
    description: str = ""
    video_url: Optional[str] = None
    video_key: Optional[str] = None
    pdf_key: Optional[str] = None
    pdf_file_name: Optional[str] = None

    def blob_keys(self) -> List[str]:
        return [k for k in (self.video_key, self.pdf_key) if k]


class Course(DocumentModel):
    id: int
    name: str
    instructor: str = ""
    fee: float = 0
    description: str = ""
    image_key: Optional[str] = None
    teacher_email: Optional[str] = None
    lectures: List[Lecture] = Field(default_factory=list)

    def lecture(self, lecture_id: int) -> Optional[Lecture]:
        for lecture in self.lectures:
            if lecture.id == lecture_id:
                return lecture
        return None

    def blob_keys(self) -> List[str]:
        keys = [self.image_key] if self.image_key else []
        for lecture in self.lectures:
            keys.extend(lecture.blob_keys())
        return keys


class Tutor(DocumentModel):
    id: int
    name: str
    designation: str = ""
    qualifications: str = ""
    experience: str = ""
    photo_key: Optional[str] = None


class Syllabus(DocumentModel):
    id: int
    title: str
    description: str = ""
    pdf_key: Optional[str] = None
    pdf_file_name: Optional[str] = None
    image_key: Optional[str] = None

    def blob_keys(self) -> List[str]:
        return [k for k in (self.pdf_key, self.image_key) if k]


class GeneralDownload(DocumentModel):
    id: int
    title: str
    pdf_key: Optional[str] = None
    pdf_file_name: Optional[str] = None


class VerificationRequest(DocumentModel):
    id: int
    user_name: str = ""
    user_email: str
    course_id: int
    course_name: str = ""
    transaction_id: str
    screenshot_key: Optional[str] = None
    requested_at: datetime = Field(default_factory=utcnow)


class TeacherVerificationRequest(DocumentModel):
    id: int
    user_name: str
    user_email: str
    transaction_id: str
    screenshot_key: Optional[str] = None
    photo_key: Optional[str] = None
    designation: str = ""
    qualifications: str = ""
    experience: str = ""
    requested_at: datetime = Field(default_factory=utcnow)


class ContactMessage(DocumentModel):
    id: int
    name: str
    email: str
    subject: str = ""
    message: str
    status: MessageStatus = MessageStatus.UNREAD
    received_at: datetime = Field(default_factory=utcnow)


class NavItem(DocumentModel):
    id: int
    label: str
    path: str
    order: int = 0


class HomeContent(DocumentModel):
    title: str = ""
    subtitle: str = ""


class PaymentDetails(DocumentModel):
    upi_number: str = ""
    upi_id: str = ""


class SiteDocument(DocumentModel):
    """The singleton aggregate of all site content and settings."""

    classroom_name: str = ""
    home: HomeContent = Field(default_factory=HomeContent)
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)
    courses: List[Course] = Field(default_factory=list)
    tutors: List[Tutor] = Field(default_factory=list)
    syllabuses: List[Syllabus] = Field(default_factory=list)
    general_downloads: List[GeneralDownload] = Field(default_factory=list)
    contact_messages: List[ContactMessage] = Field(default_factory=list)
    pending_verifications: List[VerificationRequest] = Field(default_factory=list)
    teacher_verification_requests: List[TeacherVerificationRequest] = Field(default_factory=list)
    nav_items: List[NavItem] = Field(default_factory=list)

    def course(self, course_id: int) -> Optional[Course]:
        for course in self.courses:
            if course.id == course_id:
                return course
        return None

    def iter_blob_keys(self) -> Iterator[str]:
        """Yield every blob key referenced anywhere in the document."""
        for course in self.courses:
            yield from course.blob_keys()
        for tutor in self.tutors:
            if tutor.photo_key:
                yield tutor.photo_key
        for syllabus in self.syllabuses:
            yield from syllabus.blob_keys()
        for download in self.general_downloads:
            if download.pdf_key:
                yield download.pdf_key
        for request in self.pending_verifications:
            if request.screenshot_key:
                yield request.screenshot_key
        for request in self.teacher_verification_requests:
            if request.screenshot_key:
                yield request.screenshot_key
            if request.photo_key:
                yield request.photo_key


__all__ = [
    "UserRole",
    "UserStatus",
    "EnrollmentStatus",
    "MessageStatus",
    "Enrollment",
    "User",
    "Lecture",
    "Course",
    "Tutor",
    "Syllabus",
    "GeneralDownload",
    "VerificationRequest",
    "TeacherVerificationRequest",
    "ContactMessage",
    "NavItem",
    "HomeContent",
    "PaymentDetails",
    "SiteDocument",
    "utcnow",
]
