"""Built-in site document used when nothing has been persisted yet."""
from __future__ import annotations

from classroom.teaching.models import (
    Course,
    HomeContent,
    NavItem,
    PaymentDetails,
    SiteDocument,
    Tutor,
)

DEFAULT_NAV_ITEMS = (
    ("Home", "/"),
    ("Courses", "/courses"),
    ("Tutors", "/tutors"),
    ("Syllabus", "/syllabus"),
    ("Downloads", "/downloads"),
    ("Contact", "/contact"),
)


def default_site_document() -> SiteDocument:
    """Return a fresh seeded site document (new objects on every call)."""
    return SiteDocument(
        classroom_name="Online Classroom",
        home=HomeContent(
            title="Learn from experienced tutors",
            subtitle="Live courses, recorded lectures and study material in one place.",
        ),
        payment_details=PaymentDetails(upi_number="", upi_id=""),
        courses=[
            Course(
                id=1,
                name="Mathematics Foundation",
                instructor="A. Sharma",
                fee=1500,
                description="Algebra, geometry and arithmetic fundamentals.",
            ),
            Course(
                id=2,
                name="Physics Essentials",
                instructor="R. Iyer",
                fee=1800,
                description="Mechanics, waves and electricity with worked problems.",
            ),
        ],
        tutors=[
            Tutor(
                id=1,
                name="A. Sharma",
                designation="Senior Mathematics Tutor",
                qualifications="M.Sc. Mathematics",
                experience="12 years",
            ),
            Tutor(
                id=2,
                name="R. Iyer",
                designation="Physics Tutor",
                qualifications="M.Sc. Physics, B.Ed.",
                experience="8 years",
            ),
        ],
        nav_items=[
            NavItem(id=index + 1, label=label, path=path, order=index)
            for index, (label, path) in enumerate(DEFAULT_NAV_ITEMS)
        ],
    )


__all__ = ["default_site_document", "DEFAULT_NAV_ITEMS"]
