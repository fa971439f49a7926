"""
Courses and lectures: blob lifecycle, ownership gates and no-op semantics.
"""
from __future__ import annotations

import logging

import pytest

from classroom.errors import ForbiddenError, StorageFailure, ValidationError


async def _course_with_lectures(core, session, make_upload, n: int):
    course = await core.courses.add_course(
        session, name="Biology", instructor="Dr. B", fee="1200", image=make_upload("cover.png", b"img", "image/png")
    )
    for i in range(n):
        await core.courses.add_lecture(
            session,
            course.id,
            title=f"Lecture {i}",
            video=make_upload(f"v{i}.mp4", b"video", "video/mp4"),
            pdf=make_upload(f"n{i}.pdf", b"%PDF", "application/pdf"),
        )
    return core.state.site.course(course.id)


@pytest.mark.anyio
async def test_add_course_prepends_and_stamps_no_owner_for_admin(started, admin):
    before = [c.id for c in started.state.site.courses]

    course = await started.courses.add_course(admin, name="  Chemistry ", fee=500)

    assert course.name == "Chemistry" and course.fee == 500.0
    assert course.teacher_email is None
    assert [c.id for c in started.state.site.courses] == [course.id, *before]
    assert (await started.documents.load_site()).course(course.id) == course


@pytest.mark.anyio
async def test_teacher_owns_the_courses_they_create(started, teacher, admin):
    mine = await started.courses.add_course(teacher, name="Teacher Course")
    assert mine.teacher_email == "tara@example.com"

    updated = await started.courses.update_course(teacher, mine.id, description="Now with labs")
    assert updated.description == "Now with labs" and updated.name == "Teacher Course"

    seeded = started.state.site.courses[-1]
    with pytest.raises(ForbiddenError) as exc:
        await started.courses.update_course(teacher, seeded.id, name="Hijacked")
    assert exc.value.code == "course_not_owned"

    # Admins manage every course, including the teacher's.
    assert await started.courses.update_course(admin, mine.id, fee=10) is not None


@pytest.mark.anyio
async def test_students_cannot_manage_courses(started, student):
    with pytest.raises(ForbiddenError) as exc:
        await started.courses.add_course(student, name="Nope")
    assert exc.value.code == "course_editor_required"


@pytest.mark.anyio
async def test_anonymous_session_is_rejected(started):
    with pytest.raises(ForbiddenError) as exc:
        await started.courses.add_course(started.new_session(), name="Nope")
    assert exc.value.code == "login_required"


@pytest.mark.parametrize("fee", ["abc", -5])
@pytest.mark.anyio
async def test_invalid_fee_is_rejected_before_any_io(started, admin, blobs, make_upload, fee):
    with pytest.raises(ValidationError) as exc:
        await started.courses.add_course(admin, name="X", fee=fee, image=make_upload("c.png"))
    assert exc.value.code == "invalid_fee"
    assert len(blobs) == 0


@pytest.mark.anyio
async def test_update_course_image_releases_previous_blob(started, admin, blobs, make_upload):
    course = await started.courses.add_course(admin, name="Art", image=make_upload("a.png", b"old"))
    old_key = course.image_key

    updated = await started.courses.update_course(admin, course.id, image=make_upload("b.png", b"new"))

    assert updated.image_key != old_key
    assert await blobs.exists(updated.image_key)
    assert not await blobs.exists(old_key)


@pytest.mark.anyio
async def test_update_without_file_preserves_keys_and_lectures(started, admin, make_upload):
    course = await _course_with_lectures(started, admin, make_upload, 2)

    updated = await started.courses.update_course(admin, course.id, name="Biology II")

    assert updated.image_key == course.image_key
    assert updated.lectures == course.lectures


@pytest.mark.anyio
async def test_update_course_strips_text_fields(started, admin):
    course = await started.courses.add_course(admin, name="Physics", instructor="Dr. Lee")

    updated = await started.courses.update_course(admin, course.id, instructor="  Dr. Kim ", description=" Waves ")

    assert updated.instructor == "Dr. Kim"
    assert updated.description == "Waves"
    assert updated.name == "Physics"


@pytest.mark.parametrize("n", [0, 1, 3])
@pytest.mark.anyio
async def test_delete_course_cascades_to_every_blob(started, admin, blobs, make_upload, n):
    course = await _course_with_lectures(started, admin, make_upload, n)
    owned = course.blob_keys()
    assert len(owned) == 2 * n + 1
    blobs.deleted.clear()

    removed = await started.courses.delete_course(admin, course.id)

    assert removed.id == course.id
    assert sorted(blobs.deleted) == sorted(owned)
    assert started.state.site.course(course.id) is None
    referenced = set(started.state.site.iter_blob_keys())
    assert not referenced.intersection(owned)
    assert all(not await blobs.exists(k) for k in owned)


@pytest.mark.anyio
async def test_delete_course_commits_even_when_a_release_fails(started, admin, blobs, make_upload, caplog):
    course = await _course_with_lectures(started, admin, make_upload, 1)
    blobs.fail_delete.add(course.image_key)
    caplog.set_level(logging.WARNING, logger="classroom.teaching")

    await started.courses.delete_course(admin, course.id)

    assert started.state.site.course(course.id) is None
    assert (await started.documents.load_site()).course(course.id) is None
    assert await blobs.exists(course.image_key)  # leaked, never dangling
    assert "blob cleanup failed" in "\n".join(r.message for r in caplog.records)


@pytest.mark.anyio
async def test_update_lecture_pdf_twice_leaves_only_latest(started, admin, blobs, make_upload):
    course = await started.courses.add_course(admin, name="Maths")
    lecture = await started.courses.add_lecture(admin, course.id, title="Limits", pdf=make_upload("v1.pdf", b"1"))
    first = lecture.pdf_key
    assert await blobs.exists(first)

    second = (await started.courses.update_lecture_pdf(admin, course.id, lecture.id, make_upload("v2.pdf", b"2"))).pdf_key
    assert await blobs.exists(second) and not await blobs.exists(first)

    third_lecture = await started.courses.update_lecture_pdf(admin, course.id, lecture.id, make_upload("v3.pdf", b"3"))
    third = third_lecture.pdf_key
    assert third_lecture.pdf_file_name == "v3.pdf"
    assert await blobs.exists(third)
    assert not await blobs.exists(second) and not await blobs.exists(first)
    assert [k for k in await blobs.keys() if k.endswith(".pdf")] == [third]


@pytest.mark.anyio
async def test_update_lecture_pdf_requires_a_file(started, admin):
    course = await started.courses.add_course(admin, name="Maths")
    lecture = await started.courses.add_lecture(admin, course.id, title="Limits")
    with pytest.raises(ValidationError) as exc:
        await started.courses.update_lecture_pdf(admin, course.id, lecture.id, None)
    assert exc.value.code == "lecture_pdf_required"


@pytest.mark.anyio
async def test_remove_lecture_pdf(started, admin, blobs, make_upload):
    course = await started.courses.add_course(admin, name="Maths")
    lecture = await started.courses.add_lecture(admin, course.id, title="Limits", pdf=make_upload("l.pdf"))

    updated = await started.courses.remove_lecture_pdf(admin, course.id, lecture.id)

    assert updated.pdf_key is None and updated.pdf_file_name is None
    assert not await blobs.exists(lecture.pdf_key)


@pytest.mark.anyio
async def test_video_upload_and_url_are_mutually_exclusive(started, admin, blobs, make_upload):
    course = await started.courses.add_course(admin, name="Film")
    lecture = await started.courses.add_lecture(
        admin, course.id, title="Intro", video_url="https://video.example/1", video=make_upload("i.mp4")
    )
    assert lecture.video_key and lecture.video_url is None

    by_url = await started.courses.update_lecture(admin, course.id, lecture.id, video_url="https://video.example/2")
    assert by_url.video_url == "https://video.example/2" and by_url.video_key is None
    assert not await blobs.exists(lecture.video_key)

    by_upload = await started.courses.update_lecture(admin, course.id, lecture.id, video=make_upload("j.mp4"))
    assert by_upload.video_key and by_upload.video_url is None


@pytest.mark.anyio
async def test_delete_lecture_releases_its_blobs(started, admin, blobs, make_upload):
    course = await _course_with_lectures(started, admin, make_upload, 2)
    target = course.lectures[0]

    await started.courses.delete_lecture(admin, course.id, target.id)

    remaining = started.state.site.course(course.id)
    assert [l.id for l in remaining.lectures] == [course.lectures[1].id]
    assert all(not await blobs.exists(k) for k in target.blob_keys())
    assert all(await blobs.exists(k) for k in course.lectures[1].blob_keys())


@pytest.mark.anyio
async def test_stale_ids_are_silent_noops(started, admin, blobs, make_upload):
    before = started.state.site

    assert await started.courses.update_course(admin, 999, name="Ghost") is None
    assert await started.courses.delete_course(admin, 999) is None
    assert await started.courses.add_lecture(admin, 999, title="Ghost", pdf=make_upload("g.pdf")) is None
    course = started.state.site.courses[0]
    assert await started.courses.delete_lecture(admin, course.id, 999) is None
    assert await started.courses.update_lecture(admin, course.id, 999, title="Ghost") is None

    assert started.state.site == before
    assert len(blobs) == 0


@pytest.mark.anyio
async def test_operations_are_noops_before_site_load(core, blobs, make_upload):
    admin = core.new_session()
    await core.sessions.login(admin, "admin@classroom.local", "admin", "admin")

    assert await core.courses.add_course(admin, name="Early", image=make_upload("e.png")) is None
    assert core.state.site is None
    assert len(blobs) == 0


@pytest.mark.anyio
async def test_failed_save_releases_uploads_and_keeps_state(started, admin, blobs, documents, make_upload, monkeypatch):
    before = started.state.site

    async def broken_save(site):
        raise StorageFailure("document_write_failed", "disk full")

    monkeypatch.setattr(documents, "save_site", broken_save)
    with pytest.raises(StorageFailure):
        await started.courses.add_course(admin, name="Doomed", image=make_upload("d.png"))

    assert started.state.site is before
    assert len(blobs) == 0


@pytest.mark.anyio
async def test_ids_are_unique_across_rapid_creation(started, admin):
    created = [await started.courses.add_course(admin, name=f"C{i}") for i in range(20)]
    assert len({c.id for c in created}) == 20
