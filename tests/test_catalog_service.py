"""
Tutors, syllabuses and general downloads (admin-only catalog).
"""
from __future__ import annotations

import pytest

from classroom.errors import ForbiddenError, ValidationError


@pytest.mark.anyio
async def test_tutor_lifecycle(started, admin, blobs, make_upload):
    tutor = await started.catalog.add_tutor(
        admin, name="N. Gupta", designation="Chemistry Tutor", photo=make_upload("ng.jpg", b"p1", "image/jpeg")
    )
    assert started.state.site.tutors[-1] == tutor
    first_photo = tutor.photo_key

    renamed = await started.catalog.update_tutor(admin, tutor.id, experience="3 years")
    assert renamed.photo_key == first_photo and renamed.experience == "3 years"
    assert renamed.designation == "Chemistry Tutor"

    rephotographed = await started.catalog.update_tutor(admin, tutor.id, photo=make_upload("ng2.jpg", b"p2"))
    assert rephotographed.photo_key != first_photo
    assert not await blobs.exists(first_photo)

    await started.catalog.delete_tutor(admin, tutor.id)
    assert all(t.id != tutor.id for t in started.state.site.tutors)
    assert not await blobs.exists(rephotographed.photo_key)


@pytest.mark.anyio
async def test_tutor_text_fields_are_stripped_on_add_and_update(started, admin):
    tutor = await started.catalog.add_tutor(admin, name=" A. Rao ", designation=" Maths Tutor ")
    assert tutor.name == "A. Rao" and tutor.designation == "Maths Tutor"

    updated = await started.catalog.update_tutor(
        admin, tutor.id, designation="  Senior Maths Tutor ", qualifications=" MSc\n", experience="\t4 years "
    )

    assert updated.designation == "Senior Maths Tutor"
    assert updated.qualifications == "MSc"
    assert updated.experience == "4 years"
    assert updated.name == "A. Rao"


@pytest.mark.anyio
async def test_catalog_is_admin_only(started, teacher, student):
    for session in (teacher, student):
        with pytest.raises(ForbiddenError) as exc:
            await started.catalog.add_tutor(session, name="X")
        assert exc.value.code == "admin_required"
        with pytest.raises(ForbiddenError):
            await started.catalog.delete_syllabus(session, 1)


@pytest.mark.anyio
async def test_tutor_photo_must_be_an_image(started, admin, blobs, make_upload):
    with pytest.raises(ValidationError) as exc:
        await started.catalog.add_tutor(admin, name="X", photo=make_upload("x.pdf", b"%PDF", "application/pdf"))
    assert exc.value.code == "mime_not_allowed"
    assert len(blobs) == 0


@pytest.mark.anyio
async def test_syllabus_replace_pdf_keeps_image(started, admin, blobs, make_upload):
    syllabus = await started.catalog.add_syllabus(
        admin,
        title="Class 9",
        description="Full year",
        pdf=make_upload("c9.pdf", b"1", "application/pdf"),
        image=make_upload("c9.png", b"img", "image/png"),
    )
    assert syllabus.pdf_file_name == "c9.pdf"

    updated = await started.catalog.update_syllabus(admin, syllabus.id, pdf=make_upload("c9-rev.pdf", b"2"))

    assert updated.pdf_file_name == "c9-rev.pdf"
    assert updated.image_key == syllabus.image_key
    assert updated.description == "Full year"
    assert not await blobs.exists(syllabus.pdf_key)
    assert await blobs.exists(updated.image_key)


@pytest.mark.anyio
async def test_delete_syllabus_releases_pdf_and_image(started, admin, blobs, make_upload):
    syllabus = await started.catalog.add_syllabus(
        admin, title="Class 10", pdf=make_upload("c10.pdf"), image=make_upload("c10.png")
    )
    blobs.deleted.clear()

    await started.catalog.delete_syllabus(admin, syllabus.id)

    assert sorted(blobs.deleted) == sorted(syllabus.blob_keys())
    assert started.state.site.syllabuses == []


@pytest.mark.anyio
async def test_general_download_requires_pdf(started, admin):
    with pytest.raises(ValidationError) as exc:
        await started.catalog.add_general_download(admin, "Timetable", None)
    assert exc.value.code == "download_pdf_required"


@pytest.mark.anyio
async def test_general_download_lifecycle(started, admin, blobs, make_upload):
    download = await started.catalog.add_general_download(admin, "Timetable", make_upload("tt.pdf", b"1"))
    assert download.pdf_file_name == "tt.pdf"

    retitled = await started.catalog.update_general_download(admin, download.id, "Timetable 2024")
    assert retitled.pdf_key == download.pdf_key and retitled.title == "Timetable 2024"

    replaced = await started.catalog.update_general_download(admin, download.id, pdf=make_upload("tt2.pdf", b"2"))
    assert replaced.title == "Timetable 2024"
    assert not await blobs.exists(download.pdf_key)

    await started.catalog.delete_general_download(admin, download.id)
    assert started.state.site.general_downloads == []
    assert not await blobs.exists(replaced.pdf_key)


@pytest.mark.anyio
async def test_stale_catalog_ids_release_fresh_uploads(started, admin, blobs, make_upload):
    assert await started.catalog.update_tutor(admin, 424242, photo=make_upload("late.png")) is None
    assert await started.catalog.update_general_download(admin, 424242, pdf=make_upload("late.pdf")) is None
    assert await started.catalog.delete_tutor(admin, 424242) is None
    assert len(blobs) == 0
