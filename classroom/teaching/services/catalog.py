"""
Admin-managed catalog entries: tutors, syllabuses and general downloads.
"""
from __future__ import annotations

from typing import Any, List, Optional, TypeVar

from classroom.errors import ValidationError
from classroom.identity_access.guards import require_admin
from classroom.identity_access.session import Session
from classroom.storage.uploads import KIND_IMAGE, KIND_PDF, Upload
from classroom.teaching.models import GeneralDownload, SiteDocument, Syllabus, Tutor
from classroom.teaching.services.base import UNSET, Change, SiteMutator, pick, strip_text

T = TypeVar("T")


def _required(value: str, code: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(code, f"{label} is required.")
    return value


def _find(items: List[T], item_id: int) -> Optional[T]:
    return next((item for item in items if item.id == item_id), None)


def _swap(items: List[T], replacement: T) -> List[T]:
    return [replacement if item.id == replacement.id else item for item in items]


def _without(items: List[T], item_id: int) -> List[T]:
    return [item for item in items if item.id != item_id]


class CatalogService(SiteMutator):
    # --- tutors --------------------------------------------------------------------

    async def add_tutor(
        self,
        session: Session,
        *,
        name: str,
        designation: str = "",
        qualifications: str = "",
        experience: str = "",
        photo: Optional[Upload] = None,
    ) -> Optional[Tutor]:
        require_admin(session)
        name = _required(name, "invalid_name", "Tutor name")
        self.policy.check(photo, KIND_IMAGE, field="tutor_photo")

        def transform(site: SiteDocument, keys) -> Change:
            tutor = Tutor(
                id=self.ids.next_id(),
                name=name,
                designation=(designation or "").strip(),
                qualifications=(qualifications or "").strip(),
                experience=(experience or "").strip(),
                photo_key=keys["photo"],
            )
            return Change(site.model_copy(update={"tutors": [*site.tutors, tutor]}), tutor)

        return await self._mutate("add_tutor", transform, {"photo": photo})

    async def update_tutor(
        self,
        session: Session,
        tutor_id: int,
        *,
        name: Any = UNSET,
        designation: Any = UNSET,
        qualifications: Any = UNSET,
        experience: Any = UNSET,
        photo: Optional[Upload] = None,
    ) -> Optional[Tutor]:
        require_admin(session)
        if name is not UNSET:
            name = _required(name, "invalid_name", "Tutor name")
        designation = strip_text(designation)
        qualifications = strip_text(qualifications)
        experience = strip_text(experience)
        self.policy.check(photo, KIND_IMAGE, field="tutor_photo")

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = _find(site.tutors, tutor_id)
            if current is None:
                return None
            updated = current.model_copy(
                update={
                    "name": pick(name, current.name),
                    "designation": pick(designation, current.designation),
                    "qualifications": pick(qualifications, current.qualifications),
                    "experience": pick(experience, current.experience),
                    "photo_key": keys["photo"] or current.photo_key,
                }
            )
            release = [current.photo_key] if keys["photo"] else []
            return Change(site.model_copy(update={"tutors": _swap(site.tutors, updated)}), updated, release)

        return await self._mutate("update_tutor", transform, {"photo": photo})

    async def delete_tutor(self, session: Session, tutor_id: int) -> Optional[Tutor]:
        require_admin(session)

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            tutor = _find(site.tutors, tutor_id)
            if tutor is None:
                return None
            return Change(
                site.model_copy(update={"tutors": _without(site.tutors, tutor_id)}), tutor, [tutor.photo_key]
            )

        return await self._mutate("delete_tutor", transform)

    # --- syllabuses ----------------------------------------------------------------

    async def add_syllabus(
        self,
        session: Session,
        *,
        title: str,
        description: str = "",
        pdf: Optional[Upload] = None,
        image: Optional[Upload] = None,
    ) -> Optional[Syllabus]:
        require_admin(session)
        title = _required(title, "invalid_title", "Syllabus title")
        self.policy.check(pdf, KIND_PDF, field="syllabus_pdf")
        self.policy.check(image, KIND_IMAGE, field="syllabus_image")

        def transform(site: SiteDocument, keys) -> Change:
            syllabus = Syllabus(
                id=self.ids.next_id(),
                title=title,
                description=(description or "").strip(),
                pdf_key=keys["pdf"],
                pdf_file_name=pdf.filename if keys["pdf"] else None,
                image_key=keys["image"],
            )
            return Change(site.model_copy(update={"syllabuses": [*site.syllabuses, syllabus]}), syllabus)

        return await self._mutate("add_syllabus", transform, {"pdf": pdf, "image": image})

    async def update_syllabus(
        self,
        session: Session,
        syllabus_id: int,
        *,
        title: Any = UNSET,
        description: Any = UNSET,
        pdf: Optional[Upload] = None,
        image: Optional[Upload] = None,
    ) -> Optional[Syllabus]:
        require_admin(session)
        if title is not UNSET:
            title = _required(title, "invalid_title", "Syllabus title")
        description = strip_text(description)
        self.policy.check(pdf, KIND_PDF, field="syllabus_pdf")
        self.policy.check(image, KIND_IMAGE, field="syllabus_image")

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = _find(site.syllabuses, syllabus_id)
            if current is None:
                return None
            fields = {
                "title": pick(title, current.title),
                "description": pick(description, current.description),
            }
            release = []
            if keys["pdf"]:
                fields.update(pdf_key=keys["pdf"], pdf_file_name=pdf.filename)
                release.append(current.pdf_key)
            if keys["image"]:
                fields["image_key"] = keys["image"]
                release.append(current.image_key)
            updated = current.model_copy(update=fields)
            return Change(
                site.model_copy(update={"syllabuses": _swap(site.syllabuses, updated)}), updated, release
            )

        return await self._mutate("update_syllabus", transform, {"pdf": pdf, "image": image})

    async def delete_syllabus(self, session: Session, syllabus_id: int) -> Optional[Syllabus]:
        require_admin(session)

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            syllabus = _find(site.syllabuses, syllabus_id)
            if syllabus is None:
                return None
            return Change(
                site.model_copy(update={"syllabuses": _without(site.syllabuses, syllabus_id)}),
                syllabus,
                syllabus.blob_keys(),
            )

        return await self._mutate("delete_syllabus", transform)

    # --- general downloads ---------------------------------------------------------

    async def add_general_download(self, session: Session, title: str, pdf: Upload) -> Optional[GeneralDownload]:
        require_admin(session)
        title = _required(title, "invalid_title", "Download title")
        self.policy.check(pdf, KIND_PDF, required=True, field="download_pdf")

        def transform(site: SiteDocument, keys) -> Change:
            download = GeneralDownload(
                id=self.ids.next_id(), title=title, pdf_key=keys["pdf"], pdf_file_name=pdf.filename
            )
            return Change(
                site.model_copy(update={"general_downloads": [*site.general_downloads, download]}), download
            )

        return await self._mutate("add_general_download", transform, {"pdf": pdf})

    async def update_general_download(
        self,
        session: Session,
        download_id: int,
        title: Any = UNSET,
        pdf: Optional[Upload] = None,
    ) -> Optional[GeneralDownload]:
        require_admin(session)
        if title is not UNSET:
            title = _required(title, "invalid_title", "Download title")
        self.policy.check(pdf, KIND_PDF, field="download_pdf")

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            current = _find(site.general_downloads, download_id)
            if current is None:
                return None
            fields = {"title": pick(title, current.title)}
            release = []
            if keys["pdf"]:
                fields.update(pdf_key=keys["pdf"], pdf_file_name=pdf.filename)
                release.append(current.pdf_key)
            updated = current.model_copy(update=fields)
            return Change(
                site.model_copy(update={"general_downloads": _swap(site.general_downloads, updated)}),
                updated,
                release,
            )

        return await self._mutate("update_general_download", transform, {"pdf": pdf})

    async def delete_general_download(self, session: Session, download_id: int) -> Optional[GeneralDownload]:
        require_admin(session)

        def transform(site: SiteDocument, keys) -> Optional[Change]:
            download = _find(site.general_downloads, download_id)
            if download is None:
                return None
            return Change(
                site.model_copy(update={"general_downloads": _without(site.general_downloads, download_id)}),
                download,
                [download.pdf_key],
            )

        return await self._mutate("delete_general_download", transform)


__all__ = ["CatalogService"]
