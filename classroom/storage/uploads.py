"""
Upload payloads and the shared upload policy.

Centralises MIME/size constraints so that services stay slim and tests can
reference a single source of truth. Validation happens before any store I/O,
so a rejected upload never leaves a blob or a document write behind.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from classroom.config import MAX_UPLOAD_BYTES_DEFAULT
from classroom.errors import ValidationError

ALLOWED_PDF_MIME = frozenset({"application/pdf"})

KIND_PDF = "pdf"
KIND_IMAGE = "image"
KIND_VIDEO = "video"


@dataclass(frozen=True)
class Upload:
    """A binary payload handed over by the presentation layer."""

    filename: str
    data: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def base_content_type(self) -> str:
        # Accept content types with parameters (e.g., "application/pdf; charset=UTF-8").
        return (self.content_type or "").split(";", 1)[0].strip().lower()


@dataclass(frozen=True, slots=True)
class UploadPolicy:
    """Immutable policy object used when an operation receives uploads."""

    max_size_bytes: int = MAX_UPLOAD_BYTES_DEFAULT

    def accepts(self, kind: str, content_type: str) -> bool:
        if not content_type:
            return True
        if kind == KIND_PDF:
            return content_type in ALLOWED_PDF_MIME
        if kind == KIND_IMAGE:
            return content_type.startswith("image/")
        if kind == KIND_VIDEO:
            return content_type.startswith("video/")
        return False

    def check(self, upload: Optional[Upload], kind: str, *, required: bool = False, field: str = "file") -> None:
        if upload is None:
            if required:
                raise ValidationError(f"{field}_required", f"A {field.replace('_', ' ')} is required.")
            return
        if upload.size <= 0:
            raise ValidationError("empty_file", f"The {field.replace('_', ' ')} is empty.")
        if upload.size > self.max_size_bytes:
            raise ValidationError("size_exceeded", f"The {field.replace('_', ' ')} is too large.")
        if not self.accepts(kind, upload.base_content_type):
            raise ValidationError("mime_not_allowed", f"The {field.replace('_', ' ')} has an unsupported type.")


DEFAULT_POLICY = UploadPolicy()


__all__ = ["Upload", "UploadPolicy", "DEFAULT_POLICY", "KIND_PDF", "KIND_IMAGE", "KIND_VIDEO"]
