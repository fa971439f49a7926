"""
Pytest configuration for classroom core tests.

Why: Force AnyIO to use the asyncio backend and give every test a fresh,
fully in-memory core with the artificial login delay switched off.
"""
from __future__ import annotations

from typing import Callable, List, Set

import pytest

from classroom.config import Settings
from classroom.core import ClassroomCore
from classroom.errors import StorageFailure
from classroom.identity_access.session import Session
from classroom.storage.blobs import InMemoryBlobStore
from classroom.storage.documents import InMemoryDocumentStore
from classroom.storage.uploads import Upload

ADMIN_EMAIL = "admin@classroom.local"
ADMIN_PASSWORD = "admin"


class RecordingBlobStore(InMemoryBlobStore):
    """In-memory blob store that records deletes and can be told to fail them."""

    def __init__(self) -> None:
        super().__init__()
        self.deleted: List[str] = []
        self.fail_delete: Set[str] = set()
        self.fail_put = False

    async def put(self, data: bytes, *, filename=None) -> str:
        if self.fail_put:
            raise StorageFailure("blob_write_failed", "simulated")
        return await super().put(data, filename=filename)

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        if key in self.fail_delete:
            raise StorageFailure("blob_delete_failed", "simulated")
        await super().delete(key)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(login_delay_ms=0)


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def blobs() -> RecordingBlobStore:
    return RecordingBlobStore()


@pytest.fixture
def core(documents, blobs, settings) -> ClassroomCore:
    return ClassroomCore(documents=documents, blobs=blobs, settings=settings)


@pytest.fixture
def make_upload() -> Callable[..., Upload]:
    def _make(filename: str = "file.pdf", data: bytes = b"payload", content_type: str = "") -> Upload:
        return Upload(filename=filename, data=data, content_type=content_type)

    return _make


@pytest.fixture
async def started(core, anyio_backend) -> ClassroomCore:
    await core.start()
    return core


@pytest.fixture
async def admin(started, anyio_backend) -> Session:
    session = started.new_session()
    await started.sessions.login(session, ADMIN_EMAIL, ADMIN_PASSWORD, "admin")
    return session


@pytest.fixture
async def student(started, anyio_backend) -> Session:
    await started.sessions.signup("Sam Student", "sam@example.com", "pw-sam")
    session = started.new_session()
    await started.sessions.login(session, "sam@example.com", "pw-sam", "student")
    return session


@pytest.fixture
async def teacher(started, admin, make_upload, anyio_backend) -> Session:
    """An approved teacher, registered and approved through the real flow."""
    request = await started.sessions.teacher_signup(
        "Tara Teacher",
        "tara@example.com",
        "pw-tara",
        "TXN-TEACH",
        make_upload("pay.png", b"screenshot", "image/png"),
        "Lecturer",
        "MSc",
        "5 years",
        make_upload("me.jpg", b"photo", "image/jpeg"),
    )
    await started.verifications.approve_teacher_verification(admin, request.id)
    session = started.new_session()
    await started.sessions.login(session, "tara@example.com", "pw-tara", "teacher")
    return session
