"""
Facade that wires the stores, shared site state and services together.

Collaborators (a UI, a CLI, tests) build one `ClassroomCore`, call `start()`
once to load the site document and restore a persisted login, subscribe to
`state` for read-only snapshots and invoke operations on the services with
the `Session` they hold.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from classroom.config import Settings
from classroom.identity_access.session import Session, SessionManager
from classroom.identity_access.stores import InMemorySessionPointerStore, SessionPointerStore
from classroom.ids import IdGenerator
from classroom.storage.ports import BlobStoreProtocol, DocumentStoreProtocol
from classroom.storage.uploads import UploadPolicy
from classroom.teaching.services.catalog import CatalogService
from classroom.teaching.services.courses import CoursesService
from classroom.teaching.services.site import SiteService
from classroom.teaching.services.verifications import VerificationsService
from classroom.teaching.state import SiteState


@dataclass
class ClassroomCore:
    documents: DocumentStoreProtocol
    blobs: BlobStoreProtocol
    pointer: SessionPointerStore = field(default_factory=InMemorySessionPointerStore)
    settings: Settings = field(default_factory=Settings)
    ids: IdGenerator = field(default_factory=IdGenerator)

    def __post_init__(self) -> None:
        self.policy = UploadPolicy(max_size_bytes=self.settings.max_upload_bytes)
        self.state = SiteState(self.documents)
        self.sessions = SessionManager(
            documents=self.documents,
            pointer=self.pointer,
            state=self.state,
            blobs=self.blobs,
            ids=self.ids,
            settings=self.settings,
            policy=self.policy,
        )
        shared = dict(state=self.state, blobs=self.blobs, ids=self.ids, policy=self.policy)
        self.courses = CoursesService(**shared)
        self.catalog = CatalogService(**shared)
        self.site = SiteService(**shared)
        self.verifications = VerificationsService(documents=self.documents, **shared)

    def new_session(self) -> Session:
        return Session()

    async def start(self) -> Session:
        """Load the site document and restore the persisted login, if any."""
        await self.state.load()
        session = Session()
        await self.sessions.restore(session)
        return session


__all__ = ["ClassroomCore"]
