"""
Storage ports used by the identity and teaching services.

Keep these small and framework-agnostic so tests can supply simple fakes.
All methods are coroutines: store I/O yields to the event loop, which is
where two independently triggered operations may interleave.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from classroom.errors import StorageFailure
from classroom.teaching.models import SiteDocument, User


class BlobStoreProtocol(Protocol):
    """Generation-addressed binary storage.

    Intent:
        `put` returns a fresh key on every call, even for identical content.
        `delete` is idempotent. There is no link to the document store.
    """

    async def put(self, data: bytes, *, filename: Optional[str] = None) -> str: ...

    async def get(self, key: str) -> bytes: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> List[str]: ...


class DocumentStoreProtocol(Protocol):
    """Durable slots for the site document and the user list.

    Both slots are full-document overwrites (last writer wins) and are written
    independently of each other.
    """

    async def load_site(self) -> SiteDocument: ...

    async def save_site(self, site: SiteDocument) -> None: ...

    async def load_users(self) -> List[User]: ...

    async def save_users(self, users: Sequence[User]) -> None: ...


class NullBlobStore:
    """Fallback store that signals the blob backend is not configured."""

    async def put(self, data: bytes, *, filename: Optional[str] = None) -> str:  # noqa: D401
        raise StorageFailure("blob_store_not_configured")

    async def get(self, key: str) -> bytes:  # noqa: D401
        raise StorageFailure("blob_store_not_configured")

    async def exists(self, key: str) -> bool:  # noqa: D401
        raise StorageFailure("blob_store_not_configured")

    async def delete(self, key: str) -> None:  # noqa: D401
        raise StorageFailure("blob_store_not_configured")

    async def keys(self) -> List[str]:  # noqa: D401
        raise StorageFailure("blob_store_not_configured")


__all__ = ["BlobStoreProtocol", "DocumentStoreProtocol", "NullBlobStore"]
