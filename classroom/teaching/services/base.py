"""
Shared mutation flow for site-document services.

Every mutation follows the same order:

1. guards and input validation (no I/O),
2. silent no-op when the site document is not loaded yet,
3. upload new blobs,
4. compute the new document from the freshest snapshot,
5. persist and publish it in one `commit()`,
6. release blobs whose last reference was just removed.

Step 4 may report that its target vanished meanwhile (stale id); the uploads
are then released and the operation returns None.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from classroom.ids import IdGenerator
from classroom.storage.ports import BlobStoreProtocol
from classroom.storage.uploads import DEFAULT_POLICY, Upload, UploadPolicy
from classroom.teaching.models import SiteDocument
from classroom.teaching.services.cleanup import UploadBatch, release_blobs
from classroom.teaching.state import SiteState

# Sentinel for "field not supplied" in partial updates.
UNSET: Any = object()


@dataclass
class Change:
    """Result of a pure document transformation."""

    site: SiteDocument
    result: Any = None
    release: List[Optional[str]] = field(default_factory=list)


Transform = Callable[[SiteDocument, Dict[str, Optional[str]]], Optional[Change]]


def pick(value: Any, current: Any) -> Any:
    return current if value is UNSET else value


def strip_text(value: Any) -> Any:
    """Strip a partial-update text field; `UNSET` passes through."""
    return value if value is UNSET else (value or "").strip()


@dataclass
class SiteMutator:
    state: SiteState
    blobs: BlobStoreProtocol
    ids: IdGenerator
    policy: UploadPolicy = DEFAULT_POLICY

    @property
    def site(self) -> Optional[SiteDocument]:
        return self.state.site

    async def _mutate(
        self,
        context: str,
        transform: Transform,
        uploads: Optional[Mapping[str, Optional[Upload]]] = None,
    ) -> Any:
        if not self.state.is_loaded:
            return None
        batch = UploadBatch(self.blobs, context=context)
        try:
            keys: Dict[str, Optional[str]] = {}
            for slot, upload in (uploads or {}).items():
                keys[slot] = await batch.put(upload)
            site = self.state.site
            change = transform(site, keys) if site is not None else None
            if change is None:
                await batch.abort()
                return None
            await self.state.commit(change.site)
        except Exception:
            await batch.abort()
            raise
        if change.release:
            await release_blobs(self.blobs, change.release, context=context)
        return change.result


__all__ = ["SiteMutator", "Change", "UNSET", "pick", "strip_text"]
