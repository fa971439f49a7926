"""
Offline reconciliation between the blob store and the site document.

Why:
    The blob store and the document store are not transactional. A crash
    between an upload and the referencing document write, or a failed release
    after a delete, leaves blobs nothing points at. They are harmless but cost
    space; this sweep finds and optionally deletes them.

Notes:
    - Only the site document references blobs; the user list holds none.
    - Run it while no mutation is in flight. An upload whose document commit
      has not happened yet looks orphaned to the sweep.
"""
from __future__ import annotations

import logging
from typing import List

from classroom.storage.ports import BlobStoreProtocol, DocumentStoreProtocol
from classroom.teaching.services.cleanup import CleanupReport, release_blobs

_log = logging.getLogger("classroom.storage")


async def find_orphaned_blobs(documents: DocumentStoreProtocol, blobs: BlobStoreProtocol) -> List[str]:
    site = await documents.load_site()
    referenced = set(site.iter_blob_keys())
    return sorted(key for key in await blobs.keys() if key not in referenced)


async def sweep_orphaned_blobs(
    documents: DocumentStoreProtocol,
    blobs: BlobStoreProtocol,
    *,
    dry_run: bool = True,
) -> CleanupReport:
    """Delete unreferenced blobs; with `dry_run` only report them."""
    orphans = await find_orphaned_blobs(documents, blobs)
    _log.info("blob sweep: orphans=%s dry_run=%s", len(orphans), dry_run)
    if dry_run:
        return CleanupReport(context="sweep_dry_run", attempted=orphans)
    return await release_blobs(blobs, orphans, context="sweep")


__all__ = ["find_orphaned_blobs", "sweep_orphaned_blobs"]
