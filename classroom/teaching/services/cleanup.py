"""
Best-effort blob release and user-list rollback.

Releasing blobs is never allowed to block document consistency: every key is
an independent sub-task, failures are logged and collected, and the caller's
primary mutation has already been committed (or is committed regardless).
A blob that fails to delete is leaked; a key is never left pointing at a
deleted blob because keys are released only after the referencing field is
gone from the committed document.

Operations that save the user list before the site document put the previous
user list back when the site commit fails (`restore_users`).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from classroom.storage.ports import BlobStoreProtocol, DocumentStoreProtocol
from classroom.teaching.models import User

_log = logging.getLogger("classroom.teaching")


@dataclass
class CleanupReport:
    context: str
    attempted: List[str] = field(default_factory=list)
    failed: List[Tuple[str, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def released(self) -> List[str]:
        failed_keys = {key for key, _ in self.failed}
        return [key for key in self.attempted if key not in failed_keys]


async def release_blobs(
    blobs: BlobStoreProtocol,
    keys: Iterable[Optional[str]],
    *,
    context: str,
) -> CleanupReport:
    report = CleanupReport(context=context)
    for key in keys:
        if not key or key in report.attempted:
            continue
        report.attempted.append(key)
        try:
            await blobs.delete(key)
        except Exception as exc:
            report.failed.append((key, exc))
            _log.warning("blob cleanup failed: context=%s key=%s error=%s", context, key, type(exc).__name__)
    if report.failed:
        _log.warning(
            "blob cleanup incomplete: context=%s failed=%s of %s",
            context,
            len(report.failed),
            len(report.attempted),
        )
    return report


async def restore_users(documents: DocumentStoreProtocol, previous: Sequence[User], *, context: str) -> bool:
    """Save `previous` back after a later write of the same operation failed.

    Returns False when the rollback itself fails; the original error is what
    the caller re-raises, so this one is only logged.
    """
    try:
        await documents.save_users(previous)
    except Exception as exc:
        _log.error("user list rollback failed: context=%s error=%s", context, type(exc).__name__)
        return False
    _log.warning("user list rolled back: context=%s", context)
    return True


class UploadBatch:
    """Blobs uploaded for one operation that has not committed yet.

    If the operation fails or turns out to be a no-op, `abort()` releases
    everything uploaded so far; nothing references those keys yet.
    """

    def __init__(self, blobs: BlobStoreProtocol, *, context: str) -> None:
        self._blobs = blobs
        self._context = context
        self.keys: List[str] = []

    async def put(self, upload) -> Optional[str]:
        if upload is None:
            return None
        key = await self._blobs.put(upload.data, filename=upload.filename)
        self.keys.append(key)
        return key

    async def abort(self) -> CleanupReport:
        keys, self.keys = self.keys, []
        return await release_blobs(self._blobs, keys, context=f"{self._context}_aborted")


__all__ = ["CleanupReport", "release_blobs", "restore_users", "UploadBatch"]
