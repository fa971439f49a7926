"""
Blob store implementations.

Two backends share the `BlobStoreProtocol` contract:

- `InMemoryBlobStore` keeps bytes in a dict (tests, ephemeral dev runs).
- `FileSystemBlobStore` keeps one file per key below a root directory and
  performs file I/O through anyio so the event loop is never blocked.

Keys are generated, never derived from content: storing the same bytes twice
yields two keys. Deleting a missing key is not an error.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import anyio

from classroom.errors import NotFoundError, StorageFailure
from classroom.storage.keys import is_valid_blob_key, make_blob_key

_log = logging.getLogger("classroom.storage")


class InMemoryBlobStore:
    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    async def put(self, data: bytes, *, filename: Optional[str] = None) -> str:
        key = make_blob_key(filename=filename)
        while key in self._data:
            key = make_blob_key(filename=filename)
        self._data[key] = bytes(data)
        return key

    async def get(self, key: str) -> bytes:
        try:
            return self._data[key]
        except KeyError:
            raise NotFoundError("blob_not_found", f"No blob stored under {key!r}.") from None

    async def exists(self, key: str) -> bool:
        return key in self._data

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> List[str]:
        return sorted(self._data)

    def __len__(self) -> int:
        return len(self._data)


class FileSystemBlobStore:
    """Blob store rooted at a directory; one file per key."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = anyio.Path(Path(root))

    @property
    def root(self) -> Path:
        return Path(str(self._root))

    def _path_for(self, key: str) -> anyio.Path:
        if not is_valid_blob_key(key):
            # Invalid keys can never have been issued by this store.
            raise NotFoundError("blob_not_found", f"No blob stored under {key!r}.")
        return self._root / key

    async def put(self, data: bytes, *, filename: Optional[str] = None) -> str:
        key = make_blob_key(filename=filename)
        target = self._root / key
        tmp = self._root / f".{key}.tmp"
        try:
            await self._root.mkdir(parents=True, exist_ok=True)
            await tmp.write_bytes(bytes(data))
            await tmp.replace(target)
        except OSError as exc:
            _log.warning("blob put failed: error=%s", type(exc).__name__)
            raise StorageFailure("blob_write_failed", str(exc)) from exc
        _log.debug("blob stored key=%s size=%s", key, len(data))
        return key

    async def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return await path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError("blob_not_found", f"No blob stored under {key!r}.") from None
        except OSError as exc:
            raise StorageFailure("blob_read_failed", str(exc)) from exc

    async def exists(self, key: str) -> bool:
        if not is_valid_blob_key(key):
            return False
        return await (self._root / key).is_file()

    async def delete(self, key: str) -> None:
        if not is_valid_blob_key(key):
            return
        try:
            await (self._root / key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageFailure("blob_delete_failed", str(exc)) from exc
        _log.debug("blob deleted key=%s", key)

    async def keys(self) -> List[str]:
        if not await self._root.is_dir():
            return []
        found: List[str] = []
        async for entry in self._root.iterdir():
            if is_valid_blob_key(entry.name):
                found.append(entry.name)
        return sorted(found)


__all__ = ["InMemoryBlobStore", "FileSystemBlobStore"]
