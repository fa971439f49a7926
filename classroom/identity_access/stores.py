"""
Session pointer stores: where the logged-in identity survives a restart.

Why: The session pointer (the email of the logged-in user) is persisted apart
from the site and user documents. Its lifecycle is independent of them: it may
outlive a cleared document store or name a user who no longer exists. Readers
must treat such a pointer as an implicit logout, never as a crash.

Backends:
- `InMemorySessionPointerStore` for tests and ephemeral runs.
- `FileSessionPointerStore` keeps the pointer in a small text file.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Protocol

import anyio

from classroom.errors import StorageFailure


class SessionPointerStore(Protocol):
    async def get(self) -> Optional[str]: ...

    async def set(self, email: str) -> None: ...

    async def clear(self) -> None: ...


class InMemorySessionPointerStore:
    def __init__(self, email: Optional[str] = None) -> None:
        self._email = email

    async def get(self) -> Optional[str]:
        return self._email

    async def set(self, email: str) -> None:
        self._email = email

    async def clear(self) -> None:
        self._email = None


class FileSessionPointerStore:
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = anyio.Path(Path(path))

    async def get(self) -> Optional[str]:
        try:
            value = (await self._path.read_text(encoding="utf-8")).strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageFailure("session_pointer_read_failed", str(exc)) from exc
        return value or None

    async def set(self, email: str) -> None:
        try:
            await self._path.parent.mkdir(parents=True, exist_ok=True)
            await self._path.write_text(email, encoding="utf-8")
        except OSError as exc:
            raise StorageFailure("session_pointer_write_failed", str(exc)) from exc

    async def clear(self) -> None:
        try:
            await self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageFailure("session_pointer_write_failed", str(exc)) from exc


__all__ = ["SessionPointerStore", "InMemorySessionPointerStore", "FileSessionPointerStore"]
