"""
Document store implementations for the `site` and `users` slots.

Why:
    The site document and the user list are the only durable state besides
    blobs. Each slot is serialized as one JSON document and overwritten in
    full on every save (last writer wins, no version token).

Behavior:
    - `load_site()` returns the seeded default document when the slot is empty.
    - `load_users()` returns an empty list when the slot is empty.
    - Loads always return fresh objects; callers may mutate them freely.
    - Two backends here: `InMemoryDocumentStore` (keeps serialized JSON so the
      round-trip is exercised in tests) and `JsonFileDocumentStore` (one file
      per slot, written to a temp file and atomically replaced).
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

import anyio
from pydantic import ValidationError as PydanticValidationError

from classroom.errors import StorageFailure
from classroom.storage.defaults import default_site_document
from classroom.teaching.models import SiteDocument, User

_log = logging.getLogger("classroom.storage")

SITE_SLOT = "site"
USERS_SLOT = "users"


def dump_site(site: SiteDocument) -> str:
    return json.dumps(site.to_wire(), ensure_ascii=False)


def dump_users(users: Sequence[User]) -> str:
    return json.dumps([u.to_wire() for u in users], ensure_ascii=False)


def parse_site(raw: Optional[str]) -> SiteDocument:
    if raw is None:
        return default_site_document()
    try:
        return SiteDocument.model_validate(json.loads(raw))
    except (ValueError, PydanticValidationError) as exc:
        raise StorageFailure("site_document_corrupt", str(exc)) from exc


def parse_users(raw: Optional[str]) -> List[User]:
    if raw is None:
        return []
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("users slot must hold a list")
        return [User.model_validate(item) for item in data]
    except (ValueError, PydanticValidationError) as exc:
        raise StorageFailure("users_document_corrupt", str(exc)) from exc


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}

    async def load_site(self) -> SiteDocument:
        return parse_site(self._slots.get(SITE_SLOT))

    async def save_site(self, site: SiteDocument) -> None:
        self._slots[SITE_SLOT] = dump_site(site)

    async def load_users(self) -> List[User]:
        return parse_users(self._slots.get(USERS_SLOT))

    async def save_users(self, users: Sequence[User]) -> None:
        self._slots[USERS_SLOT] = dump_users(users)

    def clear(self) -> None:
        self._slots.clear()


class JsonFileDocumentStore:
    """Document store keeping `site.json` and `users.json` in a directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._dir = anyio.Path(Path(directory))

    def _slot_path(self, slot: str) -> anyio.Path:
        return self._dir / f"{slot}.json"

    async def _read(self, slot: str) -> Optional[str]:
        path = self._slot_path(slot)
        try:
            return await path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageFailure("document_read_failed", str(exc)) from exc

    async def _write(self, slot: str, payload: str) -> None:
        path = self._slot_path(slot)
        # One temp file per write; concurrent saves of a slot must not share it.
        tmp = self._dir / f".{slot}.{uuid4().hex}.tmp"
        try:
            await self._dir.mkdir(parents=True, exist_ok=True)
            await tmp.write_text(payload, encoding="utf-8")
            await tmp.replace(path)
        except OSError as exc:
            try:
                await tmp.unlink(missing_ok=True)
            except OSError:
                _log.debug("temp file cleanup failed: %s", tmp)
            _log.warning("document write failed: slot=%s error=%s", slot, type(exc).__name__)
            raise StorageFailure("document_write_failed", str(exc)) from exc
        _log.debug("document saved slot=%s bytes=%s", slot, len(payload))

    async def load_site(self) -> SiteDocument:
        return parse_site(await self._read(SITE_SLOT))

    async def save_site(self, site: SiteDocument) -> None:
        await self._write(SITE_SLOT, dump_site(site))

    async def load_users(self) -> List[User]:
        return parse_users(await self._read(USERS_SLOT))

    async def save_users(self, users: Sequence[User]) -> None:
        await self._write(USERS_SLOT, dump_users(users))


__all__ = [
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "dump_site",
    "dump_users",
    "parse_site",
    "parse_users",
    "SITE_SLOT",
    "USERS_SLOT",
]
