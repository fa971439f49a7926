"""
Build a `ClassroomCore` from settings.

Why:
    Startup picks store adapters from configuration. Volatile in-memory stores
    are the default so tests and local runs need no setup; file and database
    backends are opt-in. The psycopg import stays lazy inside `DBDocumentStore`
    so installations without the `db` extra never touch it.
"""
from __future__ import annotations

import logging
from typing import Optional

from classroom.config import Settings, ensure_secure_config_on_startup, load_env_file
from classroom.core import ClassroomCore
from classroom.identity_access.stores import (
    FileSessionPointerStore,
    InMemorySessionPointerStore,
    SessionPointerStore,
)
from classroom.storage.blobs import FileSystemBlobStore, InMemoryBlobStore
from classroom.storage.documents import InMemoryDocumentStore, JsonFileDocumentStore
from classroom.storage.ports import BlobStoreProtocol, DocumentStoreProtocol

_log = logging.getLogger("classroom.wiring")


def build_document_store(settings: Settings) -> DocumentStoreProtocol:
    if settings.document_backend == "db":
        from classroom.storage.documents_db import DBDocumentStore

        return DBDocumentStore(dsn=settings.database_url)
    if settings.document_backend == "file":
        return JsonFileDocumentStore(settings.data_dir / "documents")
    return InMemoryDocumentStore()


def build_blob_store(settings: Settings) -> BlobStoreProtocol:
    if settings.blob_backend == "file":
        return FileSystemBlobStore(settings.data_dir / "blobs")
    return InMemoryBlobStore()


def build_session_pointer(settings: Settings) -> SessionPointerStore:
    if settings.session_backend == "file":
        return FileSessionPointerStore(settings.data_dir / "session")
    return InMemorySessionPointerStore()


def build_core(settings: Optional[Settings] = None, *, load_env: bool = False) -> ClassroomCore:
    """Wire stores and services.

    With no explicit settings they are read from the environment, after
    loading `.env` when `load_env` is set. Prod-like configurations are
    checked with `ensure_secure_config_on_startup()`.
    """
    if settings is None:
        if load_env:
            load_env_file()
        settings = Settings.from_env()
    ensure_secure_config_on_startup(settings)
    core = ClassroomCore(
        documents=build_document_store(settings),
        blobs=build_blob_store(settings),
        pointer=build_session_pointer(settings),
        settings=settings,
    )
    _log.info(
        "classroom core wired: documents=%s blobs=%s sessions=%s",
        settings.document_backend,
        settings.blob_backend,
        settings.session_backend,
    )
    return core


__all__ = ["build_core", "build_document_store", "build_blob_store", "build_session_pointer"]
