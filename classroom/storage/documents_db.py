"""
Database-backed document store (Postgres) for deployments that outlive a
single machine's disk.

Why: The JSON file store is fine for one box. This store keeps the same two
slots (`site`, `users`) as rows of a small key-value table with a jsonb body,
so backups and inspection use ordinary database tooling.

Schema (created by `ensure_schema()`):
    create table if not exists public.classroom_documents (
        slot text primary key,
        body jsonb not null,
        updated_at timestamptz not null default now()
    )

Note: This module uses psycopg3. It is imported only when enabled via
`CLASSROOM_DOCUMENT_BACKEND=db`. Tests use the in-memory store or a fake
driver. Calls are synchronous and run in a worker thread via anyio.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, List, Optional, Sequence

import anyio
import anyio.to_thread

from classroom.errors import StorageFailure
from classroom.storage.documents import SITE_SLOT, USERS_SLOT, parse_site, parse_users
from classroom.teaching.models import SiteDocument, User

try:
    import psycopg
    from psycopg.types.json import Json
    HAVE_PSYCOPG = True
except Exception:  # pragma: no cover - optional dependency in dev
    psycopg = None  # type: ignore
    HAVE_PSYCOPG = False

_log = logging.getLogger("classroom.storage")

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$")


class DBDocumentStore:
    """Postgres-backed document store.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string. Falls back to DATABASE_URL.
    table:
        Fully qualified table name. Defaults to `public.classroom_documents`.
    """

    def __init__(self, dsn: str | None = None, table: str = "public.classroom_documents") -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBDocumentStore")
        self._dsn = dsn or os.getenv("DATABASE_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBDocumentStore")
        if not _TABLE_RE.match(table or ""):
            raise ValueError("Invalid table name")
        self._table = table

    # --- sync helpers (run in worker threads) ------------------------------------

    def _ensure_schema_sync(self) -> None:
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"create table if not exists {self._table} ("
                    "slot text primary key, body jsonb not null, updated_at timestamptz not null default now())"
                )

    def _read_sync(self, slot: str) -> Optional[Any]:
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"select body from {self._table} where slot = %s", (slot,))
                row = cur.fetchone()
        if not row:
            return None
        return row[0]

    def _write_sync(self, slot: str, body: Any) -> None:
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"insert into {self._table} (slot, body, updated_at) values (%s, %s, now()) "
                    "on conflict (slot) do update set body = excluded.body, updated_at = now()",
                    (slot, Json(body)),
                )

    # --- async API ---------------------------------------------------------------

    async def ensure_schema(self) -> None:
        await self._run(self._ensure_schema_sync)

    async def _run(self, func, *args):
        try:
            return await anyio.to_thread.run_sync(func, *args)
        except StorageFailure:
            raise
        except Exception as exc:
            _log.warning("document db call failed: error=%s", type(exc).__name__)
            raise StorageFailure("document_db_failed", str(exc)) from exc

    @staticmethod
    def _as_text(body: Optional[Any]) -> Optional[str]:
        if body is None or isinstance(body, str):
            return body
        return json.dumps(body)

    async def load_site(self) -> SiteDocument:
        return parse_site(self._as_text(await self._run(self._read_sync, SITE_SLOT)))

    async def save_site(self, site: SiteDocument) -> None:
        await self._run(self._write_sync, SITE_SLOT, site.to_wire())

    async def load_users(self) -> List[User]:
        return parse_users(self._as_text(await self._run(self._read_sync, USERS_SLOT)))

    async def save_users(self, users: Sequence[User]) -> None:
        await self._run(self._write_sync, USERS_SLOT, [u.to_wire() for u in users])


__all__ = ["DBDocumentStore", "HAVE_PSYCOPG"]
