"""
In-memory site state shared by all services.

Holds the current `SiteDocument` snapshot, signals load completion and
publishes every committed version to subscribers. Writes always go through
`commit()`: persist first, then swap the snapshot and notify, so a failed save
leaves both the durable and the in-memory state untouched.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

import anyio

from classroom.storage.ports import DocumentStoreProtocol
from classroom.teaching.models import SiteDocument

_log = logging.getLogger("classroom.teaching")

Subscriber = Callable[[SiteDocument], None]


class SiteState:
    def __init__(self, documents: DocumentStoreProtocol) -> None:
        self._documents = documents
        self._site: Optional[SiteDocument] = None
        self._loaded: Optional[anyio.Event] = None
        self._subscribers: List[Subscriber] = []

    @property
    def site(self) -> Optional[SiteDocument]:
        """Current snapshot; None until `load()` has completed."""
        return self._site

    @property
    def is_loaded(self) -> bool:
        return self._site is not None

    async def load(self) -> SiteDocument:
        site = await self._documents.load_site()
        self._publish(site)
        self._loaded_event().set()
        return site

    def _loaded_event(self) -> anyio.Event:
        # Created lazily: anyio events need a running event loop.
        if self._loaded is None:
            self._loaded = anyio.Event()
        return self._loaded

    async def wait_loaded(self) -> SiteDocument:
        if self._site is None:
            await self._loaded_event().wait()
        if self._site is None:
            raise RuntimeError("site document was not published")
        return self._site

    async def commit(self, site: SiteDocument) -> SiteDocument:
        await self._documents.save_site(site)
        self._publish(site)
        return site

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a snapshot listener; returns an unsubscribe callable."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, site: SiteDocument) -> None:
        self._site = site
        for callback in list(self._subscribers):
            try:
                callback(site)
            except Exception:
                _log.exception("site subscriber failed: %r", callback)


__all__ = ["SiteState", "Subscriber"]
