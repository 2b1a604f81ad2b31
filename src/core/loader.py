"""
ICS Reader — Load/refresh orchestration.

Connects a DocumentSource to the EventStore. Listing and parsing run in a
worker thread (sources may block on disk or network); at most one refresh
is in flight at a time.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.event_store import EventStore, LoadReport
    from src.ports.document_port import DocumentSource

logger = logging.getLogger(__name__)


class LoadInProgress(Exception):
    """Raised when a refresh is requested while another one is running."""


class EventLoader:
    """Runs full reloads of an EventStore from a DocumentSource."""

    def __init__(self, source: DocumentSource, store: EventStore) -> None:
        self._source = source
        self._store = store
        self._lock = asyncio.Lock()

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def refresh(self) -> LoadReport:
        """Reload every document and swap in the new collection.

        Raises:
            LoadInProgress: another refresh has not finished yet.
            DocumentReadFailure: the source could not even list its documents;
                the previous collection is kept.
        """
        if self._lock.locked():
            raise LoadInProgress("A refresh is already running.")

        async with self._lock:
            logger.info("Refreshing events from %s", type(self._source).__name__)
            return await asyncio.to_thread(self._load)

    def _load(self) -> LoadReport:
        documents = self._source.list_documents()
        return self._store.load_all(documents)
