"""Polling change detection for document sources."""

import asyncio
import logging
from typing import Awaitable, Callable

from vaultrag.models import ChangeEvent, ChangeKind, SourceDocument
from vaultrag.protocols import DocumentSource

logger = logging.getLogger(__name__)


class FolderWatcher:
    """Turn successive listings of a source into change events.

    A deleted and a created document with the same modification time in one
    poll are reported as a rename, since moving a file keeps its mtime.
    """

    def __init__(self, source: DocumentSource, interval: float = 2.0):
        self.source = source
        self.interval = interval
        self._snapshot: dict[str, SourceDocument] = {}

    def prime(self) -> None:
        """Record the current state without reporting it as changes."""
        self._snapshot = {d.source_id: d for d in self.source.list_documents()}

    def poll(self) -> list[ChangeEvent]:
        """Diff the source against the last snapshot and return the changes."""
        current = {d.source_id: d for d in self.source.list_documents()}
        previous = self._snapshot
        self._snapshot = current

        deleted = [sid for sid in previous if sid not in current]
        created = [doc for sid, doc in current.items() if sid not in previous]
        modified = [
            doc
            for sid, doc in current.items()
            if sid in previous and doc.modified_ms != previous[sid].modified_ms
        ]

        events = []
        for doc in created:
            matches = [sid for sid in deleted if previous[sid].modified_ms == doc.modified_ms]
            if len(matches) == 1:
                deleted.remove(matches[0])
                events.append(
                    ChangeEvent(ChangeKind.RENAMED, document=doc, old_source_id=matches[0])
                )
            else:
                events.append(ChangeEvent(ChangeKind.CREATED, document=doc))

        events.extend(ChangeEvent(ChangeKind.MODIFIED, document=doc) for doc in modified)
        events.extend(ChangeEvent(ChangeKind.DELETED, source_id=sid) for sid in deleted)
        return events

    async def watch(self, handler: Callable[[ChangeEvent], Awaitable[object]]) -> None:
        """Poll forever, passing every change to ``handler`` in order."""
        # Listing walks the filesystem, so keep it off the event loop
        await asyncio.to_thread(self.prime)
        while True:
            await asyncio.sleep(self.interval)
            for event in await asyncio.to_thread(self.poll):
                logger.info(f"{event.kind.value}: {event.target_id}")
                await handler(event)
