# site_auditor/crawler/frontier.py
"""
Pending-work queue of one crawl session.

A URL is *pending* from the moment it is pushed until a worker has passed it
through admission. Pushing a URL that is pending or already admitted is a
no-op, so the queue never holds two entries for the same URL.

Like the registry it consults, the frontier lives on the session's event loop.
:meth:`Frontier.push` and :meth:`Frontier.mark_dispatched` never await, so the
check and the insert of a push cannot interleave with another worker.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Set

from site_auditor.crawler.models import FrontierEntry, NormalizedURL
from site_auditor.crawler.registry import VisitedRegistry

__all__ = ("Frontier",)


class Frontier:
    def __init__(self, registry: VisitedRegistry) -> None:
        self._registry = registry
        self._queue: asyncio.Queue[FrontierEntry] = asyncio.Queue()
        self._pending: Set[str] = set()
        self._closed = False

    def push(self, url: NormalizedURL, discovered_from: Optional[NormalizedURL] = None) -> bool:
        """Queue *url* unless it is pending, admitted, or the frontier is closed."""
        if self._closed or url in self._pending or url in self._registry:
            return False
        self._pending.add(url)
        self._queue.put_nowait(FrontierEntry(url, discovered_from))
        return True

    async def get(self) -> FrontierEntry:
        return await self._queue.get()

    def mark_dispatched(self, url: str) -> None:
        """Drop *url* from the pending set once admission has been decided."""
        self._pending.discard(url)

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def close(self) -> None:
        """Refuse all further pushes; already queued entries still drain."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def is_pending(self, url: str) -> bool:
        return url in self._pending

    def __len__(self) -> int:
        return self._queue.qsize()
