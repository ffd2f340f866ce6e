# site_auditor/crawler/resources.py
"""
Reachability checks for images, scripts and stylesheets embedded in a page.
"""
from __future__ import annotations

import asyncio
from typing import Iterable, List

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_auditor.crawler.errors import ResourceUnreachable
from site_auditor.crawler.fetcher import transport_error_code
from site_auditor.crawler.models import ResourceCheck
from site_auditor.logger import get_logger

__all__ = ("ResourceChecker",)

logger = get_logger("crawler.resources")


class ResourceChecker:
    """Issues HEAD requests with a per-resource timeout and a bounded per-page batch."""

    def __init__(self, session: ClientSession, timeout: float = 5.0, batch_size: int = 10, user_agent: str = "") -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)
        self.batch_size = batch_size
        self._headers = {"User-Agent": user_agent} if user_agent else {}

    async def check_reachable(self, url: str) -> ResourceCheck:
        try:
            await self._head(url)
        except ResourceUnreachable as exc:
            return ResourceCheck(url=url, ok=False, status=exc.status)
        return ResourceCheck(url=url, ok=True, status=None)

    async def check_many(self, urls: Iterable[str]) -> List[ResourceCheck]:
        """Check all *urls* concurrently, at most ``batch_size`` in flight; each settles on its own."""
        semaphore = asyncio.Semaphore(self.batch_size)

        async def bounded(url: str) -> ResourceCheck:
            async with semaphore:
                return await self.check_reachable(url)

        return list(await asyncio.gather(*(bounded(u) for u in urls)))

    async def _head(self, url: str) -> None:
        try:
            async with self.session.head(
                url, timeout=self.timeout, headers=self._headers, allow_redirects=True
            ) as resp:
                if resp.status >= 400:
                    raise ResourceUnreachable(url, resp.status)
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Resource check failed %s: %r", url, exc)
            raise ResourceUnreachable(url, transport_error_code(exc)) from exc
