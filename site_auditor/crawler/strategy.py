# site_auditor/crawler/strategy.py
"""
Primary/fallback fetch failover.
"""
from __future__ import annotations

from typing import Optional, Protocol, Union

from site_auditor.crawler.models import FetchFailure, FetchResult, FetchSuccess, RendererFailure
from site_auditor.logger import get_logger

__all__ = ("PrimaryFetcher", "FallbackFetcher", "FetchStrategy")

logger = get_logger("crawler.strategy")


class PrimaryFetcher(Protocol):
    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def fetch(self, url: str) -> Union[FetchSuccess, RendererFailure]: ...


class FallbackFetcher(Protocol):
    async def fetch(self, url: str) -> Union[FetchSuccess, FetchFailure]: ...


class FetchStrategy:
    """Tries the renderer first and the plain HTTP GET only if the renderer failed.

    Without a primary (rendering disabled) the HTTP fetcher is the only path
    and its result is never marked as a fallback.
    """

    def __init__(self, fallback: FallbackFetcher, primary: Optional[PrimaryFetcher] = None) -> None:
        self.primary = primary
        self.fallback = fallback

    async def fetch(self, url: str) -> FetchResult:
        if self.primary is None:
            return FetchResult(outcome=await self.fallback.fetch(url))

        first = await self.primary.fetch(url)
        if isinstance(first, FetchSuccess):
            return FetchResult(outcome=first)

        logger.info("Renderer failed for %s (%s), falling back to HTTP GET", url, first.reason)
        outcome = await self.fallback.fetch(url)
        if isinstance(outcome, FetchFailure) and outcome.status_code is None and first.status_code is not None:
            # keep the HTTP status the renderer saw when the fallback got none
            outcome.status_code = first.status_code
        return FetchResult(outcome=outcome, used_fallback=True, primary_failure=first)
