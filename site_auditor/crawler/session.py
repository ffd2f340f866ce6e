# site_auditor/crawler/session.py
"""
One crawl run and everything it owns.

A :class:`CrawlSession` is created fresh for every run; its registries, frontier,
counters and results die with it. Entering the session opens the HTTP client
and launches the browser; leaving it releases both whatever happened.
"""
from __future__ import annotations

import time
from typing import Any, Optional

from aiohttp import ClientSession

from site_auditor.config import CrawlerConfig
from site_auditor.crawler.fetcher import HttpFetcher
from site_auditor.crawler.frontier import Frontier
from site_auditor.crawler.models import CrawlCounters, CrawlResult, PageState
from site_auditor.crawler.normalizer import is_same_origin, normalize_url
from site_auditor.crawler.registry import ContentFingerprintIndex, VisitedRegistry
from site_auditor.crawler.renderer import BrowserRenderer
from site_auditor.crawler.resources import ResourceChecker
from site_auditor.crawler.scheduler import Extractor, Scheduler
from site_auditor.crawler.sitemap import SitemapResolver, probe_robots
from site_auditor.crawler.strategy import FetchStrategy, PrimaryFetcher
from site_auditor.logger import get_logger
from site_auditor.parser.html_parser import extract_observations

__all__ = ("CrawlSession", "run_crawl")

logger = get_logger("crawler.session")


class CrawlSession:
    """Single-use owner of all mutable crawl state.

    Usage::

        async with CrawlSession(config) as session:
            result = await session.crawl()
    """

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        extractor: Optional[Extractor] = None,
        renderer: Optional[PrimaryFetcher] = None,
        resource_checker: Optional[ResourceChecker] = None,
    ) -> None:
        self.config = config
        self.seed_url = normalize_url(str(config.base_url))
        self.registry = VisitedRegistry(config.max_pages)
        self.fingerprints = ContentFingerprintIndex()
        self.frontier = Frontier(self.registry)
        self.counters = CrawlCounters()
        self.result = CrawlResult(seed_url=self.seed_url, budget=config.max_pages)
        self.extractor: Extractor = extractor or extract_observations
        if renderer is None and config.render:
            renderer = BrowserRenderer(config)
        self.renderer = renderer
        self._resource_checker = resource_checker
        self.http: Optional[ClientSession] = None
        self._crawled = False

    async def __aenter__(self) -> CrawlSession:
        self.http = ClientSession(headers={"User-Agent": self.config.user_agent}, raise_for_status=False)
        try:
            if self.renderer is not None:
                await self.renderer.start()
        except BaseException:
            await self._release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._release()

    async def _release(self) -> None:
        try:
            if self.renderer is not None:
                await self.renderer.close()
        finally:
            if self.http is not None and not self.http.closed:
                await self.http.close()

    async def crawl(self) -> CrawlResult:
        if self.http is None or self.http.closed:
            raise RuntimeError("CrawlSession must be entered with 'async with' before crawling")
        if self._crawled:
            raise RuntimeError("a CrawlSession runs exactly one crawl")
        self._crawled = True

        self.counters.started_at = time.monotonic()
        logger.info("Starting crawl of %s (max %d pages)", self.seed_url, self.config.max_pages)
        await self.seed()

        scheduler = Scheduler(
            self.config,
            seed_url=self.seed_url,
            frontier=self.frontier,
            registry=self.registry,
            fingerprints=self.fingerprints,
            strategy=FetchStrategy(HttpFetcher(self.http, self.config), primary=self.renderer),
            extractor=self.extractor,
            result=self.result,
            counters=self.counters,
            resource_checker=self._make_resource_checker(),
        )
        await scheduler.run()

        self.result.stats = self.stats(discarded=scheduler.discarded)
        logger.info(
            "Crawl completed: %d/%d pages in %.2f s, %d broken, %d errors, avg response %.2f ms",
            len(self.registry),
            self.config.max_pages,
            self.counters.elapsed,
            len(self.result.broken_links),
            self.counters.errors,
            self.counters.average_response_time,
        )
        return self.result

    def stats(self, **extra: Any) -> dict[str, Any]:
        """Counters plus result totals; safe to call while the crawl is running."""
        data = self.counters.snapshot()
        data.update(
            visited=len(self.registry),
            working_links=sum(1 for p in self.result.pages if p.state is PageState.SUCCEEDED),
            broken_links=len(self.result.broken_links),
            duplicate_pages=len(self.result.duplicates),
            pending=len(self.frontier),
            max_pages=self.config.max_pages,
        )
        data.update(extra)
        return data

    async def seed(self) -> None:
        """Queue the seed URL and the same-origin URLs listed by the sitemap."""
        self.frontier.push(self.seed_url)
        assert self.http is not None
        robots = await probe_robots(self.http, self.seed_url, self.config.sitemap_timeout)
        discovery = await SitemapResolver(self.http, self.config.sitemap_timeout).discover(self.seed_url)
        self.result.site_files.extend([robots, discovery.info])

        queued = 0
        for url in discovery.urls:
            if is_same_origin(url, self.seed_url):
                queued += self.frontier.push(url)
        logger.info("Frontier seeded with %d URLs (%d from sitemap)", len(self.frontier), queued)

    def _make_resource_checker(self) -> Optional[ResourceChecker]:
        if self._resource_checker is not None:
            return self._resource_checker
        if not self.config.check_resources:
            return None
        assert self.http is not None
        return ResourceChecker(
            self.http,
            timeout=self.config.resource_timeout,
            batch_size=self.config.resource_batch_size,
            user_agent=self.config.user_agent,
        )


async def run_crawl(
    seed_url: str,
    budget: int,
    *,
    config: Optional[CrawlerConfig] = None,
    extractor: Optional[Extractor] = None,
    renderer: Optional[PrimaryFetcher] = None,
    resource_checker: Optional[ResourceChecker] = None,
) -> CrawlResult:
    """Crawl *seed_url* visiting at most *budget* pages and return everything collected.

    *config* supplies the remaining settings; its ``base_url`` and ``max_pages``
    are replaced by *seed_url* and *budget*.
    """
    settings = config.model_dump(mode="json") if config is not None else {}
    settings.update(base_url=seed_url, max_pages=budget)
    cfg = CrawlerConfig.model_validate(settings)
    async with CrawlSession(cfg, extractor=extractor, renderer=renderer, resource_checker=resource_checker) as session:
        return await session.crawl()
