# File: site_auditor/engine.py
"""site_auditor.engine: orchestration layer between the CLI and the crawl engine."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_auditor.aggregator import CrawlReport, aggregate_results
from site_auditor.config import CrawlerConfig, load_config
from site_auditor.crawler.models import CrawlResult
from site_auditor.crawler.session import CrawlSession
from site_auditor.logger import logger

__all__ = ["Engine", "start_crawl"]


async def start_crawl(cfg: CrawlerConfig) -> CrawlResult:
    """Run one crawl session described by *cfg*."""
    async with CrawlSession(cfg) as session:
        return await session.crawl()


class Engine:
    """Facade for scripts and tests: load config, crawl, aggregate."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        return load_config(path)

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config

    def run(self, timeout: Optional[float] = None) -> CrawlReport:
        """Crawl synchronously; *timeout* caps the whole run in seconds."""
        logger.info("Starting crawl of %s", self.config.base_url)
        try:
            result = asyncio.run(asyncio.wait_for(start_crawl(self.config), timeout=timeout))
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
        return aggregate_results(result)
