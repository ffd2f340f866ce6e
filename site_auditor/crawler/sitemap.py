# site_auditor/crawler/sitemap.py
"""
Sitemap-seeded discovery and robots.txt existence check.

Neither a missing nor a corrupt sitemap ever aborts a crawl: the resolver
returns an empty list and discovery degrades to following links from the seed.
"""
from __future__ import annotations

import asyncio
from typing import List, Set
from urllib.parse import urljoin

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_auditor.crawler.errors import SitemapUnavailable
from site_auditor.crawler.models import NormalizedURL, SiteFileInfo
from site_auditor.crawler.normalizer import try_normalize
from site_auditor.logger import get_logger
from site_auditor.parser.sitemap_parser import SitemapDocument, parse_sitemap

__all__ = ("SitemapResolver", "SitemapDiscovery", "probe_robots")

logger = get_logger("crawler.sitemap")


class SitemapDiscovery:
    """URLs found through ``<base>/sitemap.xml`` plus the existence fact for reporting."""

    __slots__ = ("urls", "info")

    def __init__(self, urls: List[NormalizedURL], info: SiteFileInfo) -> None:
        self.urls = urls
        self.info = info


class SitemapResolver:
    """Expands sitemap and sitemap-index documents into a flat URL list."""

    def __init__(self, session: ClientSession, timeout: float = 15.0) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)
        self.available: Set[str] = set()

    async def resolve(self, sitemap_url: str, seen: Set[str]) -> List[NormalizedURL]:
        """Return the leaf page URLs reachable from *sitemap_url*.

        *seen* holds every sitemap URL already expanded during this resolution;
        a sitemap met a second time contributes nothing, which makes cyclic
        sitemap indexes terminate.
        """
        key = try_normalize(sitemap_url) or sitemap_url
        if key in seen:
            logger.debug("Sitemap %s already expanded, skipping", key)
            return []
        seen.add(key)

        try:
            document = await self._fetch_document(key)
        except SitemapUnavailable as exc:
            logger.debug("Sitemap unavailable: %s", exc)
            return []
        self.available.add(key)

        if not document.is_index:
            urls = [url for url in (try_normalize(loc) for loc in document.locs) if url]
            logger.debug("Sitemap %s lists %d URLs", key, len(urls))
            return urls

        collected: List[NormalizedURL] = []
        for child in document.locs:
            child_url = try_normalize(child, key)
            if child_url:
                collected.extend(await self.resolve(child_url, seen))
        return collected

    async def discover(self, base_url: str) -> SitemapDiscovery:
        sitemap_url = urljoin(_with_slash(base_url), "sitemap.xml")
        urls = await self.resolve(sitemap_url, set())
        key = try_normalize(sitemap_url) or sitemap_url
        if key not in self.available:
            info = SiteFileInfo(url=sitemap_url, status="missing", note="sitemap.xml missing")
        elif urls:
            info = SiteFileInfo(url=sitemap_url, status="found", note=f"sitemap.xml found ({len(urls)} URLs)")
        else:
            info = SiteFileInfo(url=sitemap_url, status="found", note="sitemap.xml found but no URLs")
        logger.info("%s", info.note)
        return SitemapDiscovery(urls, info)

    async def _fetch_document(self, url: str) -> SitemapDocument:
        try:
            async with self.session.get(url, timeout=self.timeout) as resp:
                if resp.status != 200:
                    raise SitemapUnavailable(f"{url} -> HTTP {resp.status}")
                body = await resp.read()
        except (ClientError, asyncio.TimeoutError) as exc:
            raise SitemapUnavailable(f"{url}: {exc!r}") from exc
        try:
            return parse_sitemap(body)
        except ValueError as exc:
            raise SitemapUnavailable(f"{url}: {exc}") from exc


async def probe_robots(session: ClientSession, base_url: str, timeout: float = 15.0) -> SiteFileInfo:
    """Record whether ``/robots.txt`` exists. Its rules are not interpreted."""
    robots_url = urljoin(base_url, "/robots.txt")
    try:
        async with session.get(robots_url, timeout=ClientTimeout(total=timeout)) as resp:
            found = resp.status == 200
            if not found:
                logger.debug("robots.txt %s -> HTTP %s", robots_url, resp.status)
    except (ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Error loading robots.txt: %s", exc)
        found = False
    status = "found" if found else "missing"
    return SiteFileInfo(url=robots_url, status=status, note=f"robots.txt {status}")


def _with_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"
