# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional

import pytest
from aiohttp import web

from site_auditor.config import CrawlerConfig
from site_auditor.crawler.errors import CrawlSetupError
from site_auditor.crawler.models import FetchSuccess, RendererFailure


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def html_page(body: str, title: str = "Test page") -> str:
    return f"<html lang='en'><head><title>{title}</title></head><body>{body}</body></html>"


class StubRenderer:
    """In-memory stand-in for the browser renderer.

    URLs found in *pages* render successfully; anything else fails like a
    page load timeout so the crawl falls back to plain HTTP.
    """

    def __init__(self, pages: Optional[Dict[str, str]] = None, fail_start: bool = False) -> None:
        self.pages = pages or {}
        self.fail_start = fail_start
        self.started = False
        self.closed = False
        self.calls: List[str] = []

    async def start(self) -> None:
        if self.fail_start:
            raise CrawlSetupError("browser could not be launched: stub")
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def fetch(self, url: str):
        self.calls.append(url)
        if url in self.pages:
            return FetchSuccess(html=self.pages[url], final_url=url, status_code=200)
        return RendererFailure(reason=f"page load timeout after 50ms: {url}")


@pytest.fixture()
def base_config() -> CrawlerConfig:
    """Fast config for tests: no browser, no politeness delay, short timeouts."""
    return CrawlerConfig(
        base_url="http://127.0.0.1/",
        max_pages=50,
        concurrency=2,
        politeness_delay=0,
        render=False,
        fetch_timeout=2.0,
        resource_timeout=1.0,
        sitemap_timeout=1.0,
        user_agent="TestAgent/1.0",
    )
