# site_auditor/crawler/renderer.py
"""
Browser renderer: the primary fetch strategy.

One Chromium instance is launched per crawl session and shared by all
workers; every URL gets its own page, which is closed on every exit path.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Union

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeout

from site_auditor.config import CrawlerConfig
from site_auditor.crawler.errors import CrawlSetupError, RenderError
from site_auditor.crawler.models import FetchSuccess, RendererFailure
from site_auditor.logger import get_logger

__all__ = ("BrowserRenderer",)

logger = get_logger("crawler.renderer")

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-extensions",
    "--disable-background-networking",
    "--mute-audio",
]


class BrowserRenderer:
    """Renders pages with Playwright Chromium, waiting for ``render_wait_until``."""

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._open_pages = 0

    async def __aenter__(self) -> BrowserRenderer:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch the browser. Failure here is fatal for the crawl session."""
        async with self._lock:
            if self._browser is not None:
                return
            logger.info("Launching browser (headless=%s)", self.config.headless)
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless, args=_LAUNCH_ARGS
                )
            except (PlaywrightError, OSError) as exc:
                await self._shutdown()
                raise CrawlSetupError(f"browser could not be launched: {exc}") from exc

    async def close(self) -> None:
        """Tear the browser down. Safe to call more than once."""
        async with self._lock:
            await self._shutdown()

    async def _shutdown(self) -> None:
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                logger.warning("Error closing browser: %s", exc)
            self._browser = None
            logger.info("Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @property
    def open_pages(self) -> int:
        return self._open_pages

    async def fetch(self, url: str) -> Union[FetchSuccess, RendererFailure]:
        try:
            return await self._render(url)
        except RenderError as exc:
            logger.debug("Render failed %s: %s", url, exc)
            return RendererFailure(reason=str(exc), status_code=exc.status_code)

    async def _render(self, url: str) -> FetchSuccess:
        if self._browser is None:
            raise RenderError("browser is not running")
        page: Optional[Page] = None
        timeout_ms = self.config.render_timeout * 1000
        try:
            page = await self._browser.new_page(user_agent=self.config.user_agent, ignore_https_errors=True)
            self._open_pages += 1
            response = await page.goto(url, timeout=timeout_ms, wait_until=self.config.render_wait_until)
            if response is None:
                raise RenderError(f"no response from {url}")
            if response.status >= 400:
                raise RenderError(f"HTTP {response.status} for {url}", status_code=response.status)
            html = await page.content()
            return FetchSuccess(
                html=html,
                final_url=page.url,
                status_code=response.status,
                content_type=response.headers.get("content-type", ""),
            )
        except PlaywrightTimeout as exc:
            raise RenderError(f"page load timeout after {timeout_ms:.0f}ms: {url}") from exc
        except PlaywrightError as exc:
            raise RenderError(f"failed to render {url}: {exc.message}") from exc
        finally:
            if page is not None:
                try:
                    await page.close()
                except PlaywrightError as exc:
                    logger.warning("Error closing page for %s: %s", url, exc)
                self._open_pages -= 1
