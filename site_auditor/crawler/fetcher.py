# site_auditor/crawler/fetcher.py
"""
Lightweight fetch: a plain HTTP GET used when the browser renderer fails.
"""
from __future__ import annotations

import asyncio
import errno
from typing import Optional, Sequence, Union

from aiohttp import (
    ClientConnectorError,
    ClientError,
    ClientResponseError,
    ClientSession,
    ClientTimeout,
    TooManyRedirects,
)

from site_auditor.config import CrawlerConfig
from site_auditor.crawler.errors import FetchError
from site_auditor.crawler.models import FetchFailure, FetchSuccess
from site_auditor.logger import get_logger

__all__ = ("HttpFetcher", "transport_error_code")

logger = get_logger("crawler.fetcher")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


class _RetryableStatus(Exception):
    """Raised inside the retry loop for a 5xx/429 that still has attempts left."""

    def __init__(self, status: int) -> None:
        super().__init__(f"retryable status {status}")
        self.status = status


def transport_error_code(exc: BaseException) -> str:
    """Map a transport exception to an errno-style code such as ``ECONNREFUSED``."""
    if isinstance(exc, asyncio.TimeoutError):
        return "ETIMEDOUT"
    os_error: Optional[BaseException] = exc
    if isinstance(exc, ClientConnectorError):
        os_error = exc.os_error
    if isinstance(os_error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(os_error, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(os_error, OSError) and os_error.errno in errno.errorcode:
        return errno.errorcode[os_error.errno]
    if isinstance(exc, TooManyRedirects):
        return "ERR_TOO_MANY_REDIRECTS"
    if isinstance(exc, ClientResponseError):
        return f"HTTP{exc.status}"
    return type(exc).__name__


class HttpFetcher:
    """GET with a short timeout, a fixed identifying User-Agent and optional retries on 5xx/429."""

    def __init__(self, session: ClientSession, config: CrawlerConfig) -> None:
        self.session = session
        self.config = config
        self.retry_times = config.retry_times
        self._timeout = ClientTimeout(total=config.fetch_timeout)
        self._headers = {"User-Agent": config.user_agent}

    async def fetch(self, url: str) -> Union[FetchSuccess, FetchFailure]:
        try:
            return await self._get(url)
        except FetchError as exc:
            logger.warning("Fallback fetch failed %s: %s", url, exc)
            return FetchFailure(reason=str(exc), status_code=exc.status_code, error_code=exc.error_code)

    async def _get(self, url: str) -> FetchSuccess:
        attempts = 0
        while True:
            try:
                async with self.session.get(url, timeout=self._timeout, headers=self._headers) as resp:
                    status = resp.status
                    if status in RETRY_STATUS and attempts < self.retry_times:
                        raise _RetryableStatus(status)
                    if status >= 400:
                        raise FetchError(f"HTTP {status}", status_code=status)
                    content_type = resp.headers.get("Content-Type", "")
                    text = await resp.text(errors="replace") if "html" in content_type.lower() or not content_type else ""
                    return FetchSuccess(html=text, final_url=str(resp.url), status_code=status, content_type=content_type)
            except _RetryableStatus as retry:
                attempts += 1
                backoff = min(60, 2**attempts)
                logger.debug(
                    "Retry %d/%d for %s (HTTP %d) after %.2f s", attempts, self.retry_times, url, retry.status, backoff
                )
                await asyncio.sleep(backoff)
            except (ClientError, asyncio.TimeoutError) as exc:
                raise FetchError(f"{type(exc).__name__}: {exc}", error_code=transport_error_code(exc)) from exc
