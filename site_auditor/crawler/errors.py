# site_auditor/crawler/errors.py
"""
Exception taxonomy of the crawl engine.

Only :class:`CrawlSetupError` is allowed to reach the caller of a crawl run;
every other error is turned into a record at the per-page boundary.
"""
from __future__ import annotations

from typing import Optional, Union


class CrawlError(Exception):
    """Base class for all crawl engine errors."""


class NormalizationError(CrawlError, ValueError):
    """Raised when an href is not a crawlable http(s) link."""

    def __init__(self, href: str, reason: str) -> None:
        super().__init__(f"{reason}: {href!r}")
        self.href = href
        self.reason = reason


class RenderError(CrawlError):
    """Raised when the browser renderer cannot produce a document."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchError(CrawlError):
    """Raised when the lightweight HTTP fetch fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code

    @property
    def status(self) -> Union[int, str]:
        return self.status_code if self.status_code is not None else (self.error_code or "error")


class SitemapUnavailable(CrawlError):
    """Sitemap missing, unreachable or malformed."""


class ResourceUnreachable(CrawlError):
    """Embedded image, script or stylesheet could not be loaded."""

    def __init__(self, url: str, status: Union[int, str]) -> None:
        super().__init__(f"{url} -> {status}")
        self.url = url
        self.status = status


class CrawlSetupError(CrawlError):
    """Unrecoverable setup failure (e.g. the browser cannot be launched)."""
