# site_auditor/crawler/models.py
"""
Data models for the SiteAuditor crawl engine.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, NewType, Optional, Union

NormalizedURL = NewType("NormalizedURL", str)


class PageState(str, Enum):
    """Lifecycle of a single URL inside one crawl."""

    DISCOVERED = "discovered"
    ADMITTED = "admitted"
    FETCHING = "fetching"
    FELL_BACK = "fell_back"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A discovered URL waiting for dispatch. ``discovered_from`` is None for seed and sitemap URLs."""

    url: NormalizedURL
    discovered_from: Optional[NormalizedURL] = None


# --------------------------------------------------------------------------- #
# Fetch outcomes                                                              #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class FetchSuccess:
    html: str
    final_url: str
    status_code: int
    content_type: str = "text/html"

    @property
    def is_html(self) -> bool:
        return not self.content_type or "html" in self.content_type.lower()


@dataclass(slots=True)
class RendererFailure:
    reason: str
    status_code: Optional[int] = None


@dataclass(slots=True)
class FetchFailure:
    reason: str
    status_code: Optional[int] = None
    error_code: Optional[str] = None

    @property
    def status(self) -> Union[int, str]:
        """Best-known status: HTTP code if one was received, else the transport error code."""
        if self.status_code is not None:
            return self.status_code
        return self.error_code or "error"


FetchOutcome = Union[FetchSuccess, RendererFailure, FetchFailure]


@dataclass(slots=True)
class FetchResult:
    """Outcome of the primary/fallback chain for one URL."""

    outcome: FetchOutcome
    used_fallback: bool = False
    primary_failure: Optional[RendererFailure] = None

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, FetchSuccess)


# --------------------------------------------------------------------------- #
# Extraction contract                                                         #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class LinkRef:
    href: str
    text: str = ""


@dataclass(slots=True)
class ResourceRef:
    url: str
    kind: str  # image | script | css


@dataclass(slots=True)
class ObservationSet:
    """Structured facts about one page, produced by the extraction collaborator.

    The crawl engine reads only ``links`` and ``resources``; everything else is
    passed through untouched to the reporting layer.
    """

    url: str
    title: str = ""
    description: str = ""
    canonical: str = ""
    language: str = ""
    charset: str = ""
    robots: str = ""
    viewport: str = ""
    h1_count: int = 0
    word_count: int = 0
    image_count: int = 0
    link_count: int = 0
    flags: Dict[str, Any] = field(default_factory=dict)
    meta_tags: Dict[str, str] = field(default_factory=dict)
    seo_issues: List[str] = field(default_factory=list)
    accessibility_issues: List[str] = field(default_factory=list)
    missing_anchor_text: List[str] = field(default_factory=list)
    keywords: List[Dict[str, Any]] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    resources: List[ResourceRef] = field(default_factory=list)


@dataclass(slots=True)
class ResourceCheck:
    url: str
    ok: bool
    status: Union[int, str, None] = None


# --------------------------------------------------------------------------- #
# Crawl records                                                               #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class PageRecord:
    url: str
    state: PageState
    discovered_from: Optional[str] = None
    final_url: Optional[str] = None
    status_code: Optional[int] = None
    via_fallback: bool = False
    latency_ms: float = 0.0


@dataclass(slots=True)
class BrokenLink:
    url: str
    status: Union[int, str]
    reason: str = ""


@dataclass(slots=True)
class DuplicateContent:
    url: str
    duplicate_of: str
    issue: str = "Duplicate content detected"


@dataclass(slots=True)
class ExternalLink:
    source: str
    target: str
    text: str = ""


@dataclass(slots=True)
class BrokenResource:
    page: str
    resource: str
    kind: str
    status: Union[int, str]


@dataclass(slots=True)
class SiteFileInfo:
    """Existence fact about robots.txt or sitemap.xml."""

    url: str
    status: str
    note: str = ""


@dataclass(slots=True)
class CrawlCounters:
    """Session counters, readable while a crawl is running."""

    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    pages_scanned: int = 0
    errors: int = 0
    total_response_time: float = 0.0
    timed_pages: int = 0

    def record_latency(self, seconds: float) -> None:
        self.total_response_time += seconds
        self.timed_pages += 1

    def finish(self) -> None:
        if self.finished_at is None:
            self.finished_at = time.monotonic()

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    @property
    def average_response_time(self) -> float:
        """Average fetch latency in milliseconds."""
        if not self.timed_pages:
            return 0.0
        return self.total_response_time / self.timed_pages * 1000

    def snapshot(self) -> Dict[str, Any]:
        return {
            "pages_scanned": self.pages_scanned,
            "elapsed_seconds": round(self.elapsed, 3),
            "errors": self.errors,
            "average_response_time_ms": round(self.average_response_time, 2),
        }


@dataclass(slots=True)
class CrawlResult:
    """Everything one crawl run produced."""

    seed_url: str
    budget: int
    pages: List[PageRecord] = field(default_factory=list)
    broken_links: List[BrokenLink] = field(default_factory=list)
    duplicates: List[DuplicateContent] = field(default_factory=list)
    external_links: List[ExternalLink] = field(default_factory=list)
    broken_resources: List[BrokenResource] = field(default_factory=list)
    site_files: List[SiteFileInfo] = field(default_factory=list)
    observations: List[ObservationSet] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def visited(self) -> List[str]:
        return [p.url for p in self.pages]

    @property
    def working_links(self) -> List[PageRecord]:
        return [p for p in self.pages if p.state is PageState.SUCCEEDED]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
