# File: site_auditor/aggregator.py
"""site_auditor.aggregator: turns a CrawlResult into report sections."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, TypedDict, Union

from site_auditor.crawler.models import CrawlResult, ObservationSet


class SeoInfoRow(TypedDict, total=False):
    """SEO facts of one page."""

    url: str
    title: str
    description: str
    canonical: str
    language: str
    charset: str
    robots: str
    viewport: str
    h1_count: int
    word_count: int
    image_count: int
    link_count: int
    has_structured_data: bool
    has_schema: bool
    has_open_graph: bool
    has_twitter_cards: bool
    lazy_images: int
    https: bool
    canonical_mismatch: bool


class IssueRow(TypedDict):
    url: str
    issue: str


class KeywordRow(TypedDict):
    url: str
    keyword: str
    count: int


@dataclass(slots=True)
class CrawlReport:
    """Crawl output grouped into the sections shown by the JSON and HTML reports."""

    summary: Dict[str, Any] = field(default_factory=dict)
    working_links: List[Dict[str, Any]] = field(default_factory=list)
    broken_links: List[Dict[str, Any]] = field(default_factory=list)
    duplicate_content: List[Dict[str, Any]] = field(default_factory=list)
    external_links: List[Dict[str, Any]] = field(default_factory=list)
    broken_resources: List[Dict[str, Any]] = field(default_factory=list)
    site_files: List[Dict[str, Any]] = field(default_factory=list)
    seo_info: List[SeoInfoRow] = field(default_factory=list)
    missing_seo: List[IssueRow] = field(default_factory=list)
    accessibility: List[IssueRow] = field(default_factory=list)
    keyword_density: List[KeywordRow] = field(default_factory=list)

    raw_result: Optional[CrawlResult] = None

    SECTION_TITLES = {
        "summary": "Crawl Summary",
        "working_links": "Working Links",
        "broken_links": "Broken Links",
        "duplicate_content": "Duplicate Content",
        "external_links": "External Links",
        "broken_resources": "Broken Resources",
        "site_files": "Sitemap & robots.txt",
        "seo_info": "SEO Info",
        "missing_seo": "Missing SEO Issues",
        "accessibility": "Accessibility Issues",
        "keyword_density": "Keyword Density",
    }

    def to_dict(self) -> Dict[str, Any]:
        """Sections keyed by their titles, without the raw result."""
        data = {k: v for k, v in asdict(self).items() if k != "raw_result"}
        return {title: data[key] for key, title in self.SECTION_TITLES.items()}

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None, default=str)


def _seo_row(obs: ObservationSet) -> SeoInfoRow:
    row: SeoInfoRow = {
        "url": obs.url,
        "title": obs.title,
        "description": obs.description,
        "canonical": obs.canonical,
        "language": obs.language,
        "charset": obs.charset,
        "robots": obs.robots,
        "viewport": obs.viewport,
        "h1_count": obs.h1_count,
        "word_count": obs.word_count,
        "image_count": obs.image_count,
        "link_count": obs.link_count,
    }
    for key in SeoInfoRow.__annotations__:
        if key in obs.flags:
            row[key] = obs.flags[key]  # type: ignore[literal-required]
    return row


def _status_text(status: Union[int, str, None]) -> str:
    return "" if status is None else str(status)


def aggregate_results(result: CrawlResult) -> CrawlReport:
    """Build all report sections from one finished crawl."""
    report = CrawlReport(raw_result=result)
    report.summary = {"seed_url": result.seed_url, "budget": result.budget, **result.stats}

    report.working_links = [
        {
            "url": page.url,
            "status": page.status_code,
            "final_url": page.final_url,
            "via_fallback": page.via_fallback,
            "latency_ms": page.latency_ms,
        }
        for page in result.working_links
    ]
    report.broken_links = [
        {"url": b.url, "status": _status_text(b.status), "reason": b.reason} for b in result.broken_links
    ]
    report.duplicate_content = [asdict(d) for d in result.duplicates]
    report.external_links = [asdict(e) for e in result.external_links]
    report.broken_resources = [
        {"page": r.page, "resource": r.resource, "kind": r.kind, "status": _status_text(r.status)}
        for r in result.broken_resources
    ]
    report.site_files = [asdict(s) for s in result.site_files]

    for obs in result.observations:
        report.seo_info.append(_seo_row(obs))
        report.missing_seo.extend({"url": obs.url, "issue": issue} for issue in obs.seo_issues)
        report.accessibility.extend({"url": obs.url, "issue": issue} for issue in obs.accessibility_issues)
        report.accessibility.extend(
            {"url": obs.url, "issue": f"Link without anchor text: {href}"} for href in obs.missing_anchor_text
        )
        report.keyword_density.extend(
            {"url": obs.url, "keyword": kw["keyword"], "count": kw["count"]} for kw in obs.keywords
        )
    return report
