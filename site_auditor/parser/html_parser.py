# === FILE: site_auditor/parser/html_parser.py ===
"""HTML extraction for SiteAuditor.

:func:`extract_observations` is the default extraction collaborator handed to
the crawl engine. It turns one fetched document into an
:class:`~site_auditor.crawler.models.ObservationSet`:

* SEO fields - title, meta description, canonical, lang, charset, robots,
  viewport, Open Graph / Twitter meta, structured data flags;
* SEO issues - missing or badly sized title and description, missing
  canonical and ``lang``;
* accessibility findings - unlabeled form controls, skipped heading levels,
  images without ``alt``;
* raw ``<a href>`` links and embedded image/script/stylesheet references.

The engine only interprets ``links`` and ``resources``; links are returned
exactly as written in the markup and resolved by the engine.
"""
from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_auditor.crawler.models import LinkRef, ObservationSet, ResourceRef

__all__: Sequence[str] = ("extract_observations", "top_keywords")

TITLE_RANGE = (50, 60)
DESCRIPTION_RANGE = (120, 160)
KEYWORD_LIMIT = 20

_WORD_RE = re.compile(r"\w+", re.UNICODE)
_SKIP_HREF = ("mailto:", "tel:")


def top_keywords(text: str, limit: int = KEYWORD_LIMIT) -> list[dict[str, Any]]:
    """Most frequent words of *text*, as ``{"keyword", "count"}`` dicts."""
    words = _WORD_RE.findall(text.lower())
    return [{"keyword": word, "count": count} for word, count in Counter(words).most_common(limit)]


def _attr(tag: Any, name: str) -> str:
    if not isinstance(tag, Tag):
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    return _attr(soup.find("meta", attrs=attrs), "content")


def _seo_issues(title: str, description: str, canonical: str, language: str) -> list[str]:
    issues: list[str] = []
    low, high = TITLE_RANGE
    if not title:
        issues.append("Missing <title> tag")
    elif len(title) < low:
        issues.append(f"Title tag too short: {len(title)} characters (should be {low}-{high})")
    elif len(title) > high:
        issues.append(f"Title tag too long: {len(title)} characters (should be {low}-{high})")

    low, high = DESCRIPTION_RANGE
    if not description:
        issues.append("Missing meta description")
    elif len(description) < low:
        issues.append(f"Meta description too short: {len(description)} characters (should be {low}-{high})")
    elif len(description) > high:
        issues.append(f"Meta description too long: {len(description)} characters (should be {low}-{high})")

    if not canonical:
        issues.append("Missing canonical tag")
    if not language:
        issues.append("Missing lang attribute on <html>")
    return issues


def _accessibility_issues(soup: BeautifulSoup) -> list[str]:
    issues: list[str] = []
    for control in soup.find_all(["input", "textarea", "select"]):
        if not any(_attr(control, a) for a in ("aria-label", "aria-labelledby", "id")):
            issues.append("Form element missing label or aria attributes")

    levels = [int(h.name[1]) for h in soup.find_all(re.compile(r"^h[1-6]$"))]
    for prev, cur in zip(levels, levels[1:]):
        if cur - prev > 1:
            issues.append(f"Skipped heading level from h{prev} to h{cur}")

    for img in soup.find_all("img"):
        if not _attr(img, "alt"):
            issues.append(f"Image missing alt text: {_attr(img, 'src')}")
    return issues


def _resources(soup: BeautifulSoup) -> list[ResourceRef]:
    found: list[ResourceRef] = []
    for img in soup.find_all("img", src=True):
        found.append(ResourceRef(url=_attr(img, "src"), kind="image"))
    for script in soup.find_all("script", src=True):
        found.append(ResourceRef(url=_attr(script, "src"), kind="script"))
    for link in soup.find_all("link", href=True):
        rel = [r.lower() for r in (link.get("rel") or [])]
        if "stylesheet" in rel:
            found.append(ResourceRef(url=_attr(link, "href"), kind="css"))
    return [r for r in found if r.url]


def extract_observations(url: str, html: str) -> ObservationSet:
    """Build the ObservationSet of one page."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    description = _meta(soup, name="description")
    canonical = _attr(soup.find("link", rel="canonical"), "href")
    language = _attr(soup.find("html"), "lang")
    charset = _attr(soup.find("meta", charset=True), "charset")

    meta_tags: dict[str, str] = {}
    for meta in soup.find_all("meta"):
        name = _attr(meta, "name") or _attr(meta, "property")
        if name:
            meta_tags[name] = _attr(meta, "content")

    links: list[LinkRef] = []
    missing_anchor_text: list[str] = []
    for a in soup.find_all("a", href=True):
        href = _attr(a, "href")
        text = a.get_text(" ", strip=True)
        if not href or href.startswith(_SKIP_HREF):
            continue
        links.append(LinkRef(href=href, text=text))
        if not text:
            missing_anchor_text.append(href)

    resources = _resources(soup)
    accessibility_issues = _accessibility_issues(soup)
    structured = soup.find_all("script", type="application/ld+json")

    # visible text only
    for element in soup(["script", "style", "noscript", "template"]):
        if element.get("type") == "application/ld+json":
            continue
        element.decompose()
    body = soup.body or soup
    body_text = " ".join(body.get_text(" ").split())

    flags = {
        "has_structured_data": bool(structured),
        "has_schema": soup.find(attrs={"itemscope": True}) is not None,
        "has_open_graph": any(k.startswith("og:") for k in meta_tags),
        "has_twitter_cards": any(k.startswith("twitter:") for k in meta_tags),
        "lazy_images": len(soup.find_all("img", loading="lazy")),
        "https": url.startswith("https"),
        "canonical_mismatch": bool(canonical) and canonical != url,
    }

    return ObservationSet(
        url=url,
        title=title,
        description=description,
        canonical=canonical,
        language=language,
        charset=charset,
        robots=meta_tags.get("robots", ""),
        viewport=meta_tags.get("viewport", ""),
        h1_count=len(soup.find_all("h1")),
        word_count=len(body_text.split()),
        image_count=len(soup.find_all("img")),
        link_count=len(soup.find_all("a")),
        flags=flags,
        meta_tags=meta_tags,
        seo_issues=_seo_issues(title, description, canonical, language),
        accessibility_issues=accessibility_issues,
        missing_anchor_text=missing_anchor_text,
        keywords=top_keywords(body_text),
        links=links,
        resources=resources,
    )
