# site_auditor/crawler/normalizer.py
"""
URL canonicalisation for the crawl engine.

Normalized URLs are the only identity key used for deduplication, so
:func:`normalize_url` must be idempotent.
"""
from __future__ import annotations

import posixpath
from typing import Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urljoin, urlsplit, urlunsplit

from site_auditor.crawler.errors import NormalizationError
from site_auditor.crawler.models import NormalizedURL

__all__ = ("normalize_url", "try_normalize", "is_same_origin", "origin_of")

_CRAWLABLE_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}
# RFC 3986 pchar minus "%"
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


def normalize_url(href: str, base: Optional[str] = None) -> NormalizedURL:
    """Resolve *href* against *base* and return its canonical absolute form.

    Raises :class:`NormalizationError` for mailto:, tel:, javascript:, data:,
    blob: and any other non-http(s) link, and for hrefs that cannot be made
    absolute.
    """
    raw = (href or "").strip()
    if not raw or raw.startswith("#"):
        raise NormalizationError(href, "empty link")

    try:
        absolute = urljoin(base, raw) if base else raw
        parts = urlsplit(absolute)
        port = parts.port
    except ValueError as exc:
        raise NormalizationError(href, f"unparseable URL ({exc})") from exc

    scheme = parts.scheme.lower()
    if scheme not in _CRAWLABLE_SCHEMES:
        raise NormalizationError(href, f"scheme {scheme or '<none>'!r} is not crawlable")
    host = (parts.hostname or "").lower()
    if not host:
        raise NormalizationError(href, "no host")

    netloc = host if ":" not in host else f"[{host}]"
    if parts.username or parts.password:
        userinfo = parts.username or ""
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc += f":{port}"

    path = unquote(parts.path or "/")
    norm = posixpath.normpath(path)
    if path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    norm = quote(norm, safe=_PATH_SAFE)

    qs = parse_qsl(parts.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return NormalizedURL(urlunsplit((scheme, netloc, norm, query, "")))


def try_normalize(href: str, base: Optional[str] = None) -> Optional[NormalizedURL]:
    """Like :func:`normalize_url` but returns None for non-crawlable links."""
    try:
        return normalize_url(href, base)
    except NormalizationError:
        return None


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    port = parts.port or _DEFAULT_PORTS.get(scheme)
    return f"{scheme}://{(parts.hostname or '').lower()}:{port}"


def is_same_origin(url: str, seed: str) -> bool:
    """True when *url* shares scheme, host and port with *seed*."""
    try:
        return origin_of(url) == origin_of(seed)
    except ValueError:
        return False
