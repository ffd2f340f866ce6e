# File: site_auditor/parser/sitemap_parser.py
"""site_auditor.parser.sitemap_parser: parsing of sitemap.xml and sitemap index documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union

from lxml import etree

__all__ = ("SitemapDocument", "parse_sitemap")

URLSET = "urlset"
SITEMAP_INDEX = "sitemapindex"


@dataclass(slots=True)
class SitemapDocument:
    """Root kind (``urlset`` or ``sitemapindex``) and the ``<loc>`` values it lists."""

    kind: str
    locs: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return self.kind == SITEMAP_INDEX


def parse_sitemap(xml_content: Union[str, bytes]) -> SitemapDocument:
    """Parse a sitemap document.

    Raises ``ValueError`` when the content is not XML or its root element is
    neither ``urlset`` nor ``sitemapindex``.

    Example:
    ```python
    doc = parse_sitemap(b'<urlset><url><loc>https://example.com/a</loc></url></urlset>')
    assert doc.kind == "urlset" and doc.locs == ["https://example.com/a"]
    ```
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    if not xml_content.strip():
        raise ValueError("empty sitemap document")

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_content, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"malformed sitemap: {exc}") from exc
    if root is None:
        raise ValueError("malformed sitemap: no root element")

    kind = etree.QName(root).localname.lower()
    if kind == URLSET:
        locs = root.findall("{*}url/{*}loc") or root.findall("url/loc")
    elif kind == SITEMAP_INDEX:
        locs = root.findall("{*}sitemap/{*}loc") or root.findall("sitemap/loc")
    else:
        raise ValueError(f"unexpected sitemap root <{kind}>")
    return SitemapDocument(kind=kind, locs=[loc.text.strip() for loc in locs if loc.text and loc.text.strip()])
