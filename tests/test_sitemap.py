# File: tests/test_sitemap.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from conftest import serve_app
from site_auditor.crawler.sitemap import SitemapResolver, probe_robots
from site_auditor.parser.sitemap_parser import parse_sitemap

NS = 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset {NS}>{entries}</urlset>'


def sitemap_index(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex {NS}>{entries}</sitemapindex>'


def xml_response(text: str) -> web.Response:
    return web.Response(text=text, content_type="application/xml")


# --------------------------------------------------------------------------- #
#                                 Parser                                      #
# --------------------------------------------------------------------------- #


def test_parse_urlset_and_index():
    doc = parse_sitemap(urlset("https://example.com/a", " https://example.com/b "))
    assert not doc.is_index
    assert doc.locs == ["https://example.com/a", "https://example.com/b"]

    index = parse_sitemap(sitemap_index("https://example.com/s1.xml").encode())
    assert index.is_index
    assert index.locs == ["https://example.com/s1.xml"]


def test_parse_without_namespace():
    doc = parse_sitemap("<urlset><url><loc>https://example.com/a</loc></url></urlset>")
    assert doc.locs == ["https://example.com/a"]


@pytest.mark.parametrize("content", ["", "   ", "this is not xml", "<html><body>nope</body></html>"])
def test_parse_rejects_malformed(content):
    with pytest.raises(ValueError):
        parse_sitemap(content)


# --------------------------------------------------------------------------- #
#                                 Resolver                                    #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def sitemap_server(unused_tcp_port: int) -> AsyncIterator[str]:
    base = f"http://127.0.0.1:{unused_tcp_port}"
    app = web.Application()

    async def handle_sitemap(_):
        return xml_response(sitemap_index(f"{base}/cycle-a.xml", f"{base}/pages.xml", f"{base}/gone.xml"))

    async def handle_cycle_a(_):
        return xml_response(sitemap_index(f"{base}/cycle-b.xml"))

    async def handle_cycle_b(_):
        return xml_response(sitemap_index(f"{base}/cycle-a.xml", f"{base}/sitemap.xml"))

    async def handle_pages(_):
        return xml_response(urlset(f"{base}/a", f"{base}/b", f"{base}/b#dup"))

    async def handle_broken(_):
        return xml_response("<urlset><url><loc>")

    async def handle_robots(_):
        return web.Response(text="User-agent: *\nDisallow:", content_type="text/plain")

    app.router.add_get("/sitemap.xml", handle_sitemap)
    app.router.add_get("/cycle-a.xml", handle_cycle_a)
    app.router.add_get("/cycle-b.xml", handle_cycle_b)
    app.router.add_get("/pages.xml", handle_pages)
    app.router.add_get("/broken.xml", handle_broken)
    app.router.add_get("/robots.txt", handle_robots)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture
async def empty_server(unused_tcp_port: int) -> AsyncIterator[str]:
    async for url in serve_app(web.Application(), unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_resolve_terminates_on_cycles(sitemap_server: str):
    async with ClientSession() as session:
        resolver = SitemapResolver(session, timeout=2.0)
        urls = await resolver.resolve(f"{sitemap_server}/sitemap.xml", set())

    assert sorted(set(urls)) == [f"{sitemap_server}/a", f"{sitemap_server}/b"]
    assert f"{sitemap_server}/cycle-a.xml" in resolver.available
    assert f"{sitemap_server}/gone.xml" not in resolver.available


@pytest.mark.asyncio()
async def test_resolve_skips_already_seen(sitemap_server: str):
    async with ClientSession() as session:
        resolver = SitemapResolver(session, timeout=2.0)
        seen = {f"{sitemap_server}/pages.xml"}
        assert await resolver.resolve(f"{sitemap_server}/pages.xml", seen) == []


@pytest.mark.asyncio()
async def test_malformed_sitemap_yields_empty_list(sitemap_server: str):
    async with ClientSession() as session:
        resolver = SitemapResolver(session, timeout=2.0)
        assert await resolver.resolve(f"{sitemap_server}/broken.xml", set()) == []


@pytest.mark.asyncio()
async def test_discover_reports_found_sitemap(sitemap_server: str):
    async with ClientSession() as session:
        discovery = await SitemapResolver(session, timeout=2.0).discover(sitemap_server)
        robots = await probe_robots(session, sitemap_server, timeout=2.0)

    assert discovery.info.status == "found"
    assert "found" in discovery.info.note
    assert len(discovery.urls) == 3
    assert robots.status == "found"
    assert robots.url == f"{sitemap_server}/robots.txt"


@pytest.mark.asyncio()
async def test_missing_sitemap_and_robots(empty_server: str):
    async with ClientSession() as session:
        discovery = await SitemapResolver(session, timeout=2.0).discover(empty_server)
        robots = await probe_robots(session, empty_server, timeout=2.0)

    assert discovery.urls == []
    assert discovery.info.status == "missing"
    assert robots.status == "missing"


@pytest.mark.asyncio()
async def test_unreachable_host_degrades_quietly(unused_tcp_port: int):
    base = f"http://127.0.0.1:{unused_tcp_port}"
    async with ClientSession() as session:
        discovery = await SitemapResolver(session, timeout=1.0).discover(base)
        robots = await probe_robots(session, base, timeout=1.0)
    assert discovery.urls == []
    assert robots.status == "missing"
