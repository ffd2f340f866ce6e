# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from conftest import serve_app
from site_auditor.crawler.fetcher import HttpFetcher, transport_error_code
from site_auditor.crawler.models import FetchFailure, FetchSuccess
from site_auditor.crawler.resources import ResourceChecker


@pytest_asyncio.fixture
async def http_server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    hits = {"flaky": 0}

    async def handle_ok(_):
        return web.Response(text="<html><body>ok</body></html>", content_type="text/html")

    async def handle_redirect(_):
        raise web.HTTPFound("/ok")

    async def handle_missing(_):
        return web.Response(status=404, text="not found")

    async def handle_flaky(_):
        hits["flaky"] += 1
        if hits["flaky"] == 1:
            return web.Response(status=503, text="busy")
        return web.Response(text="<p>recovered</p>", content_type="text/html")

    async def handle_pdf(_):
        return web.Response(body=b"%PDF-1.4", content_type="application/pdf")

    async def handle_loop(_):
        raise web.HTTPFound("/loop")

    async def handle_head(_):
        return web.Response(status=200)

    async def handle_slow(_):
        await asyncio.sleep(2)
        return web.Response(text="late", content_type="text/html")

    app.router.add_get("/ok", handle_ok)
    app.router.add_get("/redirect", handle_redirect)
    app.router.add_get("/missing", handle_missing)
    app.router.add_get("/flaky", handle_flaky)
    app.router.add_get("/doc.pdf", handle_pdf)
    app.router.add_get("/slow", handle_slow)
    app.router.add_get("/loop", handle_loop)
    app.router.add_route("HEAD", "/img.png", handle_head)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_fetch_success_follows_redirects(http_server: str, base_config):
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, base_config).fetch(f"{http_server}/redirect")
    assert isinstance(outcome, FetchSuccess)
    assert outcome.status_code == 200
    assert outcome.final_url == f"{http_server}/ok"
    assert "ok" in outcome.html


@pytest.mark.asyncio()
async def test_fetch_http_error_keeps_status(http_server: str, base_config):
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, base_config).fetch(f"{http_server}/missing")
    assert isinstance(outcome, FetchFailure)
    assert outcome.status_code == 404
    assert outcome.status == 404


@pytest.mark.asyncio()
async def test_fetch_non_html_skips_body(http_server: str, base_config):
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, base_config).fetch(f"{http_server}/doc.pdf")
    assert isinstance(outcome, FetchSuccess)
    assert not outcome.is_html
    assert outcome.html == ""


@pytest.mark.slow
@pytest.mark.asyncio()
async def test_fetch_retries_retryable_status(http_server: str, base_config):
    cfg = base_config.model_copy(update={"retry_times": 1})
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, cfg).fetch(f"{http_server}/flaky")
    assert isinstance(outcome, FetchSuccess)
    assert "recovered" in outcome.html


@pytest.mark.asyncio()
async def test_fetch_without_retries_reports_5xx(http_server: str, base_config):
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, base_config).fetch(f"{http_server}/flaky")
    assert isinstance(outcome, FetchFailure)
    assert outcome.status == 503


@pytest.mark.asyncio()
async def test_fetch_timeout_maps_to_etimedout(http_server: str, base_config):
    cfg = base_config.model_copy(update={"fetch_timeout": 0.2})
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, cfg).fetch(f"{http_server}/slow")
    assert isinstance(outcome, FetchFailure)
    assert outcome.status_code is None
    assert outcome.status == "ETIMEDOUT"


@pytest.mark.asyncio()
async def test_fetch_connection_refused(unused_tcp_port: int, base_config):
    async with ClientSession() as session:
        outcome = await HttpFetcher(session, base_config).fetch(f"http://127.0.0.1:{unused_tcp_port}/")
    assert isinstance(outcome, FetchFailure)
    assert outcome.status == "ECONNREFUSED"


@pytest.mark.asyncio()
async def test_redirect_loop_fails_without_retrying(http_server: str, base_config):
    # two backoff sleeps would outlast the wait_for below
    cfg = base_config.model_copy(update={"retry_times": 2})
    async with ClientSession() as session:
        outcome = await asyncio.wait_for(HttpFetcher(session, cfg).fetch(f"{http_server}/loop"), timeout=5)
    assert isinstance(outcome, FetchFailure)
    assert outcome.status_code is None
    assert outcome.status == "ERR_TOO_MANY_REDIRECTS"


def test_transport_error_code_mapping():
    assert transport_error_code(asyncio.TimeoutError()) == "ETIMEDOUT"
    assert transport_error_code(ConnectionResetError()) == "ECONNRESET"
    assert transport_error_code(ValueError("x")) == "ValueError"


@pytest.mark.asyncio()
async def test_resource_checker_reports_unreachable(http_server: str):
    async with ClientSession() as session:
        checker = ResourceChecker(session, timeout=1.0, batch_size=2)
        checks = await checker.check_many([f"{http_server}/img.png", f"{http_server}/missing.css"])
    by_url = {c.url: c for c in checks}
    assert by_url[f"{http_server}/img.png"].ok
    assert not by_url[f"{http_server}/missing.css"].ok
    assert by_url[f"{http_server}/missing.css"].status == 404
