# File: tests/test_strategy.py
import pytest

from site_auditor.crawler.models import FetchFailure, FetchSuccess, RendererFailure
from site_auditor.crawler.strategy import FetchStrategy


class RecordingFetcher:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        return self.outcome


def ok(url="https://example.com/"):
    return FetchSuccess(html="<p>x</p>", final_url=url, status_code=200)


@pytest.mark.asyncio()
async def test_fallback_not_called_when_primary_succeeds():
    primary, fallback = RecordingFetcher(ok()), RecordingFetcher(ok())
    result = await FetchStrategy(fallback, primary=primary).fetch("https://example.com/")
    assert result.ok
    assert not result.used_fallback
    assert fallback.calls == []


@pytest.mark.asyncio()
async def test_fallback_called_once_after_primary_failure():
    primary = RecordingFetcher(RendererFailure("page load timeout"))
    fallback = RecordingFetcher(ok())
    result = await FetchStrategy(fallback, primary=primary).fetch("https://example.com/z")
    assert result.ok
    assert result.used_fallback
    assert isinstance(result.primary_failure, RendererFailure)
    assert fallback.calls == ["https://example.com/z"]


@pytest.mark.asyncio()
async def test_both_fail_keeps_transport_code():
    primary = RecordingFetcher(RendererFailure("page load timeout"))
    fallback = RecordingFetcher(FetchFailure("refused", error_code="ECONNREFUSED"))
    result = await FetchStrategy(fallback, primary=primary).fetch("https://example.com/w")
    assert not result.ok
    assert result.outcome.status == "ECONNREFUSED"


@pytest.mark.asyncio()
async def test_renderer_status_survives_statusless_fallback():
    primary = RecordingFetcher(RendererFailure("HTTP 503", status_code=503))
    fallback = RecordingFetcher(FetchFailure("timeout", error_code="ETIMEDOUT"))
    result = await FetchStrategy(fallback, primary=primary).fetch("https://example.com/")
    assert result.outcome.status == 503


@pytest.mark.asyncio()
async def test_without_primary_http_is_the_only_path():
    fallback = RecordingFetcher(ok())
    result = await FetchStrategy(fallback).fetch("https://example.com/")
    assert result.ok
    assert not result.used_fallback
