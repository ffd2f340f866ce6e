# File: tests/test_engine.py
import asyncio

import pytest

import site_auditor.engine as engine_module
from site_auditor.crawler.models import CrawlResult
from site_auditor.engine import Engine


def test_engine_run_aggregates(monkeypatch, base_config):
    async def fake_crawl(cfg):
        return CrawlResult(seed_url=str(cfg.base_url), budget=cfg.max_pages, stats={"visited": 0})

    monkeypatch.setattr(engine_module, "start_crawl", fake_crawl)
    report = Engine(base_config).run()
    assert report.summary["budget"] == 50
    assert report.raw_result is not None


def test_engine_run_timeout(monkeypatch, base_config):
    async def slow(cfg):
        await asyncio.sleep(2)

    monkeypatch.setattr(engine_module, "start_crawl", slow)
    with pytest.raises(asyncio.TimeoutError):
        Engine(base_config).run(timeout=0.1)
