# File: tests/test_frontier.py
import asyncio

import pytest

from site_auditor.crawler.frontier import Frontier
from site_auditor.crawler.registry import VisitedRegistry


@pytest.mark.asyncio()
async def test_push_deduplicates_pending_urls():
    frontier = Frontier(VisitedRegistry(budget=10))
    assert frontier.push("https://example.com/a")
    assert not frontier.push("https://example.com/a")
    assert frontier.push("https://example.com/b", discovered_from="https://example.com/a")
    assert len(frontier) == 2

    entry = await frontier.get()
    assert entry.url == "https://example.com/a"
    assert entry.discovered_from is None
    assert frontier.is_pending("https://example.com/a")


@pytest.mark.asyncio()
async def test_push_refuses_admitted_urls():
    registry = VisitedRegistry(budget=10)
    frontier = Frontier(registry)
    frontier.push("https://example.com/a")
    entry = await frontier.get()
    assert registry.try_admit(entry.url)
    frontier.mark_dispatched(entry.url)
    frontier.task_done()

    assert not frontier.is_pending(entry.url)
    assert not frontier.push(entry.url)
    assert len(frontier) == 0


@pytest.mark.asyncio()
async def test_closed_frontier_refuses_pushes_but_drains():
    frontier = Frontier(VisitedRegistry(budget=10))
    frontier.push("https://example.com/a")
    frontier.close()
    assert frontier.closed
    assert not frontier.push("https://example.com/b")

    entry = await frontier.get()
    frontier.mark_dispatched(entry.url)
    frontier.task_done()
    await frontier.join()
    assert len(frontier) == 0


@pytest.mark.asyncio()
async def test_concurrent_pushes_queue_a_url_once():
    frontier = Frontier(VisitedRegistry(budget=10))

    async def push(url: str) -> bool:
        await asyncio.sleep(0)
        return frontier.push(url, discovered_from="https://example.com/")

    results = await asyncio.gather(*(push("https://example.com/a") for _ in range(8)))
    assert results.count(True) == 1
    assert len(frontier) == 1
