# site_auditor/crawler/scheduler.py
"""
Bounded worker pool that drains the frontier.

Per URL: DISCOVERED -> ADMITTED -> FETCHING -> SUCCEEDED | FELL_BACK -> SUCCEEDED | FAILED.
Admission goes through :meth:`VisitedRegistry.try_admit`, which also enforces
the crawl budget. Once the budget is spent the frontier is closed: queued
entries are drained without being fetched and newly found links are dropped,
while pages already in flight run to completion.

A page that redirects within the site also admits its final URL, so the
target is not fetched again; if the target was already admitted the
redirected copy is not extracted.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, List, Optional

from site_auditor.config import CrawlerConfig
from site_auditor.crawler.frontier import Frontier
from site_auditor.crawler.models import (
    BrokenLink,
    BrokenResource,
    CrawlCounters,
    CrawlResult,
    DuplicateContent,
    ExternalLink,
    FetchFailure,
    FetchSuccess,
    FrontierEntry,
    ObservationSet,
    PageRecord,
    PageState,
    ResourceRef,
)
from site_auditor.crawler.normalizer import is_same_origin, try_normalize
from site_auditor.crawler.registry import ContentFingerprintIndex, VisitedRegistry, content_fingerprint
from site_auditor.crawler.resources import ResourceChecker
from site_auditor.crawler.strategy import FetchStrategy
from site_auditor.logger import get_logger

__all__ = ("Scheduler", "Extractor")

logger = get_logger("crawler.scheduler")

Extractor = Callable[[str, str], ObservationSet]


class Scheduler:
    def __init__(
        self,
        config: CrawlerConfig,
        *,
        seed_url: str,
        frontier: Frontier,
        registry: VisitedRegistry,
        fingerprints: ContentFingerprintIndex,
        strategy: FetchStrategy,
        extractor: Extractor,
        result: CrawlResult,
        counters: CrawlCounters,
        resource_checker: Optional[ResourceChecker] = None,
    ) -> None:
        self.config = config
        self.seed_url = seed_url
        self.frontier = frontier
        self.registry = registry
        self.fingerprints = fingerprints
        self.strategy = strategy
        self.extractor = extractor
        self.result = result
        self.counters = counters
        self.resource_checker = resource_checker
        self.concurrency = config.concurrency
        self.discarded = 0

    async def run(self) -> None:
        """Run until the frontier is drained; in-flight pages always finish."""
        logger.info("Dispatching with %d workers", self.concurrency)
        workers = [
            asyncio.create_task(self._worker(), name=f"crawl-worker-{i}") for i in range(self.concurrency)
        ]
        try:
            await self.frontier.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            self.counters.finish()

    async def _worker(self) -> None:
        while True:
            entry = await self.frontier.get()
            try:
                if self._admit(entry):
                    await self._dispatch(entry)
            finally:
                self.frontier.task_done()

    def _admit(self, entry: FrontierEntry) -> bool:
        admitted = self.registry.try_admit(entry.url)
        self.frontier.mark_dispatched(entry.url)
        if not admitted:
            if self.registry.is_full and entry.url not in self.registry:
                self.discarded += 1
            return False
        self._close_if_full()
        return True

    def _close_if_full(self) -> None:
        if self.registry.is_full and not self.frontier.closed:
            logger.info("Crawl budget of %d pages reached, admission stopped", self.registry.budget)
            self.frontier.close()

    def _claim_redirect_target(self, url: str, final_url: str) -> bool:
        """Admit the same-origin target *url* was redirected to.

        Returns False when the target had already been admitted by another
        page, in which case this document is not processed a second time.
        """
        target = try_normalize(final_url)
        if target is None or target == url or not is_same_origin(target, self.seed_url):
            return True
        if self.registry.try_admit(target):
            logger.debug("%s redirected to %s, target admitted", url, target)
            self._close_if_full()
            return True
        if target in self.registry:
            logger.info("Redirect target already visited: %s -> %s", url, target)
            return False
        return True

    async def _dispatch(self, entry: FrontierEntry) -> None:
        record = PageRecord(url=entry.url, state=PageState.ADMITTED, discovered_from=entry.discovered_from)
        self.result.pages.append(record)
        self.counters.pages_scanned += 1
        logger.info("Crawling: %s (%d/%d)", entry.url, len(self.registry), self.registry.budget)
        if self.config.politeness_delay:
            await asyncio.sleep(self.config.politeness_delay)
        try:
            await self._process(entry, record)
        except Exception as exc:
            logger.exception("Unexpected error while processing %s", entry.url)
            self.counters.errors += 1
            self.result.broken_links.append(BrokenLink(url=entry.url, status="error", reason=repr(exc)))
            self._transition(record, PageState.FAILED)

    async def _process(self, entry: FrontierEntry, record: PageRecord) -> None:
        self._transition(record, PageState.FETCHING)
        started = time.monotonic()
        fetched = await self.strategy.fetch(entry.url)
        latency = time.monotonic() - started
        self.counters.record_latency(latency)
        record.latency_ms = round(latency * 1000, 1)

        if fetched.used_fallback:
            record.via_fallback = True
            self._transition(record, PageState.FELL_BACK)

        outcome = fetched.outcome
        if not isinstance(outcome, FetchSuccess):
            self._fail(record, outcome)
            return

        record.final_url = outcome.final_url
        record.status_code = outcome.status_code
        if outcome.is_html and self._claim_redirect_target(entry.url, outcome.final_url):
            await self._handle_document(entry.url, outcome)
        self._transition(record, PageState.SUCCEEDED)

    async def _handle_document(self, url: str, doc: FetchSuccess) -> None:
        # fingerprint before extraction hand-off
        original = self.fingerprints.check_and_record(content_fingerprint(doc.html), url)
        if original is not None:
            logger.info("Duplicate content: %s duplicates %s", url, original)
            self.result.duplicates.append(DuplicateContent(url=url, duplicate_of=original))

        observations = self.extractor(url, doc.html)
        self.result.observations.append(observations)

        base = doc.final_url or url
        queued = 0
        for link in observations.links:
            target = try_normalize(link.href, base)
            if target is None:
                continue
            if is_same_origin(target, self.seed_url):
                queued += self.frontier.push(target, discovered_from=url)
            else:
                self.result.external_links.append(ExternalLink(source=url, target=target, text=link.text))
        logger.debug("%s: %d links, %d newly queued", url, len(observations.links), queued)

        if self.resource_checker is not None and observations.resources:
            await self._check_resources(url, base, observations.resources)

    async def _check_resources(self, url: str, base: str, resources: List[ResourceRef]) -> None:
        kinds: Dict[str, str] = {}
        for res in resources:
            target = try_normalize(res.url, base)
            if target is not None:
                kinds.setdefault(target, res.kind)
        if not kinds:
            return
        for check in await self.resource_checker.check_many(kinds):
            if not check.ok:
                self.result.broken_resources.append(
                    BrokenResource(page=url, resource=check.url, kind=kinds[check.url], status=check.status)
                )

    def _fail(self, record: PageRecord, outcome) -> None:
        if isinstance(outcome, FetchFailure):
            status = outcome.status
        else:
            status = outcome.status_code or "error"
        record.status_code = outcome.status_code
        self.counters.errors += 1
        self.result.broken_links.append(BrokenLink(url=record.url, status=status, reason=outcome.reason))
        logger.warning("Broken: %s (%s)", record.url, status)
        self._transition(record, PageState.FAILED)

    @staticmethod
    def _transition(record: PageRecord, state: PageState) -> None:
        logger.debug("%s: %s -> %s", record.url, record.state.value, state.value)
        record.state = state
