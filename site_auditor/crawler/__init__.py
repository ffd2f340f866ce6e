"""site_auditor.crawler: crawl orchestration engine.

Entry points: :func:`site_auditor.crawler.session.run_crawl` and
:class:`site_auditor.crawler.session.CrawlSession`.
"""
