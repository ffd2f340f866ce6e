# site_auditor/__init__.py
"""
SiteAuditor package initializer.
The CLI lives in :mod:`site_auditor.cli`; the crawl engine in :mod:`site_auditor.crawler`.
"""
__version__ = "0.1.0"
