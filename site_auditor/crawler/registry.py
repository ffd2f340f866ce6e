# site_auditor/crawler/registry.py
"""
Shared deduplication structures of a crawl session.

Both structures are mutated by every scheduler worker. Workers are coroutines
on the session's event loop, and no public operation awaits, so a membership
test and the insertion that follows it always run as one uninterrupted step.
The structures are not meant to be shared across threads or event loops.
"""
from __future__ import annotations

import hashlib
from typing import Dict, Iterator, Optional, Set

from bs4 import BeautifulSoup

__all__ = ("VisitedRegistry", "ContentFingerprintIndex", "content_fingerprint")


class VisitedRegistry:
    """Set of URLs already dispatched to a worker, capped by the crawl budget."""

    def __init__(self, budget: int) -> None:
        if budget < 1:
            raise ValueError("budget must be >= 1")
        self.budget = budget
        self._urls: Set[str] = set()

    def try_admit(self, url: str) -> bool:
        """Insert *url* and return True, unless it is already present or the budget is spent."""
        if url in self._urls or len(self._urls) >= self.budget:
            return False
        self._urls.add(url)
        return True

    @property
    def is_full(self) -> bool:
        return len(self._urls) >= self.budget

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._urls))


class ContentFingerprintIndex:
    """Maps a content hash to the first URL that produced it."""

    def __init__(self) -> None:
        self._first_seen: Dict[str, str] = {}

    def check_and_record(self, fingerprint: str, url: str) -> Optional[str]:
        """Record *url* for an unseen *fingerprint* and return None, else return the original URL."""
        original = self._first_seen.get(fingerprint)
        if original is None:
            self._first_seen[fingerprint] = url
        return original

    def __len__(self) -> int:
        return len(self._first_seen)


def content_fingerprint(html: str) -> str:
    """sha256 of the lower-cased, whitespace-collapsed text of ``<body>``."""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    text = " ".join(root.get_text(" ").split()).lower()
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
