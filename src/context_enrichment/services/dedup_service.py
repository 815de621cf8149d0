"""Near-duplicate removal for merged search results."""

import logging
import re

from ..domain.search import SearchItem
from ..search.fuzzy import similarity_ratio


logger = logging.getLogger(__name__)

_SCHEME_AND_WWW = re.compile(r"^(?:[a-z][a-z0-9+.-]*://)?(?:www\.)?")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_url(url: str) -> str:
    """Lowercase and strip protocol, leading ``www.`` and trailing slashes."""
    return _SCHEME_AND_WWW.sub("", url.strip().lower()).rstrip("/")


def normalize_title(title: str) -> str:
    """Lowercase and keep only ASCII letters and digits."""
    return _NON_ALNUM.sub("", title.lower())


class DeduplicationService:
    """Drop items sharing a normalized URL or a near-identical title.

    First-seen wins and input order is preserved. Title comparison is
    quadratic in the number of accepted items, which is fine for the tens of
    items a single fan-out returns.
    """

    def __init__(self, title_similarity_threshold: float = 0.8) -> None:
        self.title_similarity_threshold = title_similarity_threshold

    def dedupe(self, items: list[SearchItem]) -> list[SearchItem]:
        seen_urls: set[str] = set()
        seen_titles: list[str] = []
        unique: list[SearchItem] = []

        for item in items:
            if not item.url:
                continue

            url_key = normalize_url(item.url)
            if url_key in seen_urls:
                continue

            title_key = normalize_title(item.title)
            if any(similarity_ratio(title_key, seen) > self.title_similarity_threshold for seen in seen_titles):
                logger.debug("Dropping near-duplicate title: %s", item.title)
                continue

            seen_urls.add(url_key)
            seen_titles.append(title_key)
            unique.append(item)

        if len(unique) != len(items):
            logger.debug("Deduplicated %d items down to %d", len(items), len(unique))
        return unique
