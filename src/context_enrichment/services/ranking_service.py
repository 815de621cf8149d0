"""Multi-factor relevance ranking for discussion items."""

from collections.abc import Callable, Sequence
import math
import time
from typing import ClassVar

from ..domain.search import RankedItem, SearchItem


SECONDS_PER_DAY = 24 * 60 * 60


def keyword_match_ratio(item: SearchItem, keywords: Sequence[str]) -> float:
    """Fraction of keywords found as case-insensitive substrings of title + author."""
    if not keywords:
        return 0.0
    text = item.searchable_text()
    matches = sum(1 for keyword in keywords if keyword.lower() in text)
    return matches / len(keywords)


class RankingService:
    """Score and order items by keyword match, popularity, engagement, freshness and source trust.

    ``composite = (0.40*keyword + 0.25*popularity + 0.15*engagement
    + 0.15*freshness + 0.05*domain) * domain``, where ``domain`` is the trust
    multiplier (1.2 for allowlisted hosts, 1.0 otherwise).
    """

    KEYWORD_WEIGHT: ClassVar[float] = 0.40
    POPULARITY_WEIGHT: ClassVar[float] = 0.25
    ENGAGEMENT_WEIGHT: ClassVar[float] = 0.15
    FRESHNESS_WEIGHT: ClassVar[float] = 0.15
    DOMAIN_WEIGHT: ClassVar[float] = 0.05

    POPULARITY_SATURATION: ClassVar[float] = 100.0
    ENGAGEMENT_SATURATION: ClassVar[float] = 50.0
    FRESHNESS_DECAY_DAYS: ClassVar[float] = 30.0
    TRUSTED_DOMAIN_BOOST: ClassVar[float] = 1.2

    def __init__(
        self,
        trusted_domains: Sequence[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.trusted_domains = tuple(domain.lower() for domain in trusted_domains)
        self._clock = clock

    def domain_score(self, item: SearchItem) -> float:
        host = item.host
        if host and any(host == domain or host.endswith("." + domain) for domain in self.trusted_domains):
            return self.TRUSTED_DOMAIN_BOOST
        return 1.0

    def score(self, item: SearchItem, keywords: Sequence[str], now: float | None = None) -> float:
        """Composite relevance score for one item."""
        now = self._clock() if now is None else now

        keyword_score = keyword_match_ratio(item, keywords)
        popularity_score = min(item.score / self.POPULARITY_SATURATION, 1.0)
        engagement_score = min(item.comment_count / self.ENGAGEMENT_SATURATION, 1.0)
        age_in_days = max(0.0, (now - item.created_at.timestamp()) / SECONDS_PER_DAY)
        freshness_score = math.exp(-age_in_days / self.FRESHNESS_DECAY_DAYS)
        domain_score = self.domain_score(item)

        blended = (
            keyword_score * self.KEYWORD_WEIGHT
            + popularity_score * self.POPULARITY_WEIGHT
            + engagement_score * self.ENGAGEMENT_WEIGHT
            + freshness_score * self.FRESHNESS_WEIGHT
            + domain_score * self.DOMAIN_WEIGHT
        )
        return blended * domain_score

    def rank(self, items: list[SearchItem], keywords: Sequence[str]) -> list[RankedItem]:
        """Return items ordered by descending composite score with 1-based ranks.

        Ties keep input order. ``now`` is sampled once so every item is aged
        against the same instant.
        """
        now = self._clock()
        scored = [(item, self.score(item, keywords, now)) for item in items]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [
            RankedItem(**item.model_dump(), relevance_score=composite, rank=position)
            for position, (item, composite) in enumerate(scored, start=1)
        ]
