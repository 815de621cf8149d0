"""Domain models for retrieved discussion items.

Value objects are immutable (frozen=True) and carry no infrastructure
dependencies. ``SearchItem`` is produced by the retrieval client and passed by
value through deduplication and ranking; ``RankedItem`` adds the computed score.
"""

from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SearchItem(BaseModel):
    """Value object for one external discussion record."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    title: str
    url: str | None = None
    author: str | None = None
    score: int = 0
    comment_count: int = 0
    created_at: datetime

    @property
    def host(self) -> str:
        """Lower-cased hostname of the item URL, empty when absent or unparsable."""
        if not self.url:
            return ""
        try:
            return (urlparse(self.url).hostname or "").lower()
        except ValueError:
            return ""

    def searchable_text(self) -> str:
        """Text keyword matching runs against (title plus author)."""
        return f"{self.title} {self.author or ''}".lower()


class RankedItem(SearchItem):
    """A SearchItem with its composite relevance score and 1-based rank."""

    relevance_score: float
    rank: int = Field(ge=1)


class SearchRequest(BaseModel):
    """Parameters of a single discussion search call."""

    model_config = ConfigDict(frozen=True)

    query: str
    tags: str | None = None
    min_points: int | None = Field(default=None, ge=0)
    max_age_days: int | None = Field(default=None, ge=1)
    limit: int = Field(default=10, ge=1)
    retries: int | None = Field(default=None, ge=0)
    shape: str = "relevance"
