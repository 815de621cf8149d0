"""Domain models for enrichment input and output.

``EnrichmentConfig`` is the validated per-call input and ``ContextPack`` is the
engine's sole output contract. Both serialize with camelCase aliases so cached
payloads and HTTP responses share one wire shape.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MAX_EXPLICIT_KEYWORDS = 10


class ContextStyle(str, Enum):
    """How the downstream writer should weave citations into its output."""

    INTEGRATED = "integrated"
    REFERENCE = "reference"
    APPENDIX = "appendix"


class EnrichmentConfig(BaseModel):
    """Validated per-call enrichment options.

    Immutable; unknown fields are rejected so typos surface as configuration
    errors instead of silently falling back to defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    enabled: bool = True
    keywords: list[str] = Field(default_factory=list)
    title: str | None = None
    min_points: int | None = Field(default=None, ge=0)
    max_age_days: int | None = Field(default=None, ge=1)
    limit: int = Field(default=10, ge=1, le=50)
    context_style: ContextStyle = ContextStyle.INTEGRATED

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for keyword in value:
            keyword = keyword.strip().lower()
            if keyword and keyword not in cleaned:
                cleaned.append(keyword)
        if len(cleaned) > MAX_EXPLICIT_KEYWORDS:
            raise ValueError(f"at most {MAX_EXPLICIT_KEYWORDS} keywords may be supplied")
        return cleaned


class Citation(BaseModel):
    """Stable, serializable reference to one ranked item."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    index: int = Field(ge=1)
    title: str
    url: str
    author: str | None = None
    score: int
    comment_count: int
    created_at: datetime
    source_object_id: str


class ContextPack(BaseModel):
    """Rendered context text plus structured citations.

    ``context_text`` empty and ``citations`` empty is a valid, non-error state.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    query: str
    context_text: str = ""
    citations: list[Citation] = Field(default_factory=list)
    cache_hit: bool = False
    retrieved_at: datetime

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, payload: str | bytes) -> "ContextPack":
        return cls.model_validate_json(payload)


class CacheStats(BaseModel):
    """Administrative snapshot of the enrichment cache namespace."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_keys: int = 0
    memory_usage: str = "0B"
