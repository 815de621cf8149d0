"""Render ranked items into citation-annotated context text."""

from collections.abc import Sequence
import math
from typing import ClassVar

from ..domain.enrichment import Citation, ContextStyle
from ..domain.search import RankedItem
from .ranking_service import keyword_match_ratio


class ContextFormatter:
    """Build the text block and citation list handed to the downstream writer.

    Citations cover the top ``limit`` items; the rendered text stops at
    ``max_rendered_items`` to bound prompt size.
    """

    HEADER: ClassVar[str] = "Relevant Community Discussions:"
    MARKER_PREFIX: ClassVar[str] = "SRC"

    GENERAL_GUIDELINES: ClassVar[tuple[str, ...]] = (
        "- Reference these discussions using [SRC-X] markers where relevant",
        "- Focus on insights that complement your main points",
        "- Provide attribution when using specific information or quotes",
        "- Prioritize recent discussions unless historical context is needed",
    )

    STYLE_GUIDELINES: ClassVar[dict[ContextStyle, str]] = {
        ContextStyle.INTEGRATED: "- Weave the discussions naturally throughout the content using [SRC-X] markers",
        ContextStyle.REFERENCE: "- Reference the discussions in a dedicated section with one [SRC-X] marker per citation",
        ContextStyle.APPENDIX: "- Collect all references in an appendix section with [SRC-X] markers for each point",
    }

    def __init__(
        self,
        max_rendered_items: int = 5,
        discussion_url_template: str = "https://news.ycombinator.com/item?id={object_id}",
    ) -> None:
        self.max_rendered_items = max_rendered_items
        self.discussion_url_template = discussion_url_template

    def marker(self, index: int) -> str:
        return f"{self.MARKER_PREFIX}-{index}"

    def format(
        self,
        ranked_items: Sequence[RankedItem],
        keywords: Sequence[str],
        limit: int,
        style: ContextStyle = ContextStyle.INTEGRATED,
    ) -> tuple[str, list[Citation]]:
        """Return ``(context_text, citations)`` for the top ``limit`` items."""
        selected = list(ranked_items[:limit])
        citations = self.build_citations(selected)
        return self.render_text(selected, keywords, style), citations

    def build_citations(self, items: Sequence[RankedItem]) -> list[Citation]:
        return [
            Citation(
                id=self.marker(index),
                index=index,
                title=item.title,
                url=item.url or self.discussion_url_template.format(object_id=item.id),
                author=item.author,
                score=item.score,
                comment_count=item.comment_count,
                created_at=item.created_at,
                source_object_id=item.id,
            )
            for index, item in enumerate(items, start=1)
        ]

    def render_text(
        self,
        items: Sequence[RankedItem],
        keywords: Sequence[str],
        style: ContextStyle = ContextStyle.INTEGRATED,
    ) -> str:
        if not items:
            return ""

        sections = [
            self._render_item(index, item, keywords)
            for index, item in enumerate(items[: self.max_rendered_items], start=1)
        ]
        lines = [self.HEADER, f"Query: {', '.join(keywords)}", "", *sections, "Usage Guidelines:"]
        lines.extend(self.GENERAL_GUIDELINES)
        lines.append(self.STYLE_GUIDELINES[style])
        return "\n".join(lines)

    def _render_item(self, index: int, item: RankedItem, keywords: Sequence[str]) -> str:
        relevance = math.floor(keyword_match_ratio(item, keywords) * 100 + 0.5)
        date = f"{item.created_at:%b} {item.created_at.day}, {item.created_at.year}"
        lines = [
            f"[{self.marker(index)}] {item.title}",
            f"Relevance: {relevance}% | Score: {item.score} | Comments: {item.comment_count} | Date: {date}",
            f"URL: {item.url}" if item.url else "URL: Discussion thread",
        ]
        if item.author:
            lines.append(f"By: {item.author}")
        lines.append("")
        return "\n".join(lines)
