"""Keyword extraction for discussion search queries.

Pure functions with no external dependencies.
"""

from collections import Counter
import re
from typing import ClassVar


class KeywordExtractionService:
    """Turn a free-text prompt (plus optional title) into a short list of search terms.

    High-signal technical terms get a fixed boosted score; every other word is
    scored by its frequency. Pure, stateless service suitable for unit testing.
    """

    TECHNICAL_TERM_SCORE: ClassVar[int] = 3

    # Stopwords for filtering generic words
    STOPWORDS: ClassVar[frozenset[str]] = frozenset(
        {
            "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
            "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
            "been", "being", "have", "has", "had", "do", "does", "did", "will",
            "would", "should", "could", "may", "might", "must", "can", "this",
            "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
            "what", "where", "when", "why", "how", "all", "any", "both", "each",
            "few", "more", "most", "other", "some", "such", "only", "own", "same",
            "so", "than", "too", "very", "just", "now", "also", "here", "there",
            "about", "into", "your", "their", "them", "then", "which", "while",
        }
    )  # fmt: skip

    # Multi-word and dotted terms must precede their single-word prefixes
    TECHNICAL_TERMS: ClassVar[tuple[str, ...]] = (
        "machine learning",
        "next.js",
        "node.js",
        "javascript",
        "typescript",
        "react",
        "node",
        "python",
        "rust",
        "golang",
        "api",
        "graphql",
        "database",
        "css",
        "html",
        "web3",
        "blockchain",
        "ai",
        "llm",
        "ml",
        "devops",
        "docker",
        "kubernetes",
        "aws",
        "azure",
        "gcp",
        "firebase",
        "mongodb",
        "postgresql",
        "mysql",
        "sqlite",
        "redis",
    )

    _TECHNICAL_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"\b(?:" + "|".join(re.escape(term) for term in TECHNICAL_TERMS) + r")\b"
    )
    _TOKEN_SPLIT: ClassVar[re.Pattern[str]] = re.compile(r"\W+")

    def __init__(self, max_keywords: int = 5) -> None:
        self.max_keywords = max_keywords

    def extract(self, prompt: str, title: str | None = None) -> list[str]:
        """Extract at most ``max_keywords`` search terms.

        Args:
            prompt: Free-text prompt
            title: Optional working title, appended to the prompt

        Returns:
            Terms ordered by score; ties keep their encounter order. Empty
            for empty or whitespace-only input.
        """
        text = " ".join(part for part in (prompt, title) if part).lower()
        if not text.strip():
            return []

        technical = self._extract_technical_terms(text)
        generic = self._count_generic_words(text, set(technical))

        candidates = [(term, self.TECHNICAL_TERM_SCORE) for term in technical]
        candidates.extend(generic.items())

        # sorted() is stable, so equal scores keep encounter order
        ranked = sorted(candidates, key=lambda candidate: candidate[1], reverse=True)
        return [term for term, _ in ranked[: self.max_keywords]]

    def _extract_technical_terms(self, text: str) -> list[str]:
        """Return distinct technical terms in order of first appearance."""
        return list(dict.fromkeys(self._TECHNICAL_PATTERN.findall(text)))

    def _count_generic_words(self, text: str, technical: set[str]) -> Counter[str]:
        """Count words longer than 3 characters that are not stopwords or technical terms.

        Counter preserves insertion order, which is the encounter order.
        """
        words = (word for word in self._TOKEN_SPLIT.split(text) if word)
        return Counter(
            word for word in words if len(word) > 3 and word not in self.STOPWORDS and word not in technical
        )
