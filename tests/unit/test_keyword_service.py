"""Unit tests for keyword extraction."""

import pytest

from context_enrichment.services.keyword_service import KeywordExtractionService


@pytest.mark.unit
class TestKeywordExtractionService:
    """Test KeywordExtractionService."""

    @pytest.fixture
    def extractor(self) -> KeywordExtractionService:
        """Create a KeywordExtractionService instance."""
        return KeywordExtractionService()

    def test_empty_prompt_returns_no_keywords(self, extractor: KeywordExtractionService):
        assert extractor.extract("") == []

    def test_whitespace_prompt_returns_no_keywords(self, extractor: KeywordExtractionService):
        assert extractor.extract("   \n\t ") == []

    def test_technical_term_ranked_first(self, extractor: KeywordExtractionService):
        """Test technical terms outrank single-occurrence generic words."""
        result = extractor.extract("Building scalable React applications")
        assert result == ["react", "building", "scalable", "applications"]

    def test_title_is_included(self, extractor: KeywordExtractionService):
        result = extractor.extract("deploying services", title="Kubernetes operators")
        assert result[0] == "kubernetes"
        assert "operators" in result
        assert "deploying" in result

    def test_stopwords_and_short_words_filtered(self, extractor: KeywordExtractionService):
        """Test stopwords and words of three characters or fewer never appear."""
        result = extractor.extract("the and for with that this from have will abc xyz")
        assert result == []

    def test_generic_words_scored_by_frequency(self, extractor: KeywordExtractionService):
        result = extractor.extract("caching caching caching latency latency throughput")
        assert result == ["caching", "latency", "throughput"]

    def test_frequency_ties_keep_encounter_order(self, extractor: KeywordExtractionService):
        result = extractor.extract("zebra apple mango")
        assert result == ["zebra", "apple", "mango"]

    def test_dotted_and_multi_word_terms(self, extractor: KeywordExtractionService):
        """Test terms like next.js and machine learning are matched whole."""
        result = extractor.extract("Next.js with machine learning")
        assert result[:2] == ["next.js", "machine learning"]

    def test_technical_terms_deduplicated(self, extractor: KeywordExtractionService):
        result = extractor.extract("python python python tooling")
        assert result.count("python") == 1
        assert result == ["python", "tooling"]

    def test_technical_terms_excluded_from_generic_counts(self, extractor: KeywordExtractionService):
        """Test a technical term is not scored a second time as a generic word."""
        result = extractor.extract("docker docker docker docker")
        assert result == ["docker"]

    def test_word_boundaries_respected(self, extractor: KeywordExtractionService):
        """Test 'ai' is not matched inside 'maintain'."""
        result = extractor.extract("maintain software")
        assert "ai" not in result
        assert result == ["maintain", "software"]

    def test_limited_to_max_keywords(self):
        extractor = KeywordExtractionService(max_keywords=3)
        result = extractor.extract("python rust golang docker kubernetes redis")
        assert result == ["python", "rust", "golang"]

    def test_extraction_is_deterministic(self, extractor: KeywordExtractionService):
        prompt = "Scaling PostgreSQL replication for analytics workloads on AWS"
        assert extractor.extract(prompt) == extractor.extract(prompt)

    def test_case_insensitive(self, extractor: KeywordExtractionService):
        assert extractor.extract("TYPESCRIPT Generics") == extractor.extract("typescript generics")
