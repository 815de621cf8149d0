"""Unit tests for multi-factor relevance ranking."""

import math

import pytest

from context_enrichment.services.ranking_service import RankingService, keyword_match_ratio


TRUSTED = ("github.com", "stackoverflow.com", "medium.com", "dev.to", "infoq.com")


@pytest.fixture
def ranker(fixed_clock) -> RankingService:
    return RankingService(trusted_domains=TRUSTED, clock=fixed_clock)


@pytest.mark.unit
class TestKeywordMatchRatio:
    """Test keyword_match_ratio."""

    def test_no_keywords_scores_zero(self, make_item):
        assert keyword_match_ratio(make_item(), []) == 0.0

    def test_matches_title_and_author_case_insensitively(self, make_item):
        item = make_item(title="Scaling REACT apps", author="pythonista")
        assert keyword_match_ratio(item, ["react", "python", "rust", "java"]) == pytest.approx(0.5)

    def test_substring_match(self, make_item):
        item = make_item(title="Typescript generics explained", author=None)
        assert keyword_match_ratio(item, ["generic"]) == 1.0


@pytest.mark.unit
class TestRankingService:
    """Test RankingService."""

    def test_maximal_untrusted_item_scores_one(self, ranker, make_item):
        item = make_item(title="react", url="https://example.com/x", score=500, comment_count=90, age_days=0)
        assert ranker.score(item, ["react"]) == pytest.approx(1.0)

    def test_trusted_domain_boost_applied_twice(self, ranker, make_item):
        item = make_item(title="react", url="https://github.com/x", score=100, comment_count=50, age_days=0)
        expected = (0.40 + 0.25 + 0.15 + 0.15 + 0.05 * 1.2) * 1.2
        assert ranker.score(item, ["react"]) == pytest.approx(expected)

    def test_freshness_decays_over_thirty_days(self, ranker, make_item):
        item = make_item(title="nothing", url="https://example.com/x", score=0, comment_count=0, age_days=30)
        expected = 0.15 * math.exp(-1) + 0.05
        assert ranker.score(item, ["react"]) == pytest.approx(expected)

    def test_future_dated_item_scores_as_brand_new(self, ranker, make_item):
        fresh = make_item(title="react", url="https://example.com/x", age_days=0)
        future = make_item(title="react", url="https://example.com/x", age_days=-365 * 80)

        assert ranker.score(future, ["react"]) == pytest.approx(ranker.score(fresh, ["react"]))
        assert [ranked.id for ranked in ranker.rank([future], ["react"])] == [future.id]

    def test_popularity_and_engagement_saturate(self, ranker, make_item):
        low = make_item(score=100, comment_count=50)
        high = make_item(score=10_000, comment_count=5_000)
        assert ranker.score(low, ["x"]) == pytest.approx(ranker.score(high, ["x"]))

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://github.com/org/repo", 1.2),
            ("https://gist.github.com/abc", 1.2),
            ("https://notgithub.com/abc", 1.0),
            ("https://example.com/github.com", 1.0),
            (None, 1.0),
        ],
    )
    def test_domain_score(self, ranker, make_item, url, expected):
        assert ranker.domain_score(make_item(url=url)) == expected

    def test_rank_orders_by_descending_score(self, ranker, make_item):
        items = [
            make_item("low", title="unrelated", score=1, comment_count=0, age_days=60),
            make_item("high", title="react hooks", score=200, comment_count=80, age_days=1),
            make_item("mid", title="react", score=20, comment_count=5, age_days=10),
        ]
        ranked = ranker.rank(items, ["react", "hooks"])
        assert [item.id for item in ranked] == ["high", "mid", "low"]
        assert [item.rank for item in ranked] == [1, 2, 3]
        assert all(a.relevance_score >= b.relevance_score for a, b in zip(ranked, ranked[1:]))

    def test_rank_ties_keep_input_order(self, ranker, make_item):
        items = [make_item(str(i), url=f"https://example.com/{i}") for i in range(4)]
        ranked = ranker.rank(items, ["example"])
        assert [item.id for item in ranked] == ["0", "1", "2", "3"]

    def test_rank_empty(self, ranker):
        assert ranker.rank([], ["react"]) == []

    def test_ranked_item_carries_source_fields(self, ranker, make_item):
        item = make_item("42", title="Rust ownership", author="bob", score=33)
        ranked = ranker.rank([item], ["rust"])[0]
        assert ranked.id == "42"
        assert ranked.author == "bob"
        assert ranked.score == 33
        assert ranked.created_at == item.created_at

    def test_react_scenario_places_popular_fresh_match_first(self, ranker, make_item):
        keywords = ["react", "building", "scalable", "applications"]
        items = [
            make_item("c", title="Notes on React", score=10, comment_count=2, age_days=40),
            make_item("b", title="Scalable React state management", score=40, comment_count=12, age_days=10),
            make_item("a", title="Building scalable React applications", score=150, comment_count=60, age_days=1),
        ]
        ranked = ranker.rank(items, keywords)
        assert ranked[0].id == "a"
        assert [item.id for item in ranked] == ["a", "b", "c"]
