"""Scoring engine tests — deterministic market score and success rating."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from launchlens.schemas.competitor_schema import Competitor, ResearchContext
from launchlens.schemas.market_schema import CustomerPainAnalysis, MarketSizeAnalysis
from launchlens.services.scoring_engine import (
    calculate_market_score,
    calculate_success_rating,
    competition_score,
    find_common_weaknesses,
    verdict_for_score,
)


def _competitors(n):
    return [Competitor(name=f"Comp {i}") for i in range(n)]


# ---------------------------------------------------------------------------
# Market score
# ---------------------------------------------------------------------------

class TestCompetitionScore:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, 3), (1, 5), (2, 5), (3, 8), (4, 8), (5, 8), (6, 6), (10, 6), (11, 3), (15, 3)],
    )
    def test_bands(self, count, expected):
        assert competition_score(count) == expected


class TestVerdictThresholds:
    @pytest.mark.parametrize(
        "overall,expected",
        [(10.0, "YES"), (7.0, "YES"), (6.9, "MAYBE"), (4.0, "MAYBE"), (3.9, "NO"), (0.0, "NO")],
    )
    def test_thresholds(self, overall, expected):
        assert verdict_for_score(overall) == expected


class TestMarketScore:
    def test_all_unknown_defaults(self):
        scores = calculate_market_score(MarketSizeAnalysis(), [], CustomerPainAnalysis())

        assert scores.market_opportunity == 5
        assert scores.competition == 3
        assert scores.entry_feasibility == 5
        assert scores.overall == 4.4
        assert scores.verdict == "MAYBE"

    def test_strong_opportunity(self):
        market = MarketSizeAnalysis(market_size="$15B", growth_rate="35%")
        pain = CustomerPainAnalysis(pain_level=8)

        scores = calculate_market_score(
            market, _competitors(4), pain, market_concentration="Fragmented"
        )

        assert scores.market_opportunity == 10
        assert scores.competition == 8
        assert scores.entry_feasibility == 10
        assert scores.overall == 9.4
        assert scores.verdict == "YES"

    def test_weak_opportunity(self):
        market = MarketSizeAnalysis(market_size="$50M", growth_rate="2%")
        pain = CustomerPainAnalysis(pain_level=3)

        scores = calculate_market_score(
            market, _competitors(15), pain, market_concentration="Highly concentrated"
        )

        assert scores.market_opportunity == 2
        assert scores.competition == 3
        assert scores.entry_feasibility == 1
        assert scores.overall == 2.0
        assert scores.verdict == "NO"

    def test_yes_boundary(self):
        market = MarketSizeAnalysis(market_size="$12B")
        scores = calculate_market_score(market, _competitors(2), CustomerPainAnalysis())

        assert scores.overall == 7.0
        assert scores.verdict == "YES"

    def test_maybe_boundary(self):
        market = MarketSizeAnalysis(market_size="$50M")
        scores = calculate_market_score(market, [], CustomerPainAnalysis())

        assert scores.overall == 4.0
        assert scores.verdict == "MAYBE"

    def test_zero_pain_treated_as_neutral(self):
        scores = calculate_market_score(
            MarketSizeAnalysis(), _competitors(3), CustomerPainAnalysis(pain_level=0)
        )
        assert scores.entry_feasibility == 5

    def test_market_tiers(self):
        def opportunity(size):
            market = MarketSizeAnalysis(market_size=size)
            return calculate_market_score(market, [], CustomerPainAnalysis()).market_opportunity

        assert opportunity("$20B") == 10
        assert opportunity("$2B") == 8
        assert opportunity("$500M") == 6
        assert opportunity("$50M") == 4
        assert opportunity("$5M") == 2

    def test_pure(self):
        market = MarketSizeAnalysis(market_size="$2B", growth_rate="20%")
        pain = CustomerPainAnalysis(pain_level=7)
        first = calculate_market_score(market, _competitors(4), pain)
        second = calculate_market_score(market, _competitors(4), pain)
        assert first == second


# ---------------------------------------------------------------------------
# Success rating
# ---------------------------------------------------------------------------

class TestSuccessRating:
    def test_favourable_context(self):
        context = ResearchContext(
            product="AI writing assistant",
            target="Enterprise marketing teams",
            differentiator="Learns each team's brand voice automatically",
            pricing="$10/month",
        )
        competitors = [
            Competitor(name="Jasper", pricing="$50/month", weaknesses=["Expensive", "Slow support"]),
            Competitor(name="Copy.ai", pricing="$40/month", weaknesses=["expensive", "Slow support"]),
        ]

        rating = calculate_success_rating(context, competitors)

        assert rating.score == 95
        assert rating.level == "high"
        assert rating.factors.differentiation == "positive"
        assert rating.factors.pricing == "analyzed"
        assert rating.factors.competition == "moderate"
        assert rating.factors.market_opportunity == "strong"

    def test_unfavourable_context(self):
        context = ResearchContext(product="Email app", target="Individual users")

        rating = calculate_success_rating(context, _competitors(3))

        assert rating.score == 35
        assert rating.level == "challenging"
        assert rating.factors.differentiation == "negative"
        assert rating.factors.pricing == "unknown"
        assert rating.factors.competition == "intense"
        assert rating.factors.market_opportunity == "limited"

    def test_ai_must_be_a_whole_word(self):
        context = ResearchContext(product="Paint mixer", target="Hardware shops")
        assert calculate_success_rating(context, []).score == 50

    def test_common_weaknesses_counted_once_per_competitor(self):
        competitors = [
            Competitor(name="Alpha", weaknesses=["Expensive", "expensive"]),
            Competitor(name="Bravo", weaknesses=["Complex UI"]),
            Competitor(name="Charlie", weaknesses=["complex ui", "Slow"]),
        ]
        assert find_common_weaknesses(competitors) == ["complex ui"]
