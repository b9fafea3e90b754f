"""Deterministic Scoring Engine.

Two independent scales live here and are never combined:

``calculate_market_score``
    0-10 market score for the detailed validation path, with the numeric
    verdict taken from ``verdict_for_score``.
``calculate_success_rating``
    0-100 rating for the competitive analysis report.

Rules
-----
- NO API calls
- NO LLMs
- Pure deterministic math over already-extracted signals
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Sequence

from ..schemas.competitor_schema import Competitor, ResearchContext
from ..schemas.market_schema import UNKNOWN, CustomerPainAnalysis, MarketSizeAnalysis
from ..schemas.score_schema import (
    ScoreBreakdown,
    ScoreVerdict,
    SuccessFactors,
    SuccessRating,
)
from .text_extraction import extract_price, extract_prices, parse_market_value

# Weights (sum to 1.0)
MARKET_WEIGHT = 0.4
COMPETITION_WEIGHT = 0.3
FEASIBILITY_WEIGHT = 0.3

YES_THRESHOLD = 7.0
MAYBE_THRESHOLD = 4.0

# (exclusive lower bound in $M, tier score), checked top-down
MARKET_SIZE_TIERS = ((10_000, 10), (1_000, 8), (100, 6), (10, 4))
MARKET_SIZE_FLOOR = 2
NEUTRAL_SCORE = 5

# (inclusive upper bound on competitor count, score); 3-5 is the best band
COMPETITION_BANDS = ((0, 3), (2, 5), (5, 8), (10, 6))
CROWDED_SCORE = 3

HIGHLY_CONCENTRATED = "Highly concentrated"
FRAGMENTED = "Fragmented"

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_AI_WORD = re.compile(r"\bai\b", re.IGNORECASE)


def _clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def _round_half_up(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def verdict_for_score(overall: float) -> ScoreVerdict:
    """Map an overall 0-10 score to YES / MAYBE / NO."""
    if overall >= YES_THRESHOLD:
        return "YES"
    if overall >= MAYBE_THRESHOLD:
        return "MAYBE"
    return "NO"


def _market_opportunity(market: MarketSizeAnalysis) -> int:
    score = NEUTRAL_SCORE
    if market.market_size != UNKNOWN:
        size = parse_market_value(market.market_size)
        score = next(
            (tier for bound, tier in MARKET_SIZE_TIERS if size > bound),
            MARKET_SIZE_FLOOR,
        )

    if market.growth_rate != UNKNOWN:
        match = _NUMBER.search(market.growth_rate)
        if match:
            growth = float(match.group(0))
            if growth > 30:
                score = min(10, score + 2)
            elif growth > 15:
                score = min(10, score + 1)
            elif growth < 5:
                score = max(1, score - 2)
    return score


def competition_score(competitor_count: int) -> int:
    """Non-monotonic band score: validated-but-not-saturated scores best."""
    for upper, score in COMPETITION_BANDS:
        if competitor_count <= upper:
            return score
    return CROWDED_SCORE


def _entry_feasibility(pain: CustomerPainAnalysis, concentration: Optional[str]) -> int:
    score = int(_clamp(pain.pain_level or NEUTRAL_SCORE, 0, 10))
    if concentration == HIGHLY_CONCENTRATED:
        score = max(1, score - 3)
    elif concentration == FRAGMENTED:
        score = min(10, score + 2)
    return score


def calculate_market_score(
    market: MarketSizeAnalysis,
    competitors: Sequence[object],
    pain: CustomerPainAnalysis,
    *,
    market_concentration: Optional[str] = None,
) -> ScoreBreakdown:
    """Combine market, competition and pain signals into a ``ScoreBreakdown``.

    Parameters
    ----------
    market : MarketSizeAnalysis
        Size and growth strings as extracted (``"Unknown"`` allowed).
    competitors : sequence
        Only its length is used.
    pain : CustomerPainAnalysis
        Pain level seeds entry feasibility.
    market_concentration : str, optional
        Label from competitor quality analysis; adjusts entry feasibility.
    """
    market_opportunity = _market_opportunity(market)
    competition = competition_score(len(competitors))
    entry_feasibility = _entry_feasibility(pain, market_concentration)

    overall = _round_half_up(
        market_opportunity * MARKET_WEIGHT
        + competition * COMPETITION_WEIGHT
        + entry_feasibility * FEASIBILITY_WEIGHT
    )

    return ScoreBreakdown(
        market_opportunity=market_opportunity,
        competition=competition,
        entry_feasibility=entry_feasibility,
        overall=overall,
        verdict=verdict_for_score(overall),
    )


# ===================================================================== #
#  Competitive analysis helpers                                           #
# ===================================================================== #

def find_common_weaknesses(competitors: Sequence[Competitor]) -> List[str]:
    """Weaknesses (lower-cased) listed by more than one competitor, max 3."""
    counts: Dict[str, int] = {}
    for competitor in competitors:
        for weakness in dict.fromkeys(w.strip().lower() for w in competitor.weaknesses):
            if weakness:
                counts[weakness] = counts.get(weakness, 0) + 1
    return [weakness for weakness, count in counts.items() if count > 1][:3]


def average_price(competitors: Sequence[Competitor]) -> Optional[float]:
    prices = extract_prices(competitors)
    if not prices:
        return None
    return sum(prices) / len(prices)


def calculate_success_rating(
    context: ResearchContext, competitors: Sequence[Competitor]
) -> SuccessRating:
    """Heuristic 0-100 success rating, starting from a neutral 50."""
    score = 50

    if len(context.differentiator) > 20:
        score += 10

    user_price = extract_price(context.pricing)
    avg_price = average_price(competitors)
    if avg_price is not None:
        if 0 < user_price < avg_price * 0.7:
            score += 10
        elif user_price > avg_price * 1.5:
            score -= 10

    target = context.target.lower()
    if "enterprise" in target:
        score += 5
    elif "individual" in target:
        score -= 5

    crowded = len(competitors) >= 3
    if crowded:
        score -= 10

    common_weaknesses = find_common_weaknesses(competitors)
    if len(common_weaknesses) >= 2:
        score += 15

    if _AI_WORD.search(context.product):
        score += 5

    score = int(_clamp(score, 0, 100))
    if score >= 70:
        level = "high"
    elif score >= 40:
        level = "moderate"
    else:
        level = "challenging"

    return SuccessRating(
        score=score,
        level=level,
        factors=SuccessFactors(
            differentiation="positive" if context.differentiator else "negative",
            pricing="analyzed" if user_price > 0 else "unknown",
            competition="intense" if crowded else "moderate",
            market_opportunity="strong" if len(common_weaknesses) >= 2 else "limited",
        ),
    )
