from typing import Literal

from pydantic import Field

from .base_schema import ResultModel

ScoreVerdict = Literal["YES", "MAYBE", "NO"]


class ScoreBreakdown(ResultModel):
    """Deterministic market score on a 0-10 scale.

    Produced by ``calculate_market_score``.  Recomputed on every request
    and never persisted.
    """

    market_opportunity: int = Field(
        ...,
        ge=0,
        le=10,
        description="Tier from normalized market size, adjusted by growth rate",
    )
    competition: int = Field(
        ...,
        ge=0,
        le=10,
        description="Band score from competitor count (peaks at 3-5 competitors)",
    )
    entry_feasibility: int = Field(
        ...,
        ge=0,
        le=10,
        description="Customer pain level adjusted by market concentration",
    )
    overall: float = Field(
        ...,
        ge=0.0,
        le=10.0,
        description="0.4*MO + 0.3*C + 0.3*EF, rounded to one decimal",
    )
    verdict: ScoreVerdict


class SuccessFactors(ResultModel):
    """Qualitative labels explaining a success rating."""

    differentiation: Literal["positive", "negative"]
    pricing: Literal["analyzed", "unknown"]
    competition: Literal["intense", "moderate"]
    market_opportunity: Literal["strong", "limited"]


class SuccessRating(ResultModel):
    """Heuristic 0-100 success rating for the competitive analysis report.

    A separate scale from ``ScoreBreakdown``; the two are never combined.
    """

    score: int = Field(..., ge=0, le=100)
    level: Literal["high", "moderate", "challenging"]
    factors: SuccessFactors
