from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from .base_schema import ResultModel

Confidence = Literal["low", "medium", "high"]

UNKNOWN = "Unknown"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MarketSizeAnalysis(ResultModel):
    """Market size, growth and funding signals for one idea.

    Values are the verbatim strings pulled out of the search reply
    (e.g. ``"$5.2B"``, ``"23%"``) or ``"Unknown"``.
    """

    market_size: str = UNKNOWN
    growth_rate: str = UNKNOWN
    funding: str = UNKNOWN
    confidence: Confidence = "low"
    raw_text: str = ""
    computed_at: datetime = Field(default_factory=_now)


class CustomerPainAnalysis(ResultModel):
    """Customer pain signals for one idea."""

    pain_level: int = Field(5, ge=0, le=10)
    unmet_needs: list[str] = Field(default_factory=list, max_length=3)
    search_volume: str = UNKNOWN
    confidence: Confidence = "low"
    raw_text: str = ""
    computed_at: datetime = Field(default_factory=_now)


class CompetitorQualityAnalysis(ResultModel):
    """Funding, satisfaction and concentration signals for a competitor set."""

    avg_funding: str = UNKNOWN
    satisfaction: int = Field(5, ge=1, le=10)
    market_concentration: str = UNKNOWN
    confidence: Confidence = "low"
    raw_text: str = ""
    computed_at: datetime = Field(default_factory=_now)
