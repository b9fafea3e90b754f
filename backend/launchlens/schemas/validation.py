from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base_schema import ResultModel
from .competitor_schema import CompetitorSummary
from .decision_schema import PivotExample, Verdict
from .score_schema import ScoreVerdict


class ValidationRequest(BaseModel):
    """Request body for ``POST /api/validate``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "idea": "AI-powered form builder for small businesses",
                "roastMode": False,
                "detailed": True,
            }
        },
    )

    idea: str = Field(
        "",
        max_length=2000,
        description="The startup idea to validate (at least 10 characters).",
    )
    roast_mode: bool = False
    detailed: bool = False
    model: Optional[str] = Field(None, description="Override the configured OpenAI model")


class SimpleResult(ResultModel):
    """Result of the quick YES/NO validation path."""

    success: bool = True
    decision: Verdict
    reasons: list[str]
    competitors: list[CompetitorSummary]
    alternatives: list[str]
    pivot_examples: list[PivotExample]


class ScoreBreakdownView(ResultModel):
    market_opportunity: int
    competition: int
    entry_feasibility: int


class ScoresView(ResultModel):
    overall: float
    breakdown: ScoreBreakdownView


class MarketAnalysisView(ResultModel):
    size: str
    growth: str
    funding: str


class CustomerPainView(ResultModel):
    level: int
    unmet_needs: list[str]


class CompetitorAnalysisView(ResultModel):
    count: int
    quality: int = Field(..., description="Customer satisfaction with incumbents (1-10)")
    concentration: str
    competitors: list[CompetitorSummary]


class DetailedResult(ResultModel):
    """Result of the detailed, score-driven validation path."""

    success: bool = True
    decision: ScoreVerdict
    scores: ScoresView
    market_analysis: MarketAnalysisView
    customer_pain: CustomerPainView
    competitor_analysis: CompetitorAnalysisView
    reasons: list[str]
    alternatives: list[str]
    pivot_examples: list[PivotExample]
    strategy: str
