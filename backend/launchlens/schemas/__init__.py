# Schemas package
from .competitor_schema import (
    Competitor,
    CompetitorResearchResult,
    CompetitorSummary,
    ResearchContext,
)
from .market_schema import (
    CompetitorQualityAnalysis,
    CustomerPainAnalysis,
    MarketSizeAnalysis,
)
from .score_schema import ScoreBreakdown, SuccessRating
from .decision_schema import Decision, DetailedNarrative, PivotExample
from .validation import DetailedResult, SimpleResult, ValidationRequest
from .analysis_schema import AnalyzeRequest, CompetitiveAnalysis

__all__ = [
    "Competitor",
    "CompetitorResearchResult",
    "CompetitorSummary",
    "ResearchContext",
    "CompetitorQualityAnalysis",
    "CustomerPainAnalysis",
    "MarketSizeAnalysis",
    "ScoreBreakdown",
    "SuccessRating",
    "Decision",
    "DetailedNarrative",
    "PivotExample",
    "DetailedResult",
    "SimpleResult",
    "ValidationRequest",
    "AnalyzeRequest",
    "CompetitiveAnalysis",
]
