from typing import Literal, Optional

from pydantic import BaseModel, Field

from .base_schema import ResultModel
from .competitor_schema import Competitor, ResearchContext
from .score_schema import SuccessRating

Priority = Literal["high", "medium", "low"]


class AnalyzeRequest(BaseModel):
    """Request body for ``POST /api/analyze``."""

    context: Optional[ResearchContext] = None


class Recommendation(ResultModel):
    type: str
    priority: Priority
    title: str
    description: str
    action: str


class Opportunity(ResultModel):
    title: str
    description: str
    impact: Priority


class CriticalQuestion(ResultModel):
    question: str
    category: str
    importance: Literal["critical", "high"]


class HardTruth(ResultModel):
    type: str = "reality_check"
    message: str
    severity: str = "high"


class BrutalTruth(ResultModel):
    truths: list[HardTruth] = Field(default_factory=list, max_length=3)
    hard_truth: str
    silver_lining: str
    advice: str


class CompetitiveAnalysis(ResultModel):
    """Full competitive analysis report for one founder context."""

    competitors: list[Competitor]
    additional_competitors: list[str]
    insights: str = Field(..., description="Markdown strategy write-up")
    recommendations: list[Recommendation]
    opportunities: list[Opportunity] = Field(..., max_length=5)
    questions_to_ask: list[CriticalQuestion] = Field(..., max_length=7)
    success_rating: SuccessRating
    brutal_truth: Optional[BrutalTruth] = None


class AnalyzeResponse(ResultModel):
    success: bool = True
    analysis: CompetitiveAnalysis


class ContextQuestion(ResultModel):
    id: str
    question: str
    placeholder: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    required: bool


class QuestionsResponse(ResultModel):
    questions: list[ContextQuestion]
