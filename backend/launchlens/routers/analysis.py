"""
Competitive Analysis Router

/api/analyze    full competitive analysis report
/api/test       quick competitor research from query parameters
/api/questions  intake questions for the analysis form
"""

import logging

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from ..errors import ResearchFailure
from ..schemas.analysis_schema import AnalyzeRequest, AnalyzeResponse, QuestionsResponse
from ..schemas.competitor_schema import ResearchContext
from ..services.competitive_analysis import context_questions, run_competitive_analysis
from ..services.competitor_research import research_competitors_with_perplexity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Competitive Analysis"],
)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze Competition",
    response_description="Competitors, insights, recommendations and success rating",
)
async def analyze(request: AnalyzeRequest):
    context = request.context
    if context is None or not context.product.strip() or not context.target.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing required context information"},
        )

    try:
        analysis = await run_competitive_analysis(context)
    except ResearchFailure as exc:
        logger.error("[ANALYSIS] Analysis failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to analyze competition", "details": str(exc)},
        )
    return AnalyzeResponse(analysis=analysis)


@router.get(
    "/test",
    summary="Quick Competitor Research",
    description="Run competitor research only, with context passed as query parameters",
)
async def quick_test(
    product: str = Query("AI token organizer for SAAS"),
    target: str = Query("SAAS companies"),
    differentiator: str = Query("niche"),
    pricing: str = Query("$50/month"),
    competitors: str = Query(""),
    brutal: bool = Query(False),
):
    context = ResearchContext(
        product=product,
        target=target,
        differentiator=differentiator,
        pricing=pricing,
        competitors=competitors,
        brutal_mode=brutal,
    )
    logger.info("[ANALYSIS] Quick test with context: %s", context.model_dump())
    context_json = context.model_dump(by_alias=True)

    try:
        research = await research_competitors_with_perplexity(context)
    except ResearchFailure as exc:
        return {
            "success": False,
            "error": str(exc),
            "context": context_json,
            "hint": "Check server logs for Perplexity response",
        }

    return {
        "success": True,
        "context": context_json,
        "competitors": [
            {
                "name": c.name,
                "description": c.description or "No description",
                "pricing": c.pricing,
            }
            for c in research.competitors
        ],
        "additionalCompetitors": research.additional_competitors,
        "count": len(research.competitors),
    }


@router.get(
    "/questions",
    response_model=QuestionsResponse,
    summary="Intake Questions",
    description="Context questions with placeholder examples from one persona",
)
async def questions():
    return QuestionsResponse(questions=context_questions())
