from .competitor_research import find_competitors, research_competitors_with_perplexity
from .market_signals import (
    analyze_competitor_quality,
    analyze_customer_pain,
    analyze_market_size,
)
from .scoring_engine import (
    calculate_market_score,
    calculate_success_rating,
    find_common_weaknesses,
    verdict_for_score,
)
from .decision_synthesizer import (
    make_decision,
    make_detailed_decision,
    validate_idea,
    validate_idea_detailed,
)
from .competitive_analysis import context_questions, run_competitive_analysis

__all__ = [
    "find_competitors",
    "research_competitors_with_perplexity",
    "analyze_competitor_quality",
    "analyze_customer_pain",
    "analyze_market_size",
    "calculate_market_score",
    "calculate_success_rating",
    "find_common_weaknesses",
    "verdict_for_score",
    "make_decision",
    "make_detailed_decision",
    "validate_idea",
    "validate_idea_detailed",
    "context_questions",
    "run_competitive_analysis",
]
