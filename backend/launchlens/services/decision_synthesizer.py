"""Verdict synthesis for idea validation.

Quick path (``validate_idea``)
    competitors → one LLM verdict.  Offline, the verdict is canned and
    decided by competitor count alone.

Detailed path (``validate_idea_detailed``)
    competitors, market size, pain and competitor quality run concurrently →
    deterministic ``ScoreBreakdown`` → the LLM explains the scores but never
    changes the verdict.

Roast mode only changes prompt tone and canned wording, never a score.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

from ..errors import InvalidIdeaError, MissingCredentialError, UpstreamFailure
from ..schemas.competitor_schema import CompetitorSummary
from ..schemas.decision_schema import Decision, DetailedNarrative, PivotExample
from ..schemas.market_schema import (
    CompetitorQualityAnalysis,
    CustomerPainAnalysis,
    MarketSizeAnalysis,
)
from ..schemas.score_schema import ScoreBreakdown
from ..schemas.validation import (
    CompetitorAnalysisView,
    CustomerPainView,
    DetailedResult,
    MarketAnalysisView,
    ScoreBreakdownView,
    ScoresView,
    SimpleResult,
)
from ..timing import async_timer, sync_timer
from .competitor_research import find_competitors
from .config_store import get_openai_key
from .market_signals import (
    analyze_competitor_quality,
    analyze_customer_pain,
    analyze_market_size,
)
from .openai_client import call_openai_chat, parse_llm_reply
from .scoring_engine import calculate_market_score

logger = logging.getLogger(__name__)

MIN_IDEA_LENGTH = 10
MAX_ITEMS = 3
SATURATION_THRESHOLD = 3

VALIDATOR_SYSTEM_PROMPT = (
    "You are a startup validator. Give clear YES/NO decisions with brief reasons. "
    "Be harsh but fair."
)
ROAST_SYSTEM_PROMPT = (
    "You are the most brutally honest, sarcastic startup validator. You're TIRED of "
    "terrible ideas. Be SAVAGE. Mock and ridicule bad ideas mercilessly. Use humor, "
    "sarcasm, and devastating one-liners. Think Gordon Ramsay but for startups. "
    "Examples: 'Another todo app? How revolutionary!', 'Pet social media? Because "
    "dogs really need more screen time', 'Wow, nobody has EVER thought of that "
    "before'. Default to NO unless it's absolutely brilliant."
)
ANALYST_SYSTEM_PROMPT = (
    "You are an expert startup analyst with access to detailed market data. "
    "Provide data-driven insights."
)

# ── Canned offline decisions ──────────────────────────────────────────────
SATURATED_REASONS = [
    "Market is saturated with existing solutions",
    "Difficult to differentiate from competitors",
    "High customer acquisition cost likely",
]
SATURATED_REASONS_ROAST = [
    "Congrats, you've reinvented something that already exists several times over",
    "Your competitors thank you for validating their market for free",
    "Differentiation? Never heard of her",
]
OPEN_MARKET_REASONS = [
    "Market may have room for innovation",
    "Fewer competitors could mean opportunity",
    "Need more research to validate demand",
]
OPEN_MARKET_REASONS_ROAST = [
    "Nobody is doing this, which is either genius or a giant warning sign",
    "Few competitors, or maybe nobody wants it. Place your bets",
    "Validate demand before you quit your day job",
]
SATURATED_ALTERNATIVES = [
    "Focus on one specific underserved segment like freelancers or students",
    "Build an integration for existing tools instead of standalone product",
    "Target a specific industry vertical with unique requirements",
]
OPEN_MARKET_ALTERNATIVES = [
    "Start with a landing page and get 100 email signups first",
    "Interview 20 potential customers to validate the problem exists",
    "Build a simple MVP and test with 10 beta users",
]
SATURATED_PIVOTS = [
    PivotExample(company="Segment", story="Pivoted from classroom tool to customer data platform"),
    PivotExample(company="Shopify", story="Started as snowboard shop, became e-commerce platform"),
    PivotExample(company="YouTube", story="Dating site that pivoted to video sharing"),
]

# ── Parse / call failure fallbacks ────────────────────────────────────────
SNIFFED_REASONS = [
    "Market analysis complete",
    "Competition level assessed",
    "Viability determined",
]
SNIFFED_ALTERNATIVES = [
    "Refine your idea to be more specific",
    "Focus on a particular niche or user segment",
    "Consider building a simpler MVP first",
]
SNIFFED_PIVOTS = [
    PivotExample(company="Netflix", story="DVD rental by mail to streaming giant"),
    PivotExample(company="Nokia", story="Paper mill to telecommunications leader"),
    PivotExample(company="Nintendo", story="Playing cards to video game empire"),
]
UNCLEAR_REASONS = [
    "Unable to make clear determination",
    "More information needed",
    "Consider validating with customers",
]
UNCLEAR_ALTERNATIVES = [
    "Start with customer interviews before building",
    "Create a landing page to test market interest",
    "Join relevant communities to understand the problem better",
]
NICHE_ALTERNATIVES = [
    "Focus on a specific underserved niche",
    "Partner with existing players instead of competing",
    "Wait for better market timing or technology",
]

_VERDICTS = ("YES", "NO", "MAYBE", "UNCLEAR")

_ROAST_INSTRUCTIONS = (
    "\nIMPORTANT: Make your reasons SAVAGE and SARCASTIC. Examples of good roast reasons:\n"
    '- "Another todo app? How groundbreaking! Nobel Prize incoming!"\n'
    '- "Because what the world needs is todo app #10,000"\n'
    '- "Wow, such innovation! Nobody has EVER thought of this!"\n'
    '- "Congratulations on the most boring idea of the year"'
)


def ensure_valid_idea(idea: Optional[str]) -> str:
    """Return the trimmed idea or raise ``InvalidIdeaError``."""
    text = (idea or "").strip()
    if len(text) < MIN_IDEA_LENGTH:
        raise InvalidIdeaError(
            f"Please describe your idea (at least {MIN_IDEA_LENGTH} characters)"
        )
    return text


def _string_list(value: Any, limit: int = MAX_ITEMS) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()][:limit]


def _pivot_list(value: Any) -> List[PivotExample]:
    if not isinstance(value, list):
        return []
    pivots = []
    for item in value:
        if isinstance(item, dict) and item.get("company") and item.get("story"):
            pivots.append(PivotExample(company=str(item["company"]), story=str(item["story"])))
    return pivots[:MAX_ITEMS]


# ===================================================================== #
#  Quick decision                                                         #
# ===================================================================== #

def offline_decision(competitors: Sequence[CompetitorSummary], roast_mode: bool = False) -> Decision:
    """Canned verdict used when no OpenAI key is configured."""
    if len(competitors) > SATURATION_THRESHOLD:
        return Decision(
            verdict="NO",
            reasons=SATURATED_REASONS_ROAST if roast_mode else SATURATED_REASONS,
            alternatives=SATURATED_ALTERNATIVES,
            pivot_examples=SATURATED_PIVOTS,
        )
    return Decision(
        verdict="MAYBE",
        reasons=OPEN_MARKET_REASONS_ROAST if roast_mode else OPEN_MARKET_REASONS,
        alternatives=OPEN_MARKET_ALTERNATIVES,
        pivot_examples=[],
    )


def _decision_prompt(idea: str, competitors: Sequence[CompetitorSummary], roast_mode: bool) -> str:
    names = ", ".join(c.name for c in competitors)
    roast = _ROAST_INSTRUCTIONS if roast_mode else ""
    return f"""Analyze this startup idea for viability:

Idea: {idea}

Existing competitors found: {names}

Give a clear YES or NO decision for whether this is worth pursuing.

Respond in this exact JSON format:
{{
  "verdict": "YES" or "NO",
  "reasons": ["reason 1", "reason 2", "reason 3"],
  "alternatives": ["specific pivot 1", "specific pivot 2", "specific pivot 3"],
  "pivotExamples": [
    {{"company": "Company Name", "story": "Brief story of their pivot"}},
    {{"company": "Company Name", "story": "Brief story of their pivot"}},
    {{"company": "Company Name", "story": "Brief story of their pivot"}}
  ]
}}

Be direct and honest. Consider:
- Is the market already saturated?
- Is there a real problem being solved?
- Can a small team compete here?
- Is the idea specific enough?

Keep reasons under 15 words each.{roast}

For alternatives (only if NO), provide 3 ULTRA-SPECIFIC pivots. Examples of good specificity:
- "Build exclusively for Shopify stores selling vintage clothing"
- "Focus only on React component testing, not general unit tests"
- "Target dental practices in rural areas under 50k population"
- "Create a Chrome extension just for Gmail power users"
- "Serve only B2B SaaS companies with 10-50 employees"

BAD vague alternatives to avoid:
- "Focus on a niche market"
- "Target specific industry"
- "Build for different platform"

For pivotExamples (only if NO), provide 3 real companies that successfully pivoted from failure.
Keep pivot stories under 20 words each."""


def _sniffed_decision(text: str) -> Decision:
    lowered = text.lower()
    is_yes = '"yes"' in lowered or 'verdict": "yes' in lowered
    return Decision(
        verdict="YES" if is_yes else "NO",
        reasons=SNIFFED_REASONS,
        alternatives=[] if is_yes else SNIFFED_ALTERNATIVES,
        pivot_examples=[] if is_yes else SNIFFED_PIVOTS,
    )


def decision_from_reply(raw: str) -> Decision:
    """Turn an LLM verdict reply into a ``Decision``; never raises."""
    reply = parse_llm_reply(raw)
    if not reply.is_structured:
        logger.warning("[DECISION] Reply was not JSON — sniffing for a verdict")
        return _sniffed_decision(reply.text)

    verdict = str(reply.value.get("verdict", "")).strip().upper()
    if verdict not in _VERDICTS:
        logger.warning("[DECISION] Reply carried no usable verdict: %r", verdict)
        return _sniffed_decision(reply.text)

    return Decision(
        verdict=verdict,
        reasons=_string_list(reply.value.get("reasons")),
        alternatives=[] if verdict == "YES" else _string_list(reply.value.get("alternatives")),
        pivot_examples=_pivot_list(reply.value.get("pivotExamples")),
    )


async def make_decision(
    idea: str,
    competitors: Sequence[CompetitorSummary],
    *,
    roast_mode: bool = False,
    model: Optional[str] = None,
) -> Decision:
    """YES/NO verdict for *idea* given the discovered competitors."""
    if not get_openai_key():
        logger.info("[DECISION] No OpenAI key — using offline decision")
        return offline_decision(competitors, roast_mode)

    messages = [
        {"role": "system", "content": ROAST_SYSTEM_PROMPT if roast_mode else VALIDATOR_SYSTEM_PROMPT},
        {"role": "user", "content": _decision_prompt(idea, competitors, roast_mode)},
    ]
    try:
        async with async_timer("make_decision", "OPENAI"):
            raw = await call_openai_chat(
                messages=messages, model=model, temperature=0.7, max_tokens=400
            )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[DECISION] Verdict request failed: %s", exc)
        return Decision(
            verdict="UNCLEAR",
            reasons=UNCLEAR_REASONS,
            alternatives=UNCLEAR_ALTERNATIVES,
            pivot_examples=[],
        )
    return decision_from_reply(raw)


# ===================================================================== #
#  Detailed decision                                                      #
# ===================================================================== #

def _detailed_prompt(
    idea: str,
    competitors: Sequence[CompetitorSummary],
    market: MarketSizeAnalysis,
    pain: CustomerPainAnalysis,
    quality: CompetitorQualityAnalysis,
    scores: ScoreBreakdown,
    roast_mode: bool,
) -> str:
    top = ", ".join(c.name for c in competitors[:3])
    tone = (
        "Be BRUTALLY honest and sarcastic in your reasons!"
        if roast_mode
        else "Be direct and analytical."
    )
    return f"""Analyze this startup opportunity with detailed market data:

Idea: {idea}

Market Analysis:
- Market Size: {market.market_size}
- Growth Rate: {market.growth_rate}
- Recent Funding: {market.funding}

Competition:
- Number of Competitors: {len(competitors)}
- Top Competitors: {top}
- Market Concentration: {quality.market_concentration}
- Customer Satisfaction: {quality.satisfaction}/10

Customer Pain:
- Pain Level: {pain.pain_level}/10
- Unmet Needs: {'; '.join(pain.unmet_needs)}

Calculated Scores:
- Market Opportunity: {scores.market_opportunity}/10
- Competition Score: {scores.competition}/10 (note: 8/10 means optimal competition, not too few or too many)
- Entry Feasibility: {scores.entry_feasibility}/10
- Overall Score: {scores.overall}/10
- Verdict: {scores.verdict}

Based on this analysis, provide:

1. Three specific reasons supporting the {scores.verdict} verdict (considering the scores)
2. If NO or MAYBE: Three ultra-specific pivot alternatives
3. If YES: A specific market entry strategy
4. Key risk factors to consider

Respond in JSON format:
{{
  "reasons": ["reason 1", "reason 2", "reason 3"],
  "alternatives": ["alt 1", "alt 2", "alt 3"],
  "strategy": "specific strategy",
  "risks": ["risk 1", "risk 2"],
  "pivotExamples": [{{"company": "name", "story": "brief story"}}]
}}

{tone}"""


def score_narrative(scores: ScoreBreakdown) -> DetailedNarrative:
    """Narrative built from the score breakdown alone (no OpenAI key)."""
    return DetailedNarrative(
        reasons=[
            f"Market opportunity score: {scores.market_opportunity}/10",
            f"Competition score: {scores.competition}/10",
            f"Entry feasibility: {scores.entry_feasibility}/10",
        ],
        alternatives=NICHE_ALTERNATIVES if scores.verdict == "NO" else [],
        strategy=(
            "Focus on differentiation and rapid market entry"
            if scores.verdict == "YES"
            else "Consider pivoting or refining the concept"
        ),
    )


def _unparsed_narrative(scores: ScoreBreakdown) -> DetailedNarrative:
    return DetailedNarrative(
        reasons=[
            f"Market opportunity: {scores.market_opportunity}/10",
            f"Competition balance: {scores.competition}/10",
            f"Entry feasibility: {scores.entry_feasibility}/10",
        ],
        strategy="Analyze the scores to determine your approach",
        risks=["Market data may be approximate"],
    )


def _failed_narrative(scores: ScoreBreakdown) -> DetailedNarrative:
    return DetailedNarrative(
        reasons=[
            f"Scoring shows {scores.verdict} with {scores.overall}/10 overall",
            f"Market opportunity rated {scores.market_opportunity}/10",
            f"Competition balance at {scores.competition}/10",
        ],
        strategy="Use the scores to guide your decision",
    )


def narrative_from_reply(raw: str, scores: ScoreBreakdown) -> DetailedNarrative:
    reply = parse_llm_reply(raw)
    if not reply.is_structured:
        logger.warning("[DECISION] Detailed reply was not JSON — using score reasons")
        return _unparsed_narrative(scores)

    value = reply.value
    reasons = _string_list(value.get("reasons"))
    if not reasons:
        return _unparsed_narrative(scores)
    strategy = value.get("strategy")
    return DetailedNarrative(
        reasons=reasons,
        alternatives=[] if scores.verdict == "YES" else _string_list(value.get("alternatives")),
        strategy=strategy.strip() if isinstance(strategy, str) else "",
        risks=_string_list(value.get("risks"), limit=5),
        pivot_examples=_pivot_list(value.get("pivotExamples")),
    )


async def make_detailed_decision(
    idea: str,
    competitors: Sequence[CompetitorSummary],
    market: MarketSizeAnalysis,
    pain: CustomerPainAnalysis,
    quality: CompetitorQualityAnalysis,
    scores: ScoreBreakdown,
    *,
    roast_mode: bool = False,
    model: Optional[str] = None,
) -> DetailedNarrative:
    """Explain an already-computed ``ScoreBreakdown``.

    The numeric verdict is final; the LLM only supplies wording.
    """
    if not get_openai_key():
        error = MissingCredentialError("OpenAI", "openai-api-key")
        logger.warning("[DECISION] %s — explaining scores without an LLM", error)
        return score_narrative(scores)

    messages = [
        {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": _detailed_prompt(idea, competitors, market, pain, quality, scores, roast_mode),
        },
    ]
    try:
        async with async_timer("make_detailed_decision", "OPENAI"):
            raw = await call_openai_chat(
                messages=messages, model=model, temperature=0.7, max_tokens=500
            )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[DECISION] Detailed analysis request failed: %s", exc)
        return _failed_narrative(scores)
    return narrative_from_reply(raw, scores)


# ===================================================================== #
#  Orchestration                                                          #
# ===================================================================== #

async def validate_idea(
    idea: str, *, roast_mode: bool = False, model: Optional[str] = None
) -> SimpleResult:
    """Quick validation: competitors plus one verdict."""
    idea = ensure_valid_idea(idea)

    async with async_timer("validate_idea", "PIPELINE"):
        competitors = await find_competitors(idea)
        decision = await make_decision(idea, competitors, roast_mode=roast_mode, model=model)

    return SimpleResult(
        decision=decision.verdict,
        reasons=decision.reasons,
        competitors=competitors,
        alternatives=decision.alternatives,
        pivot_examples=decision.pivot_examples,
    )


async def validate_idea_detailed(
    idea: str, *, roast_mode: bool = False, model: Optional[str] = None
) -> DetailedResult:
    """Detailed validation: concurrent market research, scores, narrative."""
    idea = ensure_valid_idea(idea)

    async with async_timer("validate_idea_detailed", "PIPELINE"):
        competitors_task = asyncio.ensure_future(find_competitors(idea))

        async def pain_after_competitors() -> CustomerPainAnalysis:
            return await analyze_customer_pain(idea, await competitors_task)

        async def quality_after_competitors() -> CompetitorQualityAnalysis:
            return await analyze_competitor_quality(await competitors_task)

        market, pain, quality = await asyncio.gather(
            analyze_market_size(idea),
            pain_after_competitors(),
            quality_after_competitors(),
        )
        competitors = await competitors_task

        with sync_timer("validate_idea_detailed", "SCORING"):
            scores = calculate_market_score(
                market,
                competitors,
                pain,
                market_concentration=quality.market_concentration,
            )
        logger.info("[DECISION] Scores: overall=%.1f verdict=%s", scores.overall, scores.verdict)

        narrative = await make_detailed_decision(
            idea,
            competitors,
            market,
            pain,
            quality,
            scores,
            roast_mode=roast_mode,
            model=model,
        )

    return DetailedResult(
        decision=scores.verdict,
        scores=ScoresView(
            overall=scores.overall,
            breakdown=ScoreBreakdownView(
                market_opportunity=scores.market_opportunity,
                competition=scores.competition,
                entry_feasibility=scores.entry_feasibility,
            ),
        ),
        market_analysis=MarketAnalysisView(
            size=market.market_size,
            growth=market.growth_rate,
            funding=market.funding,
        ),
        customer_pain=CustomerPainView(
            level=pain.pain_level,
            unmet_needs=pain.unmet_needs,
        ),
        competitor_analysis=CompetitorAnalysisView(
            count=len(competitors),
            quality=quality.satisfaction,
            concentration=quality.market_concentration,
            competitors=competitors,
        ),
        reasons=narrative.reasons,
        alternatives=narrative.alternatives,
        pivot_examples=narrative.pivot_examples,
        strategy=narrative.strategy,
    )
