"""Competitive analysis report for a founder's context.

Pipeline (``run_competitive_analysis``):
  1. Research competitors (Perplexity, or mock data offline)
  2. Strategic insights — LLM markdown, or a fixed template offline
  3. Rule-based recommendations and opportunities
  4. Critical questions — LLM ``[CATEGORY]: question`` lines, or canned
  5. 0-100 success rating
  6. Brutal truth, only when the founder asked for it
"""

from __future__ import annotations

import json
import logging
import random
import re
from typing import List, Optional, Sequence

from ..errors import MissingCredentialError, UpstreamFailure
from ..schemas.analysis_schema import (
    BrutalTruth,
    CompetitiveAnalysis,
    ContextQuestion,
    CriticalQuestion,
    HardTruth,
    Opportunity,
    Recommendation,
)
from ..schemas.competitor_schema import Competitor, ResearchContext
from ..schemas.score_schema import SuccessRating
from ..timing import async_timer
from .competitor_research import research_competitors_with_perplexity
from .config_store import get_openai_key
from .openai_client import call_openai_chat, strip_code_fences
from .scoring_engine import (
    average_price,
    calculate_success_rating,
    find_common_weaknesses,
)
from .text_extraction import extract_price

logger = logging.getLogger(__name__)

MAX_OPPORTUNITIES = 5
MAX_QUESTIONS = 7
MAX_TRUTHS = 3

CRITICAL_CATEGORIES = frozenset({"differentiation", "customer", "runway", "go-to-market"})

INSIGHTS_SYSTEM_PROMPT = (
    "You are a competitive intelligence expert helping startups. Provide detailed "
    "but well-structured insights. Use clear sections and be specific."
)
QUESTIONS_SYSTEM_PROMPT = (
    "You are a tough startup advisor. Generate critical questions that expose "
    "weaknesses and force deep thinking."
)
BRUTAL_SYSTEM_PROMPT = (
    "You are a brutally honest startup advisor. Give harsh but valuable truth. "
    "Be specific, not generic."
)

# (keywords, title, description, impact)
WEAKNESS_OPPORTUNITIES = (
    (("complex", "difficult"), "Simplicity gap",
     "Competitors have complex interfaces - opportunity for intuitive design", "high"),
    (("expensive", "price"), "Price disruption",
     "Market is overpriced - opportunity for affordable alternative", "high"),
    (("support", "slow"), "Support excellence",
     "Poor support is common - differentiate with responsive help", "medium"),
    (("integration", "api"), "Integration advantage",
     "Limited integrations in market - opportunity to connect everything", "medium"),
)

# One coherent persona per index across all categories.
PLACEHOLDER_EXAMPLES = {
    "products": [
        "AI-powered form builder for small businesses",
        "Mobile app for local food delivery",
        "SaaS tool for social media scheduling",
        "E-commerce platform for handmade goods",
        "Project management tool for remote teams",
        "CRM for freelancers and consultants",
        "Video editing tool for content creators",
        "Fitness tracking app with AI coaching",
    ],
    "targets": [
        "Small business owners who need simple forms",
        "Restaurants wanting direct delivery without fees",
        "Social media managers at small agencies",
        "Crafters and artists selling online",
        "Remote startup teams under 50 people",
        "Independent consultants and freelancers",
        "YouTube creators and TikTokers",
        "Fitness enthusiasts wanting personalized plans",
    ],
    "differentiators": [
        "Natural language form creation, no coding required",
        "Zero commission fees, flat monthly rate",
        "AI-powered content suggestions and timing",
        "Built-in SEO and social media marketing tools",
        "Voice-first interface for quick updates",
        "Automated invoicing and time tracking",
        "One-click effects that look professional",
        "Adapts workouts based on recovery data",
    ],
    "pricing": [
        "$29/month for unlimited forms",
        "$99/month per restaurant",
        "$49/month for 10 social accounts",
        "$19/month + 3% transaction fee",
        "Free for 5 users, $10/user after",
        "$39/month with unlimited clients",
        "$15/month or $149/year",
        "Free with premium coaching at $29/month",
    ],
    "competitors": [
        "Typeform, Google Forms, Jotform",
        "DoorDash, Uber Eats, Grubhub",
        "Buffer, Hootsuite, Later",
        "Etsy, Shopify, WooCommerce",
        "Asana, Trello, Monday.com",
        "HoneyBook, Dubsado, FreshBooks",
        "Adobe Premiere, Final Cut, DaVinci",
        "MyFitnessPal, Strava, Fitbit",
    ],
}

_QUESTION_LINE = re.compile(r"\[([^\]]+)\]:\s*(.+)")
_LEADING_NUMBER = re.compile(r"^\d+\.\s*")
_FIRST_ITEM = re.compile(r"(?:^|\n)\s*1\.\s*(.*?)(?=\n\s*2\.|\Z)", re.DOTALL)
_HARD_TRUTH = re.compile(r"(?:hard truth|reality check|bottom line)[\s:]+([^.]+\.)", re.IGNORECASE)
_SILVER_LINING = re.compile(r"(?:silver lining|good news|positive)[\s:]+([^.]+\.)", re.IGNORECASE)
_ADVICE = re.compile(r"(?:advice|should do|next step|right now)[\s:]+([^.]+\.)", re.IGNORECASE)
_BULLET = re.compile(r"^\s*[-*•]\s*")


def _names(competitors: Sequence[Competitor]) -> str:
    return ", ".join(c.name for c in competitors)


# ===================================================================== #
#  Insights                                                               #
# ===================================================================== #

def generate_fallback_analysis(context: ResearchContext, competitors: Sequence[Competitor]) -> str:
    """Fixed five-section markdown write-up used without an LLM."""
    return f"""## Market Opportunities
• Competitors ({_names(competitors)}) are complex/expensive for {context.target}
• Your "{context.differentiator}" fills a clear gap
• At {context.pricing}, you undercut market significantly

## Your Competitive Position
• Modern alternative to legacy tools
• Focus on {context.target} exclusively
• Leverage speed and personal touch as advantages

## Positioning Strategy
• Lead with simplicity and affordability
• Target underserved {context.target} segment
• Emphasize founder-led support and rapid iteration

## Key Risks to Address
• Building trust against established brands
• Limited resources vs funded competitors
• Need for rapid market validation

## Go-to-Market Recommendations
• Launch on Product Hunt this week
• Get 100 beta users in your exact niche
• Create side-by-side comparison page
• Build in public to establish credibility
"""


async def analyze_competition(context: ResearchContext, competitors: Sequence[Competitor]) -> str:
    """Markdown strategy insights for the founder."""
    if not get_openai_key():
        logger.info("[ANALYSIS] No OpenAI key — using fallback analysis")
        return generate_fallback_analysis(context, competitors)

    competitor_json = json.dumps(
        [c.model_dump(by_alias=True) for c in competitors], indent=2
    )
    prompt = f"""Analyze the competitive landscape for a startup with these details:
- Product: {context.product}
- Target Customer: {context.target}
- Main Differentiator: {context.differentiator}
- Pricing: {context.pricing}

Competitors found:
{competitor_json}

Provide strategic insights in these sections:

## Market Opportunities
(2-3 specific opportunities based on competitor weaknesses and market gaps)

## Your Competitive Position
(How you stack up against competitors, your unique advantages)

## Positioning Strategy
(How to position yourself in the market for maximum impact)

## Key Risks to Address
(2-3 main challenges you'll face)

## Go-to-Market Recommendations
(Specific, actionable steps to launch successfully)

Be specific and actionable. Focus on insights the founder can act on immediately."""

    try:
        raw = await call_openai_chat(
            messages=[
                {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.7,
            max_tokens=1000,
        )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[ANALYSIS] Insight generation failed: %s", exc)
        return generate_fallback_analysis(context, competitors)
    return strip_code_fences(raw)


# ===================================================================== #
#  Rule-based recommendations and opportunities                           #
# ===================================================================== #

def generate_recommendations(
    context: ResearchContext, competitors: Sequence[Competitor]
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []

    user_price = extract_price(context.pricing)
    avg_price = average_price(competitors)
    if user_price > 0 and avg_price is not None:
        if user_price < avg_price * 0.7:
            recommendations.append(Recommendation(
                type="pricing",
                priority="high",
                title="Price disruption opportunity",
                description="Your pricing significantly undercuts competitors",
                action='Lead with price in marketing, emphasize value not "cheap"',
            ))
        elif user_price > avg_price * 1.3:
            recommendations.append(Recommendation(
                type="pricing",
                priority="high",
                title="Premium positioning required",
                description="Your pricing is above market average",
                action="Emphasize premium features and superior support",
            ))

    recommendations.append(Recommendation(
        type="feature",
        priority="high",
        title="Lead with your differentiator",
        description=f'"{context.differentiator}" is your unique advantage',
        action="Make this the hero message on your landing page",
    ))

    common_weaknesses = find_common_weaknesses(competitors)
    if common_weaknesses:
        recommendations.append(Recommendation(
            type="positioning",
            priority="high",
            title="Address market pain points",
            description=f"Competitors struggle with: {', '.join(common_weaknesses[:2])}",
            action="Build features and messaging that directly address these issues",
        ))

    recommendations.append(Recommendation(
        type="targeting",
        priority="medium",
        title="Focus on underserved segment",
        description=f"{context.target} may be overlooked by enterprise-focused competitors",
        action="Create targeted content, case studies, and pricing for this segment",
    ))

    recommendations.append(Recommendation(
        type="gtm",
        priority="high",
        title="Quick validation strategy",
        description="Test product-market fit before full launch",
        action="Launch on Product Hunt, get 100 beta users, iterate based on feedback",
    ))

    if competitors:
        leader = competitors[0]
        if "enterprise" in leader.name.lower() or "enterprise" in leader.target_market.lower():
            recommendations.append(Recommendation(
                type="strategy",
                priority="medium",
                title="David vs Goliath positioning",
                description="Position as the nimble alternative to slow enterprise tools",
                action="Emphasize speed, simplicity, and personal support",
            ))

    return recommendations


def find_opportunities(
    context: ResearchContext, competitors: Sequence[Competitor]
) -> List[Opportunity]:
    """Market openings derived from competitor data, at most five."""
    opportunities: List[Opportunity] = []

    common_weaknesses = find_common_weaknesses(competitors)
    for keywords, title, description, impact in WEAKNESS_OPPORTUNITIES:
        if any(k in w for w in common_weaknesses for k in keywords):
            opportunities.append(Opportunity(title=title, description=description, impact=impact))

    if len(competitors) < 3:
        opportunities.append(Opportunity(
            title="Emerging market",
            description="Few direct competitors indicates untapped opportunity",
            impact="high",
        ))
    elif len(competitors) > 5:
        opportunities.append(Opportunity(
            title="Proven demand",
            description="Multiple competitors validate market need",
            impact="medium",
        ))

    counts: dict[str, int] = {}
    for competitor in competitors:
        for weakness in competitor.weaknesses:
            key = weakness.lower()
            counts[key] = counts.get(key, 0) + 1
    if counts:
        top_weakness, top_count = max(counts.items(), key=lambda item: item[1])
        if top_count >= 2:
            opportunities.append(Opportunity(
                title="Common gap in market",
                description=f"Multiple competitors share weakness: {top_weakness[:50]}...",
                impact="high",
            ))

    avg_price = average_price(competitors)
    if avg_price is not None:
        user_price = extract_price(context.pricing)
        if 0 < user_price < avg_price * 0.7:
            opportunities.append(Opportunity(
                title="Price disruption potential",
                description=f"Significantly below market average of ${round(avg_price)}",
                impact="high",
            ))
        elif user_price > avg_price * 1.3:
            opportunities.append(Opportunity(
                title="Premium positioning viable",
                description="Market accepts higher pricing for superior value",
                impact="medium",
            ))

    return opportunities[:MAX_OPPORTUNITIES]


# ===================================================================== #
#  Critical questions                                                     #
# ===================================================================== #

def offline_questions(context: ResearchContext, competitors: Sequence[Competitor]) -> List[CriticalQuestion]:
    leader = competitors[0].name if competitors else "competitors"
    return [
        CriticalQuestion(question=f"Why will customers choose you over {leader}?",
                         category="differentiation", importance="critical"),
        CriticalQuestion(question="Can you survive 18 months with zero revenue?",
                         category="runway", importance="critical"),
        CriticalQuestion(question="What happens when a competitor copies your differentiator?",
                         category="moat", importance="high"),
        CriticalQuestion(question=f"Who specifically will pay {context.pricing} for this?",
                         category="customer", importance="critical"),
        CriticalQuestion(question="How will you get your first 100 customers?",
                         category="go-to-market", importance="critical"),
    ]


def failed_questions(context: ResearchContext, competitors: Sequence[Competitor]) -> List[CriticalQuestion]:
    leader = competitors[0].name if competitors else "established players"
    return [
        CriticalQuestion(question=f"How will you beat {leader} with their resources?",
                         category="competition", importance="critical"),
        CriticalQuestion(question="What stops someone from copying your idea tomorrow?",
                         category="moat", importance="critical"),
        CriticalQuestion(question=f"Why would {context.target} pay {context.pricing} for this?",
                         category="pricing", importance="critical"),
        CriticalQuestion(question="How do you acquire customers profitably?",
                         category="unit economics", importance="high"),
        CriticalQuestion(question="What's your plan when you run out of money?",
                         category="runway", importance="critical"),
    ]


def parse_critical_questions(text: str) -> List[CriticalQuestion]:
    """Read ``[CATEGORY]: question`` lines; bare questions become ``general``."""
    questions: List[CriticalQuestion] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        match = _QUESTION_LINE.search(line)
        if match:
            category = match.group(1).strip().lower()
            questions.append(CriticalQuestion(
                question=match.group(2).strip(),
                category=category,
                importance="critical" if category in CRITICAL_CATEGORIES else "high",
            ))
        elif "?" in line:
            questions.append(CriticalQuestion(
                question=_LEADING_NUMBER.sub("", line).strip(),
                category="general",
                importance="high",
            ))
        if len(questions) == MAX_QUESTIONS:
            break
    return questions


async def generate_critical_questions(
    context: ResearchContext, competitors: Sequence[Competitor]
) -> List[CriticalQuestion]:
    if not get_openai_key():
        return offline_questions(context, competitors)

    prompt = f"""Context:
- Product: {context.product}
- Target: {context.target}
- Differentiator: {context.differentiator}
- Pricing: {context.pricing}
- Main Competitors: {_names(competitors)}

Generate 7 critical questions this founder MUST answer before building.
Make them specific to their context, not generic.

Format each as:
[CATEGORY]: Question text

Categories: differentiation, moat, pricing, customer, runway, go-to-market, competitive advantage

Questions should be hard-hitting and specific to their situation."""

    try:
        raw = await call_openai_chat(
            messages=[
                {"role": "system", "content": QUESTIONS_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.7,
            max_tokens=400,
        )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[ANALYSIS] Question generation failed: %s", exc)
        return failed_questions(context, competitors)

    return parse_critical_questions(raw) or failed_questions(context, competitors)


# ===================================================================== #
#  Brutal truth                                                           #
# ===================================================================== #

def offline_brutal_truth(rating: SuccessRating) -> BrutalTruth:
    return BrutalTruth(
        truths=[HardTruth(
            message=(
                f"With a {rating.score}% success rating, you're facing an uphill battle. "
                "Most startups in your position fail within 6 months."
            ),
        )],
        hard_truth=(
            "This idea needs major work. Talk to 50 customers before writing any code."
            if rating.score < 50
            else "You have potential but execution is everything. Can you outwork everyone?"
        ),
        silver_lining="At least you're getting honest feedback now instead of after burning through savings.",
        advice="Stop seeking validation. Start building a prototype and get real user feedback.",
    )


def failed_brutal_truth(rating: SuccessRating) -> BrutalTruth:
    return BrutalTruth(
        truths=[HardTruth(
            message=(
                f"Reality check: {rating.score}% success rate means you're more likely "
                "to fail than succeed."
            ),
        )],
        hard_truth="Most startups like yours fail. What makes you different?",
        silver_lining="At least you're validating before building.",
        advice="Talk to customers, not advisors. Build something minimal this week.",
    )


def parse_brutal_truth(text: str) -> BrutalTruth:
    """Pull the truths list and the three one-liners out of free text."""
    text = text.replace("**", "")
    truths: List[HardTruth] = []
    first = _FIRST_ITEM.search(text)
    if first:
        for line in first.group(1).splitlines():
            message = _BULLET.sub("", line).strip()
            if len(message) > 10:
                truths.append(HardTruth(message=message))

    def _pick(pattern: re.Pattern, default: str) -> str:
        match = pattern.search(text)
        return match.group(1).strip() if match else default

    return BrutalTruth(
        truths=truths[:MAX_TRUTHS],
        hard_truth=_pick(_HARD_TRUTH, "Your idea needs serious work before it's viable."),
        silver_lining=_pick(_SILVER_LINING, "You're asking the right questions early."),
        advice=_pick(_ADVICE, "Talk to 10 potential customers this week."),
    )


async def generate_brutal_truth(
    context: ResearchContext, competitors: Sequence[Competitor], rating: SuccessRating
) -> BrutalTruth:
    if not get_openai_key():
        return offline_brutal_truth(rating)

    prompt = f"""Context:
- Product: {context.product}
- Target: {context.target}
- Differentiator: {context.differentiator}
- Pricing: {context.pricing}
- Success Rating: {rating.score}%
- Competitors: {_names(competitors)}

Give a BRUTAL, honest assessment. Be harsh but constructive. Include:

1. Three harsh truths about their idea (be specific to their context)
2. The hard truth - one sentence reality check
3. Silver lining - something genuinely positive
4. Direct advice - what they should do RIGHT NOW

Be brutally honest like a tough-love mentor. No sugarcoating."""

    try:
        raw = await call_openai_chat(
            messages=[
                {"role": "system", "content": BRUTAL_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.8,
            max_tokens=500,
        )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[ANALYSIS] Brutal truth generation failed: %s", exc)
        return failed_brutal_truth(rating)
    return parse_brutal_truth(raw)


# ===================================================================== #
#  Orchestration                                                          #
# ===================================================================== #

async def run_competitive_analysis(context: ResearchContext) -> CompetitiveAnalysis:
    """Full report; ``ResearchFailure`` from research propagates."""
    logger.info("[ANALYSIS] Starting analysis for: %s", context.product)

    async with async_timer("competitive_analysis", "PIPELINE"):
        research = await research_competitors_with_perplexity(context)
        competitors = research.competitors

        insights = await analyze_competition(context, competitors)
        questions = await generate_critical_questions(context, competitors)
        rating = calculate_success_rating(context, competitors)
        brutal_truth: Optional[BrutalTruth] = None
        if context.brutal_mode:
            brutal_truth = await generate_brutal_truth(context, competitors, rating)

    return CompetitiveAnalysis(
        competitors=competitors,
        additional_competitors=research.additional_competitors,
        insights=insights,
        recommendations=generate_recommendations(context, competitors),
        opportunities=find_opportunities(context, competitors),
        questions_to_ask=questions,
        success_rating=rating,
        brutal_truth=brutal_truth,
    )


def context_questions(persona_index: Optional[int] = None) -> List[ContextQuestion]:
    """Intake questions, placeholders drawn from one persona."""
    count = len(PLACEHOLDER_EXAMPLES["products"])
    i = random.randrange(count) if persona_index is None else persona_index % count
    examples = {category: values[i] for category, values in PLACEHOLDER_EXAMPLES.items()}

    return [
        ContextQuestion(
            id="product",
            question="What are you building?",
            placeholder=examples["products"],
            description="Be specific about what your product does and who uses it",
            required=True,
        ),
        ContextQuestion(
            id="target",
            question="Who's your target customer?",
            placeholder=examples["targets"],
            required=True,
        ),
        ContextQuestion(
            id="differentiator",
            question="What's your main differentiator?",
            placeholder=examples["differentiators"],
            required=True,
        ),
        ContextQuestion(
            id="pricing",
            question="What's your price range?",
            placeholder=examples["pricing"],
            required=True,
        ),
        ContextQuestion(
            id="competitors",
            question="Any known competitors? (optional)",
            placeholder=examples["competitors"],
            required=False,
        ),
        ContextQuestion(
            id="brutalMode",
            question="Want the brutal truth?",
            type="checkbox",
            description="Get an honest, no-BS assessment of your chances (not for the faint-hearted)",
            required=False,
        ),
    ]
