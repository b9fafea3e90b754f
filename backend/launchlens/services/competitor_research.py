"""Competitor discovery via Perplexity.

Two entry points:

``find_competitors(idea)``
    Quick path used by idea validation.  One query, line-parsed into at
    most five ``CompetitorSummary`` records.  Degrades to placeholders.

``research_competitors_with_perplexity(context)``
    Rich path used by the competitive analysis report.
      Phase 1 — collect names (founder-supplied seed, one supplemental
                query at most, or one discovery query)
      Phase 2 — research the top 3 concurrently, keep the next 3 as names
    Raises ``ResearchFailure`` when no competitor survives phase 2.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import timedelta
from typing import List, Optional

from ..errors import MissingCredentialError, ResearchFailure, UpstreamFailure
from ..schemas.competitor_schema import (
    Competitor,
    CompetitorResearchResult,
    CompetitorSummary,
    ResearchContext,
)
from ..timing import async_timer
from . import cache as cache_module
from .cache import TTLCache, normalize_cache_key
from .config_store import get_perplexity_key
from .perplexity_client import query_perplexity
from .text_extraction import (
    dedupe_names,
    extract_competitor_names,
    parse_competitor_details,
)

logger = logging.getLogger(__name__)

COMPETITOR_CACHE_WINDOW = timedelta(hours=24)
MAX_QUICK_COMPETITORS = 5
MAX_DETAILED = 3
MAX_ADDITIONAL = 3
TARGET_NAME_COUNT = MAX_DETAILED + MAX_ADDITIONAL

PLACEHOLDER_COMPETITORS = (
    CompetitorSummary(name="Existing Solution A", description="Current market leader"),
    CompetitorSummary(name="Existing Solution B", description="Popular alternative"),
)
FAILED_LOOKUP = CompetitorSummary(
    name="Unknown Competitor", description="Failed to load competitors"
)

DISCOVERY_SYSTEM_PROMPT = (
    "You are a startup competitive intelligence expert. Focus on finding direct, "
    "specific competitors including lesser-known specialized tools and emerging "
    "startups, not just dominant market leaders. Be precise about matching the "
    "exact product category."
)
DETAIL_SYSTEM_PROMPT = (
    "You are a competitive intelligence analyst. Provide detailed, factual information."
)

_LEADING_NUMBER = re.compile(r"^\d+\.\s*")
_CITATION = re.compile(r"\[\d+\]")
_NAME_DESCRIPTION = re.compile(r"[-–:]")
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_LOOSE_MARKER = re.compile(r"^[-*•\d.)\s]+")


# ===================================================================== #
#  Quick path                                                             #
# ===================================================================== #

def _parse_competitor_lines(content: str) -> List[CompetitorSummary]:
    """One ``Name - description`` per reply line, boilerplate skipped."""
    competitors: List[CompetitorSummary] = []
    for line in content.splitlines():
        cleaned = _LEADING_NUMBER.sub("", line.strip())
        cleaned = _CITATION.sub("", cleaned.replace("**", "")).strip()
        lowered = cleaned.lower()
        if len(cleaned) <= 10 or "here are" in lowered or "list of" in lowered:
            continue
        parts = _NAME_DESCRIPTION.split(cleaned)
        if len(parts) < 2:
            continue
        name = parts[0].strip()
        if len(name) < 2 or len(name) >= 50:
            continue
        competitors.append(
            CompetitorSummary(name=name, description="-".join(parts[1:]).strip())
        )
        if len(competitors) == MAX_QUICK_COMPETITORS:
            break
    return competitors


async def find_competitors(
    idea: str, *, cache: Optional[TTLCache] = None
) -> List[CompetitorSummary]:
    """Up to five existing products similar to *idea*.

    No Perplexity key → two fixed placeholders.  Upstream failure → a single
    "Unknown Competitor" record.  Successful lookups are cached for 24 hours.
    """
    if not get_perplexity_key():
        logger.info("[COMP] No Perplexity key — using placeholder competitors")
        return list(PLACEHOLDER_COMPETITORS)

    store = cache if cache is not None else cache_module.competitor_cache
    key = normalize_cache_key(idea)
    cached = store.get(key, COMPETITOR_CACHE_WINDOW)
    if cached is not None:
        logger.info("[COMP] Cache hit for %r", key[:60])
        return list(cached)

    query = (
        f"List 5 existing products/companies that do something similar to: {idea}\n"
        "Return only company names and one-line descriptions."
    )
    try:
        async with async_timer("find_competitors", "PERPLEXITY"):
            content = await query_perplexity(
                [{"role": "user", "content": query}],
                temperature=0.1,
                max_tokens=1000,
            )
    except (UpstreamFailure, MissingCredentialError) as exc:
        logger.error("[COMP] Competitor search failed: %s", exc)
        return [FAILED_LOOKUP]

    competitors = _parse_competitor_lines(content)
    logger.info("[COMP] Found %d competitors", len(competitors))
    store.set(key, tuple(competitors))
    return competitors


# ===================================================================== #
#  Rich path                                                              #
# ===================================================================== #

MOCK_COMPETITORS = (
    Competitor(
        name="Market Leader",
        description="The established player with the largest market share",
        pricing="$49-299/month",
        strengths=["Brand recognition", "Feature-rich platform", "Enterprise integrations"],
        weaknesses=["Complex user interface", "Expensive for small businesses", "Slow customer support"],
        target_market="Enterprise customers",
    ),
    Competitor(
        name="Budget Alternative",
        description="Popular choice for cost-conscious buyers",
        pricing="$19-99/month",
        strengths=["Affordable pricing", "Simple to use", "Good template library"],
        weaknesses=["Limited advanced features", "No API access", "Basic analytics only"],
        target_market="Small businesses",
    ),
    Competitor(
        name="Innovation Challenger",
        description="New player with modern approach",
        pricing="$29-149/month",
        strengths=["Modern UI/UX", "AI-powered features", "Fast performance"],
        weaknesses=["Limited track record", "Fewer integrations", "Smaller team"],
        target_market="Tech-savvy startups",
    ),
)
MOCK_ADDITIONAL = ("Emerging Startup", "Regional Player", "Open Source Alternative")


def get_mock_competitors(context: ResearchContext) -> CompetitorResearchResult:
    """Fixed offline competitor set, renamed after the founder's own list."""
    known = context.known_competitors()
    competitors = [
        mock.model_copy(update={"name": known[i][:50]}) if i < len(known) else mock
        for i, mock in enumerate(MOCK_COMPETITORS)
    ]
    return CompetitorResearchResult(
        competitors=competitors,
        additional_competitors=list(MOCK_ADDITIONAL),
    )


def recover_loose_names(content: str) -> List[str]:
    """Last-ditch name recovery when the strict extractor finds nothing.

    Tries any ``**bold**`` span first, then single-word bullet lines.
    """
    names = [
        match.strip()
        for match in _BOLD.findall(content)
        if 2 < len(match.strip()) < 50 and "these" not in match.lower()
    ]
    if names:
        return dedupe_names(names)

    for line in content.splitlines():
        cleaned = _LOOSE_MARKER.sub("", line.strip()).replace("**", "").strip()
        if (
            2 < len(cleaned) < 30
            and " " not in cleaned
            and "companies" not in cleaned
            and "tools" not in cleaned
        ):
            names.append(cleaned)
    return dedupe_names(names)


async def _ask_for_names(prompt: str) -> str:
    return await query_perplexity(
        [
            {"role": "system", "content": DISCOVERY_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.1,
        top_p=0.9,
    )


async def _discover_names(context: ResearchContext) -> List[str]:
    known = context.known_competitors()
    if known:
        logger.info("[COMP] Using founder-supplied competitors: %s", known)
        names = dedupe_names(known)
        if len(names) < TARGET_NAME_COUNT:
            listed = ", ".join(names)
            prompt = (
                f"List {TARGET_NAME_COUNT - len(names)} companies that compete with "
                f"{listed} in the {context.product} space for {context.target}.\n"
                f"Exclude these companies: {listed}.\n"
                "Return only real company names, not generic descriptions."
            )
            try:
                content = await _ask_for_names(prompt)
            except UpstreamFailure as exc:
                logger.warning("[COMP] Supplemental name query failed: %s", exc)
            else:
                names = dedupe_names(names + extract_competitor_names(content))
        return names

    prompt = (
        f"Find {TARGET_NAME_COUNT} direct competitors for: {context.product}\n"
        f"Target market: {context.target}\n\n"
        "Return only company names that directly compete."
    )
    try:
        content = await _ask_for_names(prompt)
    except UpstreamFailure as exc:
        raise ResearchFailure(f"Competitor discovery failed: {exc}") from exc

    names = extract_competitor_names(content)
    if not names:
        logger.info("[COMP] Strict extraction found nothing — trying loose recovery")
        names = recover_loose_names(content)
    return names


def _detail_prompt(name: str, context: ResearchContext) -> str:
    return (
        f"Research {name} as a competitor to {context.product}:\n"
        f"1. What exactly do they offer that competes with {context.product}?\n"
        f"2. Key features relevant to {context.target}\n"
        "3. Actual pricing (be specific with numbers)\n"
        f"4. Their main advantages (especially for {context.target})\n"
        "5. Their gaps/weaknesses that a startup could exploit\n"
        "6. Who uses them most\n"
        "7. Why would someone choose them vs a new alternative?\n\n"
        "Focus on practical competitive intelligence, not generic company info."
    )


async def _research_one(name: str, context: ResearchContext) -> Optional[Competitor]:
    try:
        content = await query_perplexity(
            [
                {"role": "system", "content": DETAIL_SYSTEM_PROMPT},
                {"role": "user", "content": _detail_prompt(name, context)},
            ],
            temperature=0.2,
            top_p=0.9,
            timeout_service="perplexity_detail",
        )
    except UpstreamFailure as exc:
        logger.warning("[COMP] Failed to get details for %s: %s", name, exc)
        return None
    return parse_competitor_details(name, content)


async def research_competitors_with_perplexity(
    context: ResearchContext,
) -> CompetitorResearchResult:
    """Discover and research competitors for a founder's context.

    Raises
    ------
    ResearchFailure
        Discovery failed or no detailed competitor could be parsed.
    """
    if not get_perplexity_key():
        logger.info("[COMP] No Perplexity key — using mock competitors")
        return get_mock_competitors(context)

    async with async_timer("research_competitors", "PHASE 1 names"):
        names = await _discover_names(context)
    logger.info("[COMP] Final competitor names: %s", names)

    top = names[:MAX_DETAILED]
    additional = names[MAX_DETAILED:TARGET_NAME_COUNT]

    async with async_timer("research_competitors", "PHASE 2 details"):
        results = await asyncio.gather(*(_research_one(name, context) for name in top))
    competitors = [c for c in results if c is not None]

    logger.info(
        "[COMP] %d competitors with details, additional: %s",
        len(competitors),
        ", ".join(additional) or "none",
    )
    if not competitors:
        raise ResearchFailure(
            "Failed to extract competitor information from Perplexity response"
        )

    return CompetitorResearchResult(
        competitors=competitors,
        additional_competitors=additional,
    )
