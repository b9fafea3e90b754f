"""Market signal analyses backed by Perplexity.

Each analysis issues one query, runs the reply through ``text_extraction``
and caches the result.  Failures never propagate: a missing key, a non-2xx
status or a network error all produce the neutral default record.

Confidence:
  - high   — both key fields resolved
  - medium — a reply was parsed but at least one key field is unknown
  - low    — neutral default, nothing was parsed
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Sequence

from ..errors import MissingCredentialError, UpstreamFailure
from ..schemas.competitor_schema import CompetitorSummary
from ..schemas.market_schema import (
    UNKNOWN,
    CompetitorQualityAnalysis,
    CustomerPainAnalysis,
    MarketSizeAnalysis,
)
from ..timing import async_timer
from . import cache as cache_module
from .cache import TTLCache, normalize_cache_key
from .perplexity_client import query_perplexity
from .text_extraction import (
    calculate_pain_level,
    calculate_satisfaction,
    extract_concentration,
    extract_funding,
    extract_growth_rate,
    extract_market_size,
    extract_search_volume,
    extract_unmet_needs,
)

logger = logging.getLogger(__name__)

MARKET_SIZE_WINDOW = timedelta(days=7)
CUSTOMER_PAIN_WINDOW = timedelta(days=3)
COMPETITOR_QUALITY_WINDOW = timedelta(days=1)

TOP_COMPETITORS = 3


def _store(cache: Optional[TTLCache]) -> TTLCache:
    return cache if cache is not None else cache_module.market_cache


def _confidence(*resolved: bool) -> str:
    return "high" if all(resolved) else "medium"


def _top_names(competitors: Sequence[CompetitorSummary]) -> list[str]:
    return [c.name for c in competitors[:TOP_COMPETITORS]]


async def _ask(step: str, query: str, max_tokens: int) -> Optional[str]:
    """Run one signal query; ``None`` on any upstream problem."""
    try:
        async with async_timer(step, "PERPLEXITY"):
            return await query_perplexity(
                [{"role": "user", "content": query}],
                temperature=0.1,
                max_tokens=max_tokens,
            )
    except MissingCredentialError:
        logger.info("[MARKET] %s skipped — no Perplexity key", step)
    except UpstreamFailure as exc:
        logger.error("[MARKET] %s failed: %s", step, exc)
    return None


# ===================================================================== #
#  Market size                                                            #
# ===================================================================== #

async def analyze_market_size(
    idea: str, *, cache: Optional[TTLCache] = None
) -> MarketSizeAnalysis:
    """TAM, CAGR and recent funding for *idea* (cached 7 days)."""
    store = _store(cache)
    key = "market:" + normalize_cache_key(idea)
    cached = store.get(key, MARKET_SIZE_WINDOW)
    if cached is not None:
        logger.info("[MARKET] Market size cache hit")
        return cached

    query = (
        f"What is the market size, growth rate (CAGR), and recent funding activity for: {idea}\n"
        "Provide specific numbers:\n"
        "- Total addressable market (TAM) in USD\n"
        "- Annual growth rate percentage\n"
        "- Recent funding rounds in this space (last 2 years)\n"
        "Be concise and specific with numbers."
    )
    content = await _ask("analyze_market_size", query, max_tokens=500)
    if content is None:
        return MarketSizeAnalysis()

    market_size = extract_market_size(content)
    growth_rate = extract_growth_rate(content)
    result = MarketSizeAnalysis(
        market_size=market_size,
        growth_rate=growth_rate,
        funding=extract_funding(content),
        confidence=_confidence(market_size != UNKNOWN, growth_rate != UNKNOWN),
        raw_text=content,
    )
    logger.info(
        "[MARKET] size=%s growth=%s funding=%s",
        result.market_size,
        result.growth_rate,
        result.funding,
    )
    store.set(key, result)
    return result


# ===================================================================== #
#  Customer pain                                                          #
# ===================================================================== #

async def analyze_customer_pain(
    idea: str,
    competitors: Sequence[CompetitorSummary] = (),
    *,
    cache: Optional[TTLCache] = None,
) -> CustomerPainAnalysis:
    """Complaints, unmet needs and search demand (cached 3 days per idea).

    The competitor names only shape the query; they are not part of the
    cache key.
    """
    store = _store(cache)
    key = "pain:" + normalize_cache_key(idea)
    cached = store.get(key, CUSTOMER_PAIN_WINDOW)
    if cached is not None:
        logger.info("[MARKET] Customer pain cache hit")
        return cached

    names = ", ".join(_top_names(competitors))
    lines = [f"What are the main customer complaints and unmet needs for {idea}?"]
    if names:
        lines.append(f"Consider existing solutions like {names}.")
    lines += [
        "List:",
        "- Top 3 customer pain points",
        "- Search volume for alternatives",
        "- Common feature requests",
    ]
    content = await _ask("analyze_customer_pain", "\n".join(lines), max_tokens=400)
    if content is None:
        return CustomerPainAnalysis()

    unmet_needs = extract_unmet_needs(content)
    search_volume = extract_search_volume(content)
    result = CustomerPainAnalysis(
        pain_level=calculate_pain_level(content),
        unmet_needs=unmet_needs,
        search_volume=search_volume,
        confidence=_confidence(bool(unmet_needs), search_volume != UNKNOWN),
        raw_text=content,
    )
    logger.info("[MARKET] pain=%d needs=%d", result.pain_level, len(unmet_needs))
    store.set(key, result)
    return result


# ===================================================================== #
#  Competitor quality                                                     #
# ===================================================================== #

async def analyze_competitor_quality(
    competitors: Sequence[CompetitorSummary], *, cache: Optional[TTLCache] = None
) -> CompetitorQualityAnalysis:
    """Funding, satisfaction and concentration of the top competitors.

    Cached for one day under the normalized set of competitor names.
    """
    names = _top_names(competitors)
    if not names:
        return CompetitorQualityAnalysis()

    store = _store(cache)
    key = "quality:" + "|".join(sorted({normalize_cache_key(n) for n in names}))
    cached = store.get(key, COMPETITOR_QUALITY_WINDOW)
    if cached is not None:
        logger.info("[MARKET] Competitor quality cache hit")
        return cached

    query = (
        f"For these companies: {', '.join(names)}\n"
        "Provide:\n"
        "- Average funding raised (in USD)\n"
        "- Customer satisfaction level (general sentiment)\n"
        "- Market share distribution (concentrated or fragmented)"
    )
    content = await _ask("analyze_competitor_quality", query, max_tokens=300)
    if content is None:
        return CompetitorQualityAnalysis()

    avg_funding = extract_funding(content)
    concentration = extract_concentration(content)
    result = CompetitorQualityAnalysis(
        avg_funding=avg_funding,
        satisfaction=calculate_satisfaction(content),
        market_concentration=concentration,
        confidence=_confidence(avg_funding != UNKNOWN, concentration != UNKNOWN),
        raw_text=content,
    )
    logger.info(
        "[MARKET] funding=%s satisfaction=%d concentration=%s",
        result.avg_funding,
        result.satisfaction,
        result.market_concentration,
    )
    store.set(key, result)
    return result
