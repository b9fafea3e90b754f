"""Deterministic fact extraction from free-form LLM / search replies.

Each extractor takes one text blob and returns one structured fact.  Where
several patterns exist they are tried in order and the first hit wins, so
the most specific pattern always goes first.

Nothing in here raises on bad input: upstream text is unpredictable, so
every extractor falls back to a safe default ("Unknown", an empty list or
a neutral number).
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..schemas.competitor_schema import Competitor
from ..schemas.market_schema import UNKNOWN

# ── Bounds ────────────────────────────────────────────────────────────────
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MAX_UNMET_NEEDS = 3
MAX_FEATURES = 4
MAX_STRENGTHS = 3
MAX_WEAKNESSES = 3
MAX_TARGET_MARKET_LENGTH = 100

DEFAULT_TARGET_MARKET = "General market"
DEFAULT_PRICING = "unknown"
BOOTSTRAPPED = "Bootstrapped"

# ── Keyword vocabularies ──────────────────────────────────────────────────
PAIN_KEYWORDS: Tuple[str, ...] = (
    "frustrat", "difficult", "pain", "problem", "issue", "complain",
    "lack", "missing", "need", "want", "wish", "expensive", "slow",
)

POSITIVE_SENTIMENT: Tuple[str, ...] = (
    "satisfied", "happy", "love", "excellent", "great", "positive",
)
NEGATIVE_SENTIMENT: Tuple[str, ...] = (
    "frustrated", "unhappy", "poor", "bad", "terrible", "negative",
)

BOOTSTRAP_KEYWORDS: Tuple[str, ...] = ("bootstrap", "self-funded")

# First matching row wins.
CONCENTRATION_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("monopoly", "dominant"), "Highly concentrated"),
    (("fragmented", "many players"), "Fragmented"),
    (("few leaders", "oligopoly"), "Moderately concentrated"),
)

# Used only when the reply has no labelled strengths/weaknesses section.
DEFAULT_STRENGTH_RULES: Tuple[Tuple[str, str], ...] = (
    ("popular", "Popular and trusted"),
    ("easy", "Easy to use"),
    ("integrat", "Good integrations"),
)
DEFAULT_WEAKNESS_RULES: Tuple[Tuple[str, str], ...] = (
    ("expensive", "Can be expensive"),
    ("complex", "Complex for beginners"),
    ("limited", "Limited features"),
)

BOILERPLATE_LEADINS: Tuple[str, ...] = ("here are", "list of")

# ── Pattern tables (ordered, most specific first) ─────────────────────────
MARKET_SIZE_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\$[\d.]+\s*[BbMm]illion",
        r"\$[\d.]+\s*[TtBbMm]",
        r"USD\s*[\d.]+\s*[BbMm]illion",
        r"market.*?(\$[\d.]+\s*[BbMm])",
        r"TAM.*?(\$[\d.]+\s*[BbMm])",
        r"valued at.*?(\$[\d.]+\s*[BbMm])",
    )
)

GROWTH_RATE_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(\d+\.?\d*)\s*%\s*(?:CAGR|annual growth|growth rate)",
        r"CAGR\s*(?:of\s*)?(\d+\.?\d*)\s*%",
        r"growing\s*(?:at\s*)?(\d+\.?\d*)\s*%",
        r"(\d+\.?\d*)\s*%\s*(?:yearly|annually)",
    )
)

FUNDING_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\$[\d.]+\s*[BbMm]illion\s*(?:in funding|raised)",
        r"raised\s*\$[\d.]+\s*[BbMm]",
        r"funding.*?\$[\d.]+\s*[BbMm]",
        r"\$[\d.]+[BbMm]\s*(?:Series [A-E]|round)",
    )
)

SEARCH_VOLUME_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(\d+[KkMm]?)\s*(?:searches|queries)",
        r"search volume.*?(\d+[KkMm]?)",
    )
)

_MARKET_VALUE = re.compile(r"(?:\$|USD\s*)([\d.]+)\s*([BbMmTt])", re.IGNORECASE)
_UNIT_MULTIPLIERS = {"t": 1_000_000.0, "b": 1_000.0, "m": 1.0}

_DOLLAR_INT = re.compile(r"\$(\d+)")

_BOLD_NUMBERED = re.compile(r"\d+\.\s*\*\*([^*]+)\*\*")
_NAME_DESCRIPTION_SPLIT = re.compile(r"\s+-\s+|\s*[–—]\s*")
_PLAIN_NUMBERED = re.compile(
    r"^\s*\d+\.\s*([A-Z][A-Za-z0-9 &.()]*?)"
    r"(?=\s*[-–—:]|\s+(?:is|offers|provides)\b|\s*$)",
    re.MULTILINE,
)
_GENERIC_LEAD = re.compile(r"^(?:the|best|top|leading|popular|main|these)\b", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_COMPANIES_LIKE = re.compile(
    r"compan(?:y|ies)\s+(?:like|such as|including)\s+([^.]+)", re.IGNORECASE
)
_LIST_SPLIT = re.compile(r",|\sand\s")

_LIST_MARKER = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")
# Spaced dashes only: "AI-powered" stays one item
_SECTION_ITEM_SPLIT = re.compile(r"[\n•]|\s[-–—]\s")
_NAME_MARKUP = re.compile(r"[*_#`]")

_DESCRIPTION_LABEL = re.compile(
    r"\b(?:overview|description|about|is a)\b[:\s]+([^.]+\.)", re.IGNORECASE
)
_FIRST_SENTENCE = re.compile(r"^[^.]+\.")
_PRICE_TOKENS = re.compile(
    r"\$[\d,]+-\$?[\d,]+(?:/\w+)?|\$[\d,]+(?:/\w+)?|\bFreemium\b|\bFree\b",
    re.IGNORECASE,
)
_TARGET_LABEL = re.compile(
    r"\b(?:target(?: market)?|customers?|users?|used by)\b[:\s]+([^.\n]+)",
    re.IGNORECASE,
)

_FEATURE_LABELS = r"features?|capabilities"
_STRENGTH_LABELS = r"strengths?|advantages?|pros"
_WEAKNESS_LABELS = r"weaknesses?|limitations?|cons"
_SECTION_END = (
    r"(?=\n\s*\d+\.|\n\s*(?:"
    + "|".join((_FEATURE_LABELS, _STRENGTH_LABELS, _WEAKNESS_LABELS))
    + r")\b\s*:|\Z)"
)


def _section_pattern(labels: str) -> Pattern[str]:
    return re.compile(
        r"\b(?:" + labels + r")\b[:\s]+(.+?)" + _SECTION_END,
        re.IGNORECASE | re.DOTALL,
    )


FEATURES_SECTION = _section_pattern(_FEATURE_LABELS)
STRENGTHS_SECTION = _section_pattern(_STRENGTH_LABELS)
WEAKNESSES_SECTION = _section_pattern(_WEAKNESS_LABELS)


def _first_match(
    text: str,
    patterns: Iterable[Pattern[str]],
    pick: Callable[[re.Match], str],
) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return pick(match)
    return None


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


# ===================================================================== #
#  Competitor names                                                       #
# ===================================================================== #

def _valid_name(name: str) -> bool:
    return MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH


def _names_from_bold_list(text: str) -> Optional[List[str]]:
    names = []
    for match in _BOLD_NUMBERED.finditer(text):
        name = _NAME_DESCRIPTION_SPLIT.split(match.group(1).strip())[0].strip()
        if _valid_name(name):
            names.append(name)
    return names or None


def _names_from_plain_list(text: str) -> Optional[List[str]]:
    names = []
    for match in _PLAIN_NUMBERED.finditer(text):
        name = _PARENTHETICAL.sub("", match.group(1)).strip()
        if _valid_name(name) and not _GENERIC_LEAD.match(name):
            names.append(name)
    return names or None


def _names_from_sentence(text: str) -> Optional[List[str]]:
    match = _COMPANIES_LIKE.search(text)
    if not match:
        return None
    names = []
    for part in _LIST_SPLIT.split(match.group(1)):
        name = part.strip().replace("*", "").replace('"', "").strip()
        if _valid_name(name):
            names.append(name)
    return names or None


NAME_STRATEGIES: Tuple[Callable[[str], Optional[List[str]]], ...] = (
    _names_from_bold_list,
    _names_from_plain_list,
    _names_from_sentence,
)


def dedupe_names(names: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates, keeping first-appearance order."""
    seen: set[str] = set()
    unique: List[str] = []
    for name in names:
        key = name.lower()
        if key not in seen:
            seen.add(key)
            unique.append(name)
    return unique


def extract_competitor_names(text: Optional[str]) -> List[str]:
    """Pull company names out of a discovery reply.

    Strategies, each tried only when the previous found nothing:
      1. ``1. **Name** – description`` bold numbered entries
      2. ``1. Name - description`` plain numbered entries
      3. "companies like X, Y, and Z" sentences
    """
    text = text or ""
    for strategy in NAME_STRATEGIES:
        names = strategy(text)
        if names:
            return dedupe_names(names)
    return []


# ===================================================================== #
#  Prices                                                                 #
# ===================================================================== #

def extract_price(text: Optional[str]) -> int:
    """First ``$<integer>`` in *text*, 0 when absent."""
    match = _DOLLAR_INT.search(text or "")
    return int(match.group(1)) if match else 0


def extract_prices(competitors: Iterable[Competitor]) -> List[int]:
    """Every positive ``$<integer>`` across all competitors' pricing fields."""
    prices: List[int] = []
    for competitor in competitors:
        for raw in _DOLLAR_INT.findall(competitor.pricing or ""):
            price = int(raw)
            if price > 0:
                prices.append(price)
    return prices


# ===================================================================== #
#  Market signals                                                         #
# ===================================================================== #

def extract_market_size(text: Optional[str]) -> str:
    found = _first_match(text or "", MARKET_SIZE_PATTERNS, lambda m: m.group(0))
    return found or UNKNOWN


def parse_market_value(value: Optional[str]) -> float:
    """Normalize ``"$5.2B"`` style strings to millions of USD.

    T → ×1,000,000, B → ×1,000, M → ×1.  Returns 0 when nothing parses.
    """
    match = _MARKET_VALUE.search(value or "")
    if not match:
        return 0.0
    try:
        number = float(match.group(1))
    except ValueError:
        return 0.0
    return number * _UNIT_MULTIPLIERS[match.group(2).lower()]


def extract_growth_rate(text: Optional[str]) -> str:
    found = _first_match(text or "", GROWTH_RATE_PATTERNS, lambda m: m.group(1) + "%")
    return found or UNKNOWN


def extract_funding(text: Optional[str]) -> str:
    text = text or ""
    found = _first_match(text, FUNDING_PATTERNS, lambda m: m.group(0))
    if found:
        return found
    if _contains_any(text.lower(), BOOTSTRAP_KEYWORDS):
        return BOOTSTRAPPED
    return UNKNOWN


def extract_search_volume(text: Optional[str]) -> str:
    found = _first_match(text or "", SEARCH_VOLUME_PATTERNS, lambda m: m.group(1))
    return found or UNKNOWN


def extract_unmet_needs(text: Optional[str]) -> List[str]:
    """Up to three cleaned reply lines that read like customer needs."""
    needs: List[str] = []
    for line in (text or "").splitlines():
        cleaned = _LIST_MARKER.sub("", line).replace("**", "").strip()
        if not 10 <= len(cleaned) < 100:
            continue
        if _contains_any(cleaned.lower(), BOILERPLATE_LEADINS):
            continue
        needs.append(cleaned)
        if len(needs) == MAX_UNMET_NEEDS:
            break
    return needs


def calculate_pain_level(text: Optional[str]) -> int:
    """5 plus one per pain keyword present, capped at 10."""
    lowered = (text or "").lower()
    hits = sum(1 for keyword in PAIN_KEYWORDS if keyword in lowered)
    return min(10, 5 + hits)


def calculate_satisfaction(text: Optional[str]) -> int:
    """5 plus positive words minus negative words, clamped to [1, 10]."""
    lowered = (text or "").lower()
    score = 5
    score += sum(1 for word in POSITIVE_SENTIMENT if word in lowered)
    score -= sum(1 for word in NEGATIVE_SENTIMENT if word in lowered)
    return max(1, min(10, score))


def extract_concentration(text: Optional[str]) -> str:
    lowered = (text or "").lower()
    for keywords, label in CONCENTRATION_RULES:
        if _contains_any(lowered, keywords):
            return label
    return UNKNOWN


# ===================================================================== #
#  Competitor details                                                     #
# ===================================================================== #

def clean_markup(text: str) -> str:
    """Strip bold/italic markers, ``[n]`` citations, headings and blank lines."""
    text = text.replace("**", "").replace("*", "")
    text = re.sub(r"\[\d+\]", "", text)
    text = text.replace("##", "")
    return re.sub(r"\n\s*\n", "\n", text)


def clean_name(name: str) -> str:
    return _NAME_MARKUP.sub("", name or "").strip()[:MAX_NAME_LENGTH].strip()


def extract_target_market(text: Optional[str]) -> str:
    match = _TARGET_LABEL.search(text or "")
    if not match:
        return DEFAULT_TARGET_MARKET
    target = match.group(1).strip()[:MAX_TARGET_MARKET_LENGTH].strip()
    return target or DEFAULT_TARGET_MARKET


def _extract_description(clean: str) -> str:
    match = _DESCRIPTION_LABEL.search(clean) or _FIRST_SENTENCE.search(clean.strip())
    if not match:
        return ""
    sentence = match.group(1) if match.re is _DESCRIPTION_LABEL else match.group(0)
    return " ".join(sentence.split())


def _extract_pricing(clean: str) -> str:
    tokens = dedupe_names(_PRICE_TOKENS.findall(clean))
    return ", ".join(tokens) if tokens else DEFAULT_PRICING


def _section_items(clean: str, section: Pattern[str], limit: int) -> Optional[List[str]]:
    match = section.search(clean)
    if not match:
        return None
    items: List[str] = []
    for chunk in _SECTION_ITEM_SPLIT.split(match.group(1)):
        item = _LIST_MARKER.sub("", chunk).replace(":", "").strip()
        if len(item) > 5:
            items.append(item)
        if len(items) == limit:
            break
    return items


def _keyword_defaults(lowered: str, rules: Sequence[Tuple[str, str]]) -> List[str]:
    return [label for keyword, label in rules if keyword in lowered]


def parse_competitor_details(name: str, raw_text: Optional[str]) -> Competitor:
    """Build a ``Competitor`` from one free-form research reply."""
    clean = clean_markup(raw_text or "")
    lowered = clean.lower()

    strengths = _section_items(clean, STRENGTHS_SECTION, MAX_STRENGTHS)
    if strengths is None:
        strengths = _keyword_defaults(lowered, DEFAULT_STRENGTH_RULES)
    weaknesses = _section_items(clean, WEAKNESSES_SECTION, MAX_WEAKNESSES)
    if weaknesses is None:
        weaknesses = _keyword_defaults(lowered, DEFAULT_WEAKNESS_RULES)

    cleaned_name = clean_name(name)
    return Competitor(
        name=cleaned_name if _valid_name(cleaned_name) else "Unknown Competitor",
        description=_extract_description(clean),
        pricing=_extract_pricing(clean),
        strengths=strengths[:MAX_STRENGTHS],
        weaknesses=weaknesses[:MAX_WEAKNESSES],
        target_market=extract_target_market(clean),
        features=(_section_items(clean, FEATURES_SECTION, MAX_FEATURES) or [])[:MAX_FEATURES],
    )
