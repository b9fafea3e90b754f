"""Text extraction tests — competitor names, market signals, competitor details.

Pure functions, no network.  Inputs mimic the shapes Perplexity actually
returns: bold numbered lists, plain numbered lists, prose with citations.
"""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from launchlens.schemas.competitor_schema import Competitor
from launchlens.services.text_extraction import (
    calculate_pain_level,
    calculate_satisfaction,
    extract_competitor_names,
    extract_concentration,
    extract_funding,
    extract_growth_rate,
    extract_market_size,
    extract_price,
    extract_prices,
    extract_search_volume,
    extract_unmet_needs,
    parse_competitor_details,
    parse_market_value,
)


# ---------------------------------------------------------------------------
# Competitor names
# ---------------------------------------------------------------------------

class TestCompetitorNames:
    def test_bold_numbered_list(self):
        text = (
            "1. **Notion** – all-in-one workspace\n"
            "2. **Obsidian** - local markdown notes\n"
            "3. **Roam Research**: networked thought"
        )
        assert extract_competitor_names(text) == ["Notion", "Obsidian", "Roam Research"]

    def test_plain_numbered_list_skips_generic_lines(self):
        text = (
            "1. Notion - flexible workspace\n"
            "2. Obsidian - markdown knowledge base\n"
            "3. The best tools are listed above"
        )
        assert extract_competitor_names(text) == ["Notion", "Obsidian"]

    def test_companies_like_sentence(self):
        text = "The space is crowded with companies such as Trello, Asana and Todoist."
        assert extract_competitor_names(text) == ["Trello", "Asana", "Todoist"]

    def test_case_insensitive_dedupe_keeps_first(self):
        text = "1. **Notion** - one\n2. **notion** - two\n3. **Coda** - three"
        assert extract_competitor_names(text) == ["Notion", "Coda"]

    def test_nothing_found(self):
        assert extract_competitor_names("No structured content here") == []
        assert extract_competitor_names(None) == []


# ---------------------------------------------------------------------------
# Market signals
# ---------------------------------------------------------------------------

class TestMarketSignals:
    def test_market_size_short_form(self):
        assert extract_market_size("The market is valued at $5.2B in 2024") == "$5.2B"

    def test_market_size_long_form(self):
        assert extract_market_size("a $5.2 billion opportunity") == "$5.2 billion"

    def test_market_size_unknown(self):
        assert extract_market_size("No figures were published.") == "Unknown"

    def test_parse_market_value_units(self):
        assert parse_market_value("$5.2B") == pytest.approx(5200)
        assert parse_market_value("$1.5T") == pytest.approx(1_500_000)
        assert parse_market_value("$300M") == pytest.approx(300)
        assert parse_market_value("USD 2 billion") == pytest.approx(2000)

    def test_parse_market_value_garbage(self):
        assert parse_market_value("Unknown") == 0
        assert parse_market_value("$.B") == 0
        assert parse_market_value(None) == 0

    def test_growth_rate(self):
        assert extract_growth_rate("growing at a 23.5% CAGR through 2030") == "23.5%"
        assert extract_growth_rate("a CAGR of 12% is expected") == "12%"
        assert extract_growth_rate("steady growth") == "Unknown"

    def test_funding(self):
        assert extract_funding("Startups raised $50M last year") == "raised $50M"
        assert extract_funding("Most teams are bootstrapped") == "Bootstrapped"
        assert extract_funding("") == "Unknown"

    def test_search_volume(self):
        assert extract_search_volume("about 50K searches per month") == "50K"
        assert extract_search_volume("no data") == "Unknown"

    def test_unmet_needs_skip_boilerplate_and_cap_at_three(self):
        text = (
            "Here are the main pain points:\n"
            "1. **Syncing across devices is slow**\n"
            "- Too expensive for small teams\n"
            "- ok\n"
            "- Missing offline mode for mobile users\n"
            "- Fourth need that is long enough"
        )
        assert extract_unmet_needs(text) == [
            "Syncing across devices is slow",
            "Too expensive for small teams",
            "Missing offline mode for mobile users",
        ]

    def test_pain_level_counts_keywords(self):
        assert calculate_pain_level("Users are frustrated: it's slow and expensive") == 8
        assert calculate_pain_level("") == 5

    def test_pain_level_capped(self):
        text = (
            "frustrating difficult pain problem issue complain lack missing "
            "need want wish expensive slow"
        )
        assert calculate_pain_level(text) == 10

    def test_satisfaction(self):
        assert calculate_satisfaction("Customers love it and are happy but support is poor") == 6
        assert calculate_satisfaction("") == 5
        assert calculate_satisfaction("frustrated unhappy poor bad terrible negative") == 1

    def test_concentration(self):
        assert extract_concentration("The market is fragmented with many players") == "Fragmented"
        assert extract_concentration("One dominant incumbent") == "Highly concentrated"
        assert extract_concentration("An oligopoly of three vendors") == "Moderately concentrated"
        assert extract_concentration("") == "Unknown"


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------

class TestPrices:
    def test_extract_price(self):
        assert extract_price("$29/month") == 29
        assert extract_price("Free forever") == 0

    def test_extract_prices_across_competitors(self):
        competitors = [
            Competitor(name="Alpha", pricing="$10-$20/month"),
            Competitor(name="Bravo", pricing="$0 trial, then $35"),
            Competitor(name="Charlie", pricing="unknown"),
        ]
        assert extract_prices(competitors) == [10, 20, 35]


# ---------------------------------------------------------------------------
# Competitor details
# ---------------------------------------------------------------------------

NOTION_REPLY = """**Notion** is a all-in-one workspace for notes and docs. [1]
Used by: startups and small teams
Pricing: Free, $8/month, $15/month
Features:
- Databases and wikis
- Real-time collaboration
Strengths:
- Very flexible building blocks
- Large template gallery
Weaknesses:
- Steep learning curve for new users
- Slow with large pages
"""


class TestCompetitorDetails:
    def test_labelled_sections(self):
        comp = parse_competitor_details("**Notion**", NOTION_REPLY)

        assert comp.name == "Notion"
        assert "workspace" in comp.description
        assert comp.pricing == "Free, $8/month, $15/month"
        assert comp.features == ["Databases and wikis", "Real-time collaboration"]
        assert comp.strengths == ["Very flexible building blocks", "Large template gallery"]
        assert comp.weaknesses == ["Steep learning curve for new users", "Slow with large pages"]
        assert comp.target_market == "startups and small teams"

    def test_keyword_defaults_without_sections(self):
        comp = parse_competitor_details("Acme", "A popular and easy tool, but expensive.")

        assert comp.description == "A popular and easy tool, but expensive."
        assert comp.strengths == ["Popular and trusted", "Easy to use"]
        assert comp.weaknesses == ["Can be expensive"]
        assert comp.pricing == "unknown"
        assert comp.target_market == "General market"
        assert comp.features == []

    def test_inline_dash_separated_section(self):
        reply = (
            "Acme is a tool.\n"
            "Strengths: Fast sync engine - Cheap team plans - Great mobile UI\n"
            "Weaknesses: AI-powered search is slow – No offline mode\n"
        )
        comp = parse_competitor_details("Acme", reply)

        assert comp.strengths == ["Fast sync engine", "Cheap team plans", "Great mobile UI"]
        assert comp.weaknesses == ["AI-powered search is slow", "No offline mode"]

    def test_one_character_name_replaced(self):
        assert parse_competitor_details("X", "X is a tool.").name == "Unknown Competitor"

    def test_list_bounds(self):
        reply = (
            "Strengths:\n"
            "- First strength item\n- Second strength item\n- Third strength item\n"
            "- Fourth strength item\n- Fifth strength item\n"
        )
        comp = parse_competitor_details("X" * 80, reply)

        assert len(comp.name) == 50
        assert len(comp.strengths) == 3

    def test_empty_reply(self):
        comp = parse_competitor_details("", None)
        assert comp.name == "Unknown Competitor"
        assert comp.description == ""
