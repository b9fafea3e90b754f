"""Competitive analysis tests — offline report, question/truth parsing, intake form."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from unittest.mock import AsyncMock, patch

import pytest

from launchlens.errors import UpstreamFailure
from launchlens.schemas.competitor_schema import Competitor, ResearchContext
from launchlens.services.competitive_analysis import (
    analyze_competition,
    context_questions,
    find_opportunities,
    generate_critical_questions,
    generate_recommendations,
    parse_brutal_truth,
    parse_critical_questions,
    run_competitive_analysis,
)

CHAT = "launchlens.services.competitive_analysis.call_openai_chat"

FORM_BUILDER = ResearchContext(
    product="AI form builder",
    target="Small businesses",
    differentiator="Natural language form creation",
    pricing="$19/month",
    competitors="Typeform, Jotform",
    brutal_mode=True,
)


class TestOfflineReport:
    @pytest.mark.asyncio
    async def test_full_report_without_keys(self):
        analysis = await run_competitive_analysis(FORM_BUILDER)

        assert [c.name for c in analysis.competitors] == [
            "Typeform", "Jotform", "Innovation Challenger",
        ]
        assert "## Market Opportunities" in analysis.insights
        assert "Small businesses" in analysis.insights
        assert analysis.success_rating.score == 65
        assert analysis.success_rating.level == "moderate"
        assert analysis.recommendations[0].title == "Price disruption opportunity"
        assert [o.title for o in analysis.opportunities] == ["Price disruption potential"]
        assert len(analysis.questions_to_ask) == 5
        assert "Typeform" in analysis.questions_to_ask[0].question
        assert analysis.brutal_truth is not None
        assert analysis.brutal_truth.hard_truth.startswith("You have potential")

    @pytest.mark.asyncio
    async def test_brutal_truth_only_on_request(self):
        context = FORM_BUILDER.model_copy(update={"brutal_mode": False})
        analysis = await run_competitive_analysis(context)

        assert analysis.brutal_truth is None
        assert analysis.model_dump(by_alias=True)["brutalTruth"] is None


class TestRules:
    def test_recommendations_for_premium_pricing(self):
        context = ResearchContext(product="CRM", target="Agencies", differentiator="Fast", pricing="$200/month")
        competitors = [
            Competitor(name="Enterprise Suite", pricing="$50/month", target_market="Enterprise"),
            Competitor(name="Other", pricing="$70/month"),
        ]

        titles = [r.title for r in generate_recommendations(context, competitors)]

        assert titles[0] == "Premium positioning required"
        assert "Lead with your differentiator" in titles
        assert titles[-1] == "David vs Goliath positioning"

    def test_opportunities_from_shared_weaknesses(self):
        competitors = [
            Competitor(name="Alpha", weaknesses=["Too expensive", "Complex setup"]),
            Competitor(name="Bravo", weaknesses=["too expensive", "complex setup"]),
        ]
        context = ResearchContext(product="x", target="y")

        titles = [o.title for o in find_opportunities(context, competitors)]

        assert titles[:2] == ["Simplicity gap", "Price disruption"]
        assert "Emerging market" in titles
        assert "Common gap in market" in titles
        assert len(titles) <= 5


class TestCriticalQuestions:
    def test_parse_categories(self):
        text = (
            "1. [DIFFERENTIATION]: Why would anyone switch?\n"
            "[Moat]: What stops a copycat?\n"
            "How will you price this?\n"
            "Not a question"
        )
        questions = parse_critical_questions(text)

        assert [(q.category, q.importance) for q in questions] == [
            ("differentiation", "critical"),
            ("moat", "high"),
            ("general", "high"),
        ]
        assert questions[0].question == "Why would anyone switch?"

    def test_parse_caps_at_seven(self):
        text = "\n".join(f"[customer]: Question {i}?" for i in range(10))
        assert len(parse_critical_questions(text)) == 7

    @pytest.mark.asyncio
    async def test_unparseable_reply_uses_failure_questions(self, openai_key):
        with patch(CHAT, new=AsyncMock(return_value="Nothing useful here")):
            questions = await generate_critical_questions(FORM_BUILDER, [])

        assert questions[0].category == "competition"
        assert "established players" in questions[0].question

    @pytest.mark.asyncio
    async def test_llm_failure_uses_failure_questions(self, openai_key):
        with patch(CHAT, new=AsyncMock(side_effect=UpstreamFailure("OpenAI", "down"))):
            questions = await generate_critical_questions(FORM_BUILDER, [])

        assert len(questions) == 5


class TestBrutalTruth:
    def test_parse_sections(self):
        text = (
            "1. Harsh truths:\n"
            "- Your market is crowded with funded players\n"
            "- Your pricing leaves no margin\n"
            "2. **Hard truth**: Nobody needs another form builder.\n"
            "3. Silver lining: Your niche focus is real.\n"
            "4. Advice: Interview ten agencies this week."
        )
        truth = parse_brutal_truth(text)

        messages = [t.message for t in truth.truths]
        assert "Your market is crowded with funded players" in messages
        assert "Your pricing leaves no margin" in messages
        assert truth.hard_truth == "Nobody needs another form builder."
        assert truth.silver_lining == "Your niche focus is real."
        assert truth.advice == "Interview ten agencies this week."

    def test_parse_defaults(self):
        truth = parse_brutal_truth("")
        assert truth.truths == []
        assert truth.advice == "Talk to 10 potential customers this week."


class TestInsights:
    @pytest.mark.asyncio
    async def test_llm_markdown_unfenced(self, openai_key):
        with patch(CHAT, new=AsyncMock(return_value="```markdown\n## Insights\nGo niche\n```")):
            insights = await analyze_competition(FORM_BUILDER, [])

        assert insights == "## Insights\nGo niche"

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back(self, openai_key):
        with patch(CHAT, new=AsyncMock(side_effect=UpstreamFailure("OpenAI", "down"))):
            insights = await analyze_competition(FORM_BUILDER, [])

        assert insights.startswith("## Market Opportunities")


class TestContextQuestions:
    def test_one_persona(self):
        questions = context_questions(persona_index=2)

        assert [q.id for q in questions] == [
            "product", "target", "differentiator", "pricing", "competitors", "brutalMode",
        ]
        assert questions[0].placeholder == "SaaS tool for social media scheduling"
        assert questions[4].placeholder == "Buffer, Hootsuite, Later"
        assert questions[5].type == "checkbox"
        assert questions[4].required is False

    def test_index_wraps(self):
        assert context_questions(10)[0].placeholder == context_questions(2)[0].placeholder
