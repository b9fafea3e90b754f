from pydantic import Field

from .base_schema import ResultModel


class CompetitorSummary(ResultModel):
    """Lightweight competitor record produced by the quick discovery query."""

    name: str = Field(..., min_length=2, max_length=50)
    description: str = ""


class Competitor(ResultModel):
    """Structured competitor record parsed from one detail response.

    Produced by ``parse_competitor_details``.  List fields are capped so a
    noisy upstream reply can never blow up the downstream report.
    """

    name: str = Field(..., min_length=2, max_length=50)
    description: str = ""
    pricing: str = Field(
        "unknown",
        description="Comma-joined price tokens found in the reply, or 'unknown'",
    )
    strengths: list[str] = Field(default_factory=list, max_length=3)
    weaknesses: list[str] = Field(default_factory=list, max_length=3)
    target_market: str = "General market"
    features: list[str] = Field(default_factory=list, max_length=4)


class CompetitorResearchResult(ResultModel):
    """Output of the two-phase competitor research path."""

    competitors: list[Competitor] = Field(
        ...,
        max_length=3,
        description="Competitors researched in detail, in discovery order",
    )
    additional_competitors: list[str] = Field(
        default_factory=list,
        max_length=3,
        description="Further competitor names, no detail fetched",
    )


class ResearchContext(ResultModel):
    """Founder-supplied context driving competitor research and analysis."""

    product: str = ""
    target: str = ""
    differentiator: str = ""
    pricing: str = ""
    competitors: str = Field(
        "",
        description="Comma-separated competitor names the founder already knows",
    )
    brutal_mode: bool = False

    def known_competitors(self) -> list[str]:
        """Return the founder's competitor names, trimmed, keeping 2-50 characters."""
        names = (c.strip() for c in self.competitors.split(","))
        return [name for name in names if 2 <= len(name) <= 50]
