from typing import Literal

from pydantic import Field

from .base_schema import ResultModel

Verdict = Literal["YES", "NO", "MAYBE", "UNCLEAR"]


class PivotExample(ResultModel):
    """A real company that pivoted, with a one-line story."""

    company: str
    story: str


class Decision(ResultModel):
    """Final verdict of the quick validation path."""

    verdict: Verdict
    reasons: list[str] = Field(default_factory=list, max_length=3)
    alternatives: list[str] = Field(
        default_factory=list,
        max_length=3,
        description="Only populated when the verdict is not YES",
    )
    pivot_examples: list[PivotExample] = Field(default_factory=list, max_length=3)


class DetailedNarrative(ResultModel):
    """LLM (or fallback) explanation of an already-computed score breakdown."""

    reasons: list[str] = Field(default_factory=list, max_length=3)
    alternatives: list[str] = Field(default_factory=list, max_length=3)
    strategy: str = ""
    risks: list[str] = Field(default_factory=list)
    pivot_examples: list[PivotExample] = Field(default_factory=list, max_length=3)
