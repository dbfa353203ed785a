"""Insights object consumed by the narrative brief generator."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _InsightPart(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Challenge(_InsightPart):
    description: Optional[str] = None
    cause: Optional[str] = None
    impact: Optional[str] = None


class Solution(_InsightPart):
    approach: Optional[str] = None
    mechanism: Optional[str] = None
    outcome: Optional[str] = None


class Statistic(_InsightPart):
    value: Optional[Union[str, float]] = None
    context: Optional[str] = None


class CaseStudy(_InsightPart):
    company: Optional[str] = None
    summary: Optional[str] = None


class KeyMetric(_InsightPart):
    improvement: Optional[Union[str, float]] = None
    label: Optional[str] = None


class Insights(_InsightPart):
    """
    Problem / solution / proof substructures extracted from source content.

    Every part may be absent; the brief generator substitutes conservative
    defaults. Alternate key names used by upstream extractors are accepted
    (e.g. ``painPoints`` for ``challenges``).
    """

    challenges: list[Challenge] = Field(
        default_factory=list,
        validation_alias=AliasChoices("challenges", "painPoints"),
    )
    solutions: list[Solution] = Field(
        default_factory=list,
        validation_alias=AliasChoices("solutions", "recommendations"),
    )
    statistics: list[Statistic] = Field(
        default_factory=list,
        validation_alias=AliasChoices("statistics", "metrics"),
    )
    case_studies: list[CaseStudy] = Field(
        default_factory=list,
        validation_alias=AliasChoices("caseStudies", "case_studies", "examples"),
    )
    key_metrics: list[KeyMetric] = Field(
        default_factory=list,
        validation_alias=AliasChoices("keyMetrics", "key_metrics"),
    )
    audience_level: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("audienceLevel", "audience_level", "complexity"),
    )


def load_insights(path: Path | str) -> Insights:
    """Load an insights JSON file.

    Metadata written alongside cached insights (``extractedAt``, ``model``)
    is ignored.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Insights file not found: {path}")

    with open(path) as f:
        data = json.load(f)

    return Insights.model_validate(data)
