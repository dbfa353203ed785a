"""
Prop contracts for the visual patterns.

Each pattern the rendering collaborator knows has one schema here. A
decision is only accepted once its props validate against the schema of
the pattern it names.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..models import PatternName

Format = Literal["vertical", "square", "horizontal"]


class PatternPropsError(ValueError):
    """Props violate the contract of the pattern they were built for."""

    def __init__(self, pattern: PatternName, field: str, constraint: str):
        self.pattern = pattern
        self.field = field
        self.constraint = constraint
        super().__init__(f"{pattern.value}.{field}: {constraint}")


class _Props(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    format: Format = "vertical"


class TitleSubheadProps(_Props):
    title: str = Field(min_length=4, max_length=120)
    subhead: Optional[str] = Field(default=None, min_length=4, max_length=200)


class CalloutPatternProps(_Props):
    headline: Optional[str] = Field(default=None, min_length=4, max_length=160)
    title: str = Field(min_length=2, max_length=80)
    body: str = Field(min_length=4, max_length=400)
    variant: Literal["default", "success", "warning", "error", "info"] = "info"


class StatHeroProps(_Props):
    headline: str = Field(min_length=4, max_length=120)
    stat_label: str = Field(min_length=1, max_length=60)
    stat_value: Union[int, float, str]
    value_format: Optional[Literal["number", "percentage", "currency", "text"]] = None


class ChartDatum(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str
    value: float
    color: Optional[str] = None


class ChartRevealProps(_Props):
    headline: str = Field(min_length=4, max_length=160)
    data: list[ChartDatum] = Field(min_length=2)
    show_values: bool = True


class StatItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str = Field(min_length=1, max_length=40)
    value: Union[int, float, str]


class StatRowProps(_Props):
    headline: Optional[str] = Field(default=None, min_length=4, max_length=120)
    stats: list[StatItem] = Field(min_length=2, max_length=4)


class TimelineStep(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=2, max_length=60)
    body: Optional[str] = Field(default=None, min_length=2, max_length=140)


class TimelineProps(_Props):
    headline: Optional[str] = Field(default=None, min_length=4, max_length=120)
    steps: list[TimelineStep] = Field(min_length=3, max_length=6)


class QuotePullProps(_Props):
    quote: str = Field(min_length=6, max_length=200)
    attribution: Optional[str] = Field(default=None, max_length=80)


PATTERN_SCHEMAS: dict[PatternName, type[_Props]] = {
    PatternName.TITLE_SUBHEAD: TitleSubheadProps,
    PatternName.CALLOUT: CalloutPatternProps,
    PatternName.STAT_HERO: StatHeroProps,
    PatternName.CHART_REVEAL: ChartRevealProps,
    PatternName.STAT_ROW: StatRowProps,
    PatternName.TIMELINE: TimelineProps,
    PatternName.QUOTE_PULL: QuotePullProps,
}


def validate_props(pattern: PatternName, props: dict[str, Any]) -> dict[str, Any]:
    """Validate props against a pattern's schema.

    Args:
        pattern: The pattern the props were built for.
        props: Candidate props (camelCase or snake_case keys).

    Returns:
        The validated props as a camelCase dict, unset optionals omitted.

    Raises:
        PatternPropsError: On the first violated constraint.
    """
    schema = PATTERN_SCHEMAS[pattern]
    try:
        model = schema.model_validate(props)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise PatternPropsError(pattern, field, first["msg"]) from e
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
