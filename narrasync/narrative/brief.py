"""Narrative brief generation from extracted insights."""

from dataclasses import dataclass

from ..ingestion.insights import CaseStudy, Challenge, Insights, KeyMetric, Solution, Statistic
from ..models import Arc, Audience, BeatRole, EvidenceKind, NarrativeBrief, StoryIR
from ..patterns.mapper import METRIC_TOKEN
from ..text import clamp_text

BRIEF_FIELD_MAX = 120
MAX_PROOF_PILLARS = 3


@dataclass(frozen=True)
class ArcTemplate:
    """Ordered scene roles of an arc and where its turn must land."""

    scenes: tuple[str, ...]
    turn_role: str
    turn_by_percent: float

    @property
    def turn_index(self) -> int:
        return self.scenes.index(self.turn_role)


ARC_TEMPLATES: dict[Arc, ArcTemplate] = {
    Arc.PROBLEM_TURN_PROOF: ArcTemplate(
        scenes=("HOOK", "PROBLEM", "TURN", "APPROACH", "PROOF", "CTA"),
        turn_role="TURN",
        turn_by_percent=0.4,
    ),
    Arc.CASE_LED: ArcTemplate(
        scenes=("HOOK", "OUTCOME", "BACKSTORY", "PROCESS", "RESULT", "CTA"),
        turn_role="OUTCOME",
        turn_by_percent=0.3,
    ),
    Arc.MMS: ArcTemplate(
        scenes=("HOOK", "PROBLEM", "APPROACH", "PROOF", "CTA"),
        turn_role="APPROACH",
        turn_by_percent=0.35,
    ),
}


class NarrativeBriefGenerator:
    """Builds one validated NarrativeBrief per input document.

    Missing insight fields are replaced with conservative defaults, and
    generated sentences are clamped to the brief's field limit, so the
    result always validates. Invalid durations or arcs still raise.
    """

    def generate_brief(
        self,
        insights: Insights | dict | None,
        target_duration: int = 60,
        arc: Arc | str = Arc.PROBLEM_TURN_PROOF,
    ) -> NarrativeBrief:
        """Generate a narrative brief.

        Args:
            insights: Insights model or raw dict; may be None or partial.
            target_duration: Target program length in seconds (30-90).
            arc: Arc template to follow.

        Returns:
            A validated, immutable NarrativeBrief.

        Raises:
            pydantic.ValidationError: If the duration or arc is out of range.
        """
        if insights is None:
            insights = Insights()
        elif isinstance(insights, dict):
            insights = Insights.model_validate(insights)

        challenge = insights.challenges[0] if insights.challenges else Challenge()
        solution = insights.solutions[0] if insights.solutions else Solution()

        core = challenge.description or "Current approach is inefficient"
        cause = challenge.cause or "Status quo inefficiency"
        impact = challenge.impact or "Wasted time and resources"
        approach = solution.approach or "Automated workflow"
        mechanism = solution.mechanism or "Smart routing"
        outcome = solution.outcome or "Improved efficiency"

        return NarrativeBrief.model_validate(
            {
                "controllingIdea": _field(f"{approach} turns {_lower(core)} into {_lower(outcome)}."),
                "audienceChange": _field("Move from reactive firefighting to proactive impact management."),
                "antagonist": _field(cause),
                "stakes": _field(f"Without change, {_lower(impact)} continues to compound."),
                "promise": _field(f"With {_lower(approach)}, achieve {_lower(outcome)} systematically."),
                "proofPillars": _proof_pillars(
                    insights.statistics, insights.case_studies, insights.key_metrics
                ),
                "nextStep": _field(f"Start with a {_lower(mechanism)} assessment."),
                "arc": arc,
                "targetDurationSec": target_duration,
                "audience": _audience(insights.audience_level),
            }
        )


def _field(text: str) -> str:
    return clamp_text(" ".join(text.split()), BRIEF_FIELD_MAX)


def _lower(text: str) -> str:
    """Lower-case the first letter unless the word looks like an acronym or name."""
    text = text.strip().rstrip(".")
    if len(text) > 1 and text[0].isupper() and not text[1].isupper():
        return text[0].lower() + text[1:]
    return text


def _proof_pillars(
    statistics: list[Statistic],
    case_studies: list[CaseStudy],
    key_metrics: list[KeyMetric],
) -> list[str]:
    pillars: list[str] = []

    if statistics and statistics[0].value is not None:
        pillars.append(_field(f"{_format_value(statistics[0].value)} improvement in efficiency"))

    if case_studies and case_studies[0].company:
        pillars.append(_field(f"{case_studies[0].company} success story"))

    if key_metrics and key_metrics[0].improvement is not None:
        pillars.append(_field(f"{_format_value(key_metrics[0].improvement)} measurable gain"))

    return pillars[:MAX_PROOF_PILLARS]


def _format_value(value: str | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _audience(level: str | None) -> Audience:
    if level in ("executive", "high-level", "exec"):
        return Audience.EXEC
    if level in ("technical", "detailed", "advanced"):
        return Audience.TECHNICAL
    return Audience.GENERAL


def insights_from_story_ir(ir: StoryIR) -> Insights:
    """Derive an Insights object from extracted beats.

    Lets markdown-only input flow IR -> brief: problem beats become
    challenges, metric beats become statistics, case studies keep their
    first words as the company name.
    """
    challenges = [
        Challenge(description=beat.text.rstrip("."))
        for beat in ir.beats
        if beat.role == BeatRole.PROBLEM
    ]
    statistics = []
    for beat in ir.beats:
        if beat.evidence != EvidenceKind.METRIC:
            continue
        match = METRIC_TOKEN.search(beat.text)
        if match:
            statistics.append(Statistic(value=match.group(0), context=beat.text))
    case_studies = [
        CaseStudy(company=" ".join(beat.text.split()[:2]).rstrip(".,:;"), summary=beat.text)
        for beat in ir.beats
        if beat.role == BeatRole.CASE_STUDY
    ]
    return Insights(challenges=challenges, statistics=statistics, case_studies=case_studies)
