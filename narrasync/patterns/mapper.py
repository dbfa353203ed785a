"""
Beat-to-pattern classification.

The mapper walks PATTERN_RULES in order and the first rule whose predicate
accepts a beat builds the decision. Every builder validates its props
against the pattern schema, so a decision either comes back valid or the
call raises PatternPropsError. There is no fallback pattern.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from ..models import BeatRole, EvidenceKind, PatternDecision, PatternName, StoryBeat
from ..text import clamp_text
from .schemas import validate_props

METRIC_TOKEN = re.compile(r"\d+[\d.%x]*")
SINGLE_METRIC = re.compile(r"(\d+\s?%|~?\d+\s?(?:weeks?|days?|x))", re.IGNORECASE)
QUOTE = re.compile(r"“(.+?)”|\"(.+?)\"")
LIST_ITEM = re.compile(r"^\s*[-*•]\s*")

MAX_CHART_POINTS = 6
MAX_STATS = 4
MAX_TIMELINE_STEPS = 6
MIN_TIMELINE_STEPS = 3


@dataclass(frozen=True)
class PatternRule:
    """One entry of the rule chain."""

    name: str
    applies: Callable[[StoryBeat], bool]
    build: Callable[[StoryBeat, str], PatternDecision]


def _decision(pattern: PatternName, props: dict[str, Any], fmt: str, rationale: str) -> PatternDecision:
    validated = validate_props(pattern, {"format": fmt, **props})
    return PatternDecision(pattern=pattern, props=validated, rationale=rationale)


def _list_items(text: str) -> list[str]:
    return [LIST_ITEM.sub("", line).strip() for line in text.splitlines() if LIST_ITEM.match(line)]


# ----------------------------------------------------------------------------
# Builders
# ----------------------------------------------------------------------------


def _build_hook(beat: StoryBeat, fmt: str) -> PatternDecision:
    return _decision(
        PatternName.TITLE_SUBHEAD,
        {"title": clamp_text(beat.text.strip(), 80)},
        fmt,
        "Hook beat opens with a title card",
    )


def _build_chart(beat: StoryBeat, fmt: str) -> PatternDecision:
    data = [
        {"label": point.label, "value": point.value}
        for point in beat.series[:MAX_CHART_POINTS]
    ]
    return _decision(
        PatternName.CHART_REVEAL,
        {
            "headline": clamp_text(beat.text.strip(), 80) or "Key Trend",
            "data": data,
            "showValues": True,
        },
        fmt,
        "Data or timeline evidence renders as a chart",
    )


def _build_metric(beat: StoryBeat, fmt: str) -> PatternDecision:
    text = beat.text.strip()
    tokens = METRIC_TOKEN.findall(text)

    if len(tokens) >= 2:
        stats = [
            {"label": f"Stat {i + 1}", "value": token}
            for i, token in enumerate(tokens[:MAX_STATS])
        ]
        return _decision(
            PatternName.STAT_ROW,
            {"headline": "Key Metrics", "stats": stats},
            fmt,
            "Several numeric values share one row",
        )

    match = SINGLE_METRIC.search(text)
    if match:
        value = match.group(1)
        label = " ".join(text.replace(match.group(0), "", 1).split())
    else:
        value = "—"
        label = text
    return _decision(
        PatternName.STAT_HERO,
        {
            "headline": clamp_text(text, 80),
            "statLabel": clamp_text(label, 40) or "Key Metric",
            "statValue": value,
        },
        fmt,
        "Single metric gets a hero stat",
    )


def _build_quote(beat: StoryBeat, fmt: str) -> PatternDecision:
    match = QUOTE.search(beat.text)
    quote = match.group(1) or match.group(2)
    return _decision(
        PatternName.QUOTE_PULL,
        {"quote": clamp_text(quote.strip(), 200)},
        fmt,
        "Quoted text becomes a pull quote",
    )


def _build_timeline(beat: StoryBeat, fmt: str) -> PatternDecision:
    steps = [{"title": clamp_text(item, 60)} for item in _list_items(beat.text)[:MAX_TIMELINE_STEPS]]
    return _decision(
        PatternName.TIMELINE,
        {"headline": "Steps", "steps": steps},
        fmt,
        "Listed steps play as a timeline",
    )


def _build_cta(beat: StoryBeat, fmt: str) -> PatternDecision:
    return _decision(
        PatternName.TITLE_SUBHEAD,
        {"title": clamp_text(beat.text.strip(), 60)},
        fmt,
        "Call to action closes on a title card",
    )


def _build_callout(beat: StoryBeat, fmt: str) -> PatternDecision:
    text = beat.text.strip()
    title = text.split(":")[0].strip() or text
    return _decision(
        PatternName.CALLOUT,
        {
            "title": clamp_text(title, 60),
            "body": clamp_text(text, 200),
            "variant": "default",
        },
        fmt,
        "Default callout",
    )


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule("hook", lambda b: b.role == BeatRole.HOOK, _build_hook),
    PatternRule(
        "chart",
        lambda b: b.role == BeatRole.DATA or b.evidence == EvidenceKind.TIMELINE,
        _build_chart,
    ),
    PatternRule("metric", lambda b: b.evidence == EvidenceKind.METRIC, _build_metric),
    PatternRule("quote", lambda b: QUOTE.search(b.text) is not None, _build_quote),
    PatternRule("list", lambda b: len(_list_items(b.text)) >= MIN_TIMELINE_STEPS, _build_timeline),
    PatternRule("cta", lambda b: b.role == BeatRole.CTA, _build_cta),
    PatternRule("default", lambda b: True, _build_callout),
)


def map_beat_to_pattern(beat: StoryBeat, format: str = "vertical") -> PatternDecision:
    """Classify one beat into a pattern with validated props.

    Args:
        beat: The beat to classify.
        format: Output aspect (vertical, square or horizontal).

    Returns:
        The decision of the first matching rule.

    Raises:
        PatternPropsError: If the built props violate the pattern schema.
    """
    for rule in PATTERN_RULES:
        if rule.applies(beat):
            return rule.build(beat, format)
    raise AssertionError("default rule always applies")


def map_beats(
    beats: Sequence[StoryBeat],
    format: str = "vertical",
    max_workers: Optional[int] = None,
) -> list[PatternDecision]:
    """Map many beats concurrently. Output order matches input order."""
    if not beats:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda beat: map_beat_to_pattern(beat, format), beats))
