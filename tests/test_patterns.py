"""Tests for beat-to-pattern mapping and prop schemas."""

import pytest

from narrasync.ingestion import extract_story_ir
from narrasync.models import BeatRole, EvidenceKind, PatternName, SeriesPoint, StoryBeat
from narrasync.patterns import (
    PATTERN_RULES,
    PATTERN_SCHEMAS,
    PatternPropsError,
    map_beat_to_pattern,
    map_beats,
    validate_props,
)


def series(*values: float) -> tuple[SeriesPoint, ...]:
    return tuple(SeriesPoint(label=f"Q{i + 1}", value=v) for i, v in enumerate(values))


class TestPatternRules:
    """Tests for the ordered rule chain."""

    def test_rule_order(self):
        assert [rule.name for rule in PATTERN_RULES] == [
            "hook", "chart", "metric", "quote", "list", "cta", "default",
        ]

    def test_every_pattern_has_a_schema(self):
        assert set(PATTERN_SCHEMAS) == set(PatternName)


class TestMapBeatToPattern:
    """Tests for map_beat_to_pattern."""

    def test_hook_becomes_title(self):
        decision = map_beat_to_pattern(StoryBeat(text="You are not short on data.", role=BeatRole.HOOK))
        assert decision.pattern == PatternName.TITLE_SUBHEAD
        assert decision.props == {"format": "vertical", "title": "You are not short on data."}

    def test_hook_wins_over_metric(self):
        beat = StoryBeat(text="Cut costs by 40%", role=BeatRole.HOOK, evidence=EvidenceKind.METRIC)
        assert map_beat_to_pattern(beat).pattern == PatternName.TITLE_SUBHEAD

    def test_data_beat_becomes_chart(self):
        beat = StoryBeat(text="Resolve time", role=BeatRole.DATA, series=series(48, 36, 22))
        decision = map_beat_to_pattern(beat, "square")
        assert decision.pattern == PatternName.CHART_REVEAL
        assert decision.props["format"] == "square"
        assert decision.props["showValues"] is True
        assert [d["value"] for d in decision.props["data"]] == [48, 36, 22]

    def test_timeline_evidence_becomes_chart(self):
        beat = StoryBeat(text="Adoption", evidence=EvidenceKind.TIMELINE, series=series(1, 2))
        assert map_beat_to_pattern(beat).pattern == PatternName.CHART_REVEAL

    def test_chart_without_series_fails_schema(self):
        beat = StoryBeat(text="Empty chart", role=BeatRole.DATA)
        with pytest.raises(PatternPropsError) as exc_info:
            map_beat_to_pattern(beat)
        assert exc_info.value.pattern == PatternName.CHART_REVEAL
        assert exc_info.value.field == "data"

    def test_single_metric_becomes_stat_hero(self):
        beat = StoryBeat(text="Impact scoring cut resolve time by 30%", evidence=EvidenceKind.METRIC)
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.STAT_HERO
        assert decision.props["statValue"] == "30%"
        assert decision.props["statLabel"] == "Impact scoring cut resolve time by"

    def test_duration_metric(self):
        beat = StoryBeat(text="Teams recovered 3 days per sprint", evidence=EvidenceKind.METRIC)
        decision = map_beat_to_pattern(beat)
        assert decision.props["statValue"] == "3 days"
        assert decision.props["statLabel"] == "Teams recovered per sprint"

    def test_several_metrics_become_stat_row(self):
        beat = StoryBeat(text="Pages fell 40% while uptime rose 2x", evidence=EvidenceKind.METRIC)
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.STAT_ROW
        assert decision.props["stats"] == [
            {"label": "Stat 1", "value": "40%"},
            {"label": "Stat 2", "value": "2x"},
        ]

    def test_quote_becomes_pull_quote(self):
        beat = StoryBeat(text='The CTO said "we finally sleep through the night" after launch')
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.QUOTE_PULL
        assert decision.props["quote"] == "we finally sleep through the night"

    def test_curly_quote(self):
        beat = StoryBeat(text="“Signal beats volume every time”")
        assert map_beat_to_pattern(beat).props["quote"] == "Signal beats volume every time"

    def test_list_becomes_timeline(self):
        beat = StoryBeat(text="Steps:\n- Quantify risk\n- Route by impact\n- Prove savings")
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.TIMELINE
        assert [s["title"] for s in decision.props["steps"]] == [
            "Quantify risk", "Route by impact", "Prove savings",
        ]

    def test_two_items_are_not_a_timeline(self):
        beat = StoryBeat(text="Steps:\n- Quantify risk\n- Route by impact")
        assert map_beat_to_pattern(beat).pattern == PatternName.CALLOUT

    def test_cta_becomes_title(self):
        beat = StoryBeat(text="Book your assessment today.", role=BeatRole.CTA)
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.TITLE_SUBHEAD
        assert decision.props["title"] == "Book your assessment today."

    def test_default_callout(self):
        beat = StoryBeat(text="Context: alert volume doubled last year", role=BeatRole.PROBLEM)
        decision = map_beat_to_pattern(beat)
        assert decision.pattern == PatternName.CALLOUT
        assert decision.props["title"] == "Context"
        assert decision.props["variant"] == "default"

    def test_short_callout_fails_schema(self):
        with pytest.raises(PatternPropsError):
            map_beat_to_pattern(StoryBeat(text="No"))

    def test_long_hook_is_clamped(self):
        decision = map_beat_to_pattern(StoryBeat(text="x" * 150, role=BeatRole.HOOK))
        assert len(decision.props["title"]) == 80


class TestMapBeats:
    """Tests for concurrent mapping."""

    def test_preserves_input_order(self, sample_markdown):
        ir = extract_story_ir(sample_markdown)
        decisions = map_beats(ir.beats, max_workers=4)
        assert [d.pattern for d in decisions] == [
            PatternName.TITLE_SUBHEAD,
            PatternName.CALLOUT,
            PatternName.STAT_HERO,
            PatternName.STAT_HERO,
            PatternName.STAT_HERO,
            PatternName.CHART_REVEAL,
            PatternName.STAT_HERO,
            PatternName.TIMELINE,
            PatternName.TITLE_SUBHEAD,
        ]

    def test_matches_sequential_mapping(self, sample_markdown):
        beats = extract_story_ir(sample_markdown).beats
        assert map_beats(beats, "horizontal") == [map_beat_to_pattern(b, "horizontal") for b in beats]

    def test_empty(self):
        assert map_beats([]) == []


class TestValidateProps:
    """Tests for schema validation."""

    def test_accepts_snake_case_and_returns_camel_case(self):
        props = validate_props(
            PatternName.STAT_HERO,
            {"headline": "Resolve time", "stat_label": "faster", "stat_value": 30},
        )
        assert props == {
            "format": "vertical",
            "headline": "Resolve time",
            "statLabel": "faster",
            "statValue": 30,
        }

    def test_rejects_unknown_prop(self):
        with pytest.raises(PatternPropsError) as exc_info:
            validate_props(PatternName.TITLE_SUBHEAD, {"title": "Long enough", "color": "red"})
        assert exc_info.value.field == "color"

    def test_rejects_unknown_format(self):
        with pytest.raises(PatternPropsError, match="format"):
            validate_props(PatternName.TITLE_SUBHEAD, {"title": "Long enough", "format": "cinema"})

    def test_stat_row_limits(self):
        stats = [{"label": f"S{i}", "value": i} for i in range(5)]
        with pytest.raises(PatternPropsError) as exc_info:
            validate_props(PatternName.STAT_ROW, {"stats": stats})
        assert exc_info.value.field == "stats"

    def test_error_message_names_pattern_and_field(self):
        with pytest.raises(PatternPropsError, match=r"^QuotePull\.quote: "):
            validate_props(PatternName.QUOTE_PULL, {"quote": "hi"})
