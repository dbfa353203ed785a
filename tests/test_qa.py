"""Tests for render plan preflight checks."""

import pytest

from narrasync.models import PatternName, RenderPlan, RenderScene
from narrasync.qa import qa_preflight
from narrasync.qa.preflight import estimate_vo_seconds

VO = "So this is a perfectly ordinary voice over line for the scene."


def plan_of(*scenes: RenderScene) -> RenderPlan:
    return RenderPlan(scenes=list(scenes))


def scene(pattern: PatternName, props: dict, voiceover: str = VO) -> RenderScene:
    return RenderScene(
        scene_id="s",
        pattern=pattern,
        props=props,
        duration_frames=90,
        voiceover=voiceover,
    )


def codes(plan: RenderPlan, **kwargs) -> list[str]:
    return [issue.code for issue in qa_preflight(plan, **kwargs).issues]


class TestEstimateVoSeconds:
    def test_words_per_second(self):
        assert estimate_vo_seconds("one two three four five six") == 1.25
        assert estimate_vo_seconds("") == 0


class TestQAPreflight:
    """Tests for qa_preflight."""

    def test_clean_plan(self):
        report = qa_preflight(plan_of(scene(PatternName.TITLE_SUBHEAD, {"title": "A proper title"})))
        assert report.ok
        assert report.issues == []

    def test_short_vo_warns(self):
        report = qa_preflight(plan_of(scene(PatternName.TITLE_SUBHEAD, {"title": "A proper title"}, "Hi.")))
        assert [i.code for i in report.issues] == ["vo_short"]
        assert report.ok

    def test_long_vo_is_error(self):
        long_vo = " ".join(["word"] * 60)
        report = qa_preflight(plan_of(scene(PatternName.TITLE_SUBHEAD, {"title": "A proper title"}, long_vo)))
        assert [i.code for i in report.errors] == ["vo_long"]
        assert not report.ok

    def test_title_checks(self):
        assert codes(plan_of(scene(PatternName.TITLE_SUBHEAD, {"title": "Short"}))) == ["title_missing"]
        assert codes(plan_of(scene(PatternName.TITLE_SUBHEAD, {"title": "x" * 121}))) == ["title_long"]

    def test_callout_checks(self):
        assert codes(plan_of(scene(PatternName.CALLOUT, {"title": "", "body": ""}))) == [
            "callout_title_missing",
            "callout_body_missing",
        ]
        assert codes(plan_of(scene(PatternName.CALLOUT, {"title": "T", "body": "b" * 241}))) == [
            "callout_body_long"
        ]

    def test_chart_checks(self):
        one_bar = {"data": [{"label": "Q1", "value": 1}]}
        assert codes(plan_of(scene(PatternName.CHART_REVEAL, one_bar))) == ["chart_density"]

        long_label = {"data": [{"label": "Q1", "value": 1}, {"label": "x" * 19, "value": 2}]}
        report = qa_preflight(plan_of(scene(PatternName.CHART_REVEAL, long_label)))
        assert [i.code for i in report.issues] == ["label_length"]
        assert report.issues[0].severity == "warn"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_stat_missing(self, value):
        props = {"headline": "Metric", "statLabel": "x", "statValue": value}
        assert codes(plan_of(scene(PatternName.STAT_HERO, props))) == ["stat_missing"]

    def test_zero_is_a_stat(self):
        props = {"headline": "Metric", "statLabel": "x", "statValue": 0}
        assert codes(plan_of(scene(PatternName.STAT_HERO, props))) == []

    def test_bridges_are_opt_in(self):
        lines = [
            "This opening line goes right here and sets the scene.",
            "Another line without any bridge phrase at the very start.",
            "Next we look at the fix itself in some detail.",
        ]
        plan = plan_of(*(scene(PatternName.TITLE_SUBHEAD, {"title": "A proper title"}, vo) for vo in lines))
        assert codes(plan) == []
        report = qa_preflight(plan, check_bridges=True)
        assert [(i.scene, i.code) for i in report.issues] == [(2, "vo_no_bridge")]

    def test_scene_numbers_are_one_based(self):
        plan = plan_of(
            scene(PatternName.TITLE_SUBHEAD, {"title": "A proper title"}),
            scene(PatternName.TITLE_SUBHEAD, {"title": "Bad"}),
        )
        report = qa_preflight(plan)
        assert report.issues[0].scene == 2
        assert report.to_dict()["ok"] is False
