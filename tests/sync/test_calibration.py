"""Tests for storyboard calibration, overrides and overhead."""

import json

import pytest

from narrasync.config import GapConfig
from narrasync.sync import (
    CalibrationError,
    apply_timings,
    calibrate_storyboard,
    compute_overhead,
    find_beat,
    load_timing_overrides,
    reconcile_overhead,
)


def durations(doc: dict) -> list:
    return [beat["durationSec"] for scene in doc["scenes"] for beat in scene["beats"]]


class TestCalibrateStoryboard:
    """Tests for autotime calibration."""

    def test_char_rate_from_reference_beat(self, sample_storyboard):
        result = calibrate_storyboard(sample_storyboard, 1, 1)

        # 100 chars in 10 s: 50 chars -> 5 s, 25 -> ceil(2.5), 101 -> ceil(10.1)
        assert durations(sample_storyboard) == [10, 5, 3, 11, 1, 20]
        assert result.rate == 10
        assert result.beats_timed == 6
        assert result.beats_total_sec == 50

    def test_empty_voiceover_falls_back_to_beat_text(self, sample_storyboard):
        calibrate_storyboard(sample_storyboard, 1, 1)
        # "Route" is 5 chars -> 0.5 s, floored at 1 s
        assert find_beat(sample_storyboard, 3, 2)["durationSec"] == 1

    def test_duration_override(self, sample_storyboard):
        result = calibrate_storyboard(sample_storyboard, 1, 1, duration_override=20)
        assert result.base_sec == 20
        assert durations(sample_storyboard)[:2] == [20, 10]

    def test_reference_duration_from_beat(self, sample_storyboard):
        # Scene 1 beat 2: 50 chars in 3 s
        calibrate_storyboard(sample_storyboard, 1, 2)
        assert durations(sample_storyboard)[0] == 6

    def test_default_reference_duration(self, sample_storyboard):
        del sample_storyboard["scenes"][0]["beats"][0]["durationSec"]
        result = calibrate_storyboard(sample_storyboard, 1, 1)
        assert result.base_sec == 10

    def test_word_unit(self, sample_storyboard):
        result = calibrate_storyboard(sample_storyboard, 1, 1, unit="words")
        assert durations(sample_storyboard) == [10] * 6
        assert result.unit == "words"

    def test_beat_field(self, sample_storyboard):
        # "Open on alerts" is 14 chars in 10 s; "Prove it" is 8 chars
        calibrate_storyboard(sample_storyboard, 1, 1, field="beat")
        assert find_beat(sample_storyboard, 3, 3)["durationSec"] == 6

    def test_does_not_read_other_durations(self, sample_storyboard):
        sample_storyboard["scenes"][2]["beats"][0]["durationSec"] = 999
        calibrate_storyboard(sample_storyboard, 1, 1)
        assert find_beat(sample_storyboard, 3, 1)["durationSec"] == 11

    def test_reconciles_overhead(self, sample_storyboard):
        result = calibrate_storyboard(sample_storyboard, 1, 1)
        assert result.overhead.total_overhead_sec == 9.5
        assert result.estimated_total_sec == 59.5
        assert sample_storyboard["estimatedTotalDurationSec"] == 59.5
        assert sample_storyboard["meta"]["overhead"]["beatGapsCount"] == 3

    def test_preserves_unknown_fields(self, sample_storyboard):
        calibrate_storyboard(sample_storyboard, 1, 1)
        assert find_beat(sample_storyboard, 3, 3)["customField"] == "kept"

    def test_missing_reference_beat(self, sample_storyboard):
        with pytest.raises(CalibrationError, match="scene 9, beat 1"):
            calibrate_storyboard(sample_storyboard, 9, 1)
        with pytest.raises(CalibrationError):
            calibrate_storyboard(sample_storyboard, 1, 3)

    def test_empty_reference_text(self, sample_storyboard):
        sample_storyboard["scenes"][0]["beats"][0].update({"beat": "", "voiceover": ""})
        with pytest.raises(CalibrationError, match="no voiceover text"):
            calibrate_storyboard(sample_storyboard, 1, 1)

    @pytest.mark.parametrize("override", [0, -5, float("nan")])
    def test_non_positive_duration(self, sample_storyboard, override):
        with pytest.raises(CalibrationError, match="must be positive"):
            calibrate_storyboard(sample_storyboard, 1, 1, duration_override=override)

    def test_unknown_unit_and_field(self, sample_storyboard):
        with pytest.raises(CalibrationError, match="Unknown unit"):
            calibrate_storyboard(sample_storyboard, unit="syllables")
        with pytest.raises(CalibrationError, match="Unknown field"):
            calibrate_storyboard(sample_storyboard, field="notes")

    def test_to_dict(self, sample_storyboard):
        data = calibrate_storyboard(sample_storyboard, 1, 1).to_dict()
        assert data["estimatedTotalDurationSec"] == 59.5
        assert data["overhead"]["totalOverheadSec"] == 9.5


class TestComputeOverhead:
    """Tests for gap accounting."""

    def test_counts_with_acts(self, sample_storyboard):
        overhead = compute_overhead(sample_storyboard)
        assert (overhead.beat_gaps_count, overhead.scene_gaps_count, overhead.act_gaps_count) == (3, 1, 1)
        assert overhead.beat_gaps_total_sec == 4.5
        assert overhead.scene_gaps_total_sec == 2.0
        assert overhead.act_gaps_total_sec == 3.0
        assert overhead.total_overhead_sec == 9.5

    @pytest.mark.parametrize("acts", [[{"label": "Only", "scenes": [1, 2, 3]}], [{"label": "Only"}]])
    def test_single_act(self, acts):
        doc = {
            "acts": acts,
            "scenes": [
                {"sceneNumber": n, "beats": [{"beat": "b"}] * count}
                for n, count in ((1, 2), (2, 1), (3, 3))
            ],
        }
        overhead = compute_overhead(doc, GapConfig(beat_gap_sec=1.5, scene_gap_sec=2.0, act_gap_sec=3.0))
        assert (overhead.beat_gaps_count, overhead.scene_gaps_count, overhead.act_gaps_count) == (3, 2, 0)
        assert overhead.total_overhead_sec == 3 * 1.5 + 2 * 2.0

    def test_counts_without_acts(self, sample_storyboard):
        del sample_storyboard["acts"]
        overhead = compute_overhead(sample_storyboard)
        assert (overhead.beat_gaps_count, overhead.scene_gaps_count, overhead.act_gaps_count) == (3, 2, 0)
        assert overhead.total_overhead_sec == 8.5

    def test_acts_without_scene_lists_form_one_run(self, sample_storyboard):
        del sample_storyboard["acts"][1]["scenes"]
        overhead = compute_overhead(sample_storyboard)
        assert overhead.scene_gaps_count == 2
        assert overhead.act_gaps_count == 1

    def test_custom_gaps(self, sample_storyboard):
        gaps = GapConfig(beat_gap_sec=1.0, scene_gap_sec=0.0, act_gap_sec=0.0)
        assert compute_overhead(sample_storyboard, gaps).total_overhead_sec == 3.0

    def test_empty_storyboard(self):
        overhead = compute_overhead({"scenes": []})
        assert overhead.total_overhead_sec == 0

    def test_reconcile_writes_meta(self, sample_storyboard):
        reconcile_overhead(sample_storyboard)
        # Beats already timed: 10 + 3 = 13 s
        assert sample_storyboard["estimatedTotalDurationSec"] == 22.5
        assert sample_storyboard["meta"]["overhead"]["actGapsTotalSec"] == 3.0


class TestApplyTimings:
    """Tests for explicit duration overrides."""

    def test_sets_duration_and_reconciles(self, sample_storyboard):
        applied = apply_timings(sample_storyboard, [(2, 1, 8.0)])
        assert applied == 1
        assert find_beat(sample_storyboard, 2, 1)["durationSec"] == 8
        assert sample_storyboard["estimatedTotalDurationSec"] == 30.5

    def test_keeps_fractional_seconds(self, sample_storyboard):
        apply_timings(sample_storyboard, [(1, 2, 2.25)])
        assert find_beat(sample_storyboard, 1, 2)["durationSec"] == 2.25

    def test_unknown_beat_strict(self, sample_storyboard):
        with pytest.raises(CalibrationError):
            apply_timings(sample_storyboard, [(5, 1, 3.0)])

    def test_unknown_beat_skipped_when_lenient(self, sample_storyboard):
        assert apply_timings(sample_storyboard, [(5, 1, 3.0), (1, 1, 4.0)], strict=False) == 1

    def test_rejects_non_positive(self, sample_storyboard):
        with pytest.raises(CalibrationError, match="must be positive"):
            apply_timings(sample_storyboard, [(1, 1, 0)])


class TestLoadTimingOverrides:
    """Tests for reading override files."""

    def test_loads_triples(self, tmp_path):
        path = tmp_path / "timings.json"
        path.write_text(json.dumps({"beats": [{"scene": 1, "beat": 2, "durationSec": 4.5}]}))
        assert load_timing_overrides(path) == [(1, 2, 4.5)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_timing_overrides(tmp_path / "none.json")

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "timings.json"
        path.write_text(json.dumps({"beats": [{"scene": 1}]}))
        with pytest.raises(CalibrationError, match="Malformed"):
            load_timing_overrides(path)

    def test_non_object(self, tmp_path):
        path = tmp_path / "timings.json"
        path.write_text("[]")
        with pytest.raises(CalibrationError):
            load_timing_overrides(path)
