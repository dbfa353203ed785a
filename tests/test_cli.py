"""Tests for the CLI module."""

import json
from pathlib import Path

import pytest

from narrasync.cli.main import main
from narrasync.config import Config
from narrasync.script import ScriptValidation


@pytest.fixture
def config_path(tmp_path) -> Path:
    """Write a mock-provider config with a temp cache."""
    config = Config()
    config.tts.provider = "mock"
    config.timing.cache_dir = str(tmp_path / "cache")
    path = tmp_path / "config.yaml"
    config.to_yaml(path)
    return path


@pytest.fixture
def source(tmp_path, sample_markdown) -> Path:
    path = tmp_path / "doc.md"
    path.write_text(sample_markdown)
    return path


@pytest.fixture
def storyboard(tmp_path, sample_storyboard) -> Path:
    path = tmp_path / "board" / "storyboard.json"
    path.parent.mkdir()
    path.write_text(json.dumps(sample_storyboard))
    return path


def read(path: Path):
    return json.loads(path.read_text())


class TestMain:
    """Tests for argument handling."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            main(["render"])


class TestCmdIr:
    """Tests for the ir command."""

    def test_writes_ir(self, source, tmp_path):
        out = tmp_path / "ir.json"
        assert main(["ir", str(source), "-o", str(out)]) == 0
        data = read(out)
        assert data["title"] == "Incident Triage Playbook"
        assert len(data["beats"]) == 9

    def test_prints_to_stdout(self, source, capsys):
        assert main(["ir", str(source)]) == 0
        assert json.loads(capsys.readouterr().out)["beats"][0]["role"] == "hook"

    def test_missing_source(self, tmp_path, capsys):
        assert main(["ir", str(tmp_path / "none.md")]) == 1
        assert "Error" in capsys.readouterr().err


class TestCmdBrief:
    """Tests for the brief command."""

    def test_writes_brief(self, tmp_path, sample_insights):
        insights = tmp_path / "insights.json"
        insights.write_text(json.dumps(sample_insights))
        out = tmp_path / "brief.json"

        assert main(["brief", str(insights), "--arc", "MMS", "--duration", "75", "-o", str(out)]) == 0
        data = read(out)
        assert data["arc"] == "MMS"
        assert data["targetDurationSec"] == 75

    def test_rejects_bad_duration(self, tmp_path, sample_insights):
        insights = tmp_path / "insights.json"
        insights.write_text(json.dumps(sample_insights))
        assert main(["brief", str(insights), "--duration", "120"]) == 1


class TestCmdScriptAndTiming:
    """Tests for the script and timing commands."""

    @pytest.fixture
    def brief(self, tmp_path, sample_insights) -> Path:
        insights = tmp_path / "insights.json"
        insights.write_text(json.dumps(sample_insights))
        out = tmp_path / "brief.json"
        main(["brief", str(insights), "-o", str(out)])
        return out

    def test_script(self, config_path, brief, tmp_path):
        out = tmp_path / "script.json"
        args = ["--config", str(config_path), "script", str(brief), "--budget", "clip30", "-o", str(out)]
        assert main(args) == 0

        data = read(out)
        assert data["script"]["budget"] == "clip30"
        assert 47 <= data["script"]["totalWords"] <= 55
        assert data["validation"]["valid"] is True

    def test_script_budget_from_duration(self, config_path, brief, tmp_path):
        out = tmp_path / "script.json"
        assert main(["--config", str(config_path), "script", str(brief), "-o", str(out)]) == 0
        assert read(out)["script"]["budget"] == "micro60"

    def test_strict_fails_on_violation(self, config_path, brief, monkeypatch):
        monkeypatch.setattr(
            "narrasync.script.validate_script",
            lambda script, budget: ScriptValidation(budget=budget, total_words=200, over_budget_by=90),
        )
        assert main(["--config", str(config_path), "script", str(brief), "--strict"]) == 1

    def test_advisory_without_strict(self, config_path, brief, monkeypatch, capsys):
        monkeypatch.setattr(
            "narrasync.script.validate_script",
            lambda script, budget: ScriptValidation(budget=budget, total_words=200, over_budget_by=90),
        )
        assert main(["--config", str(config_path), "script", str(brief)]) == 0

    def test_timing(self, config_path, brief, tmp_path):
        script = tmp_path / "script.json"
        main(["--config", str(config_path), "script", str(brief), "-o", str(script)])
        out = tmp_path / "timing.json"
        audio = tmp_path / "audio" / "vo.mp3"

        args = ["--config", str(config_path), "timing", str(script), "--audio-out", str(audio), "-o", str(out)]
        assert main(args) == 0

        data = read(out)
        assert data["cacheHit"] is False
        assert len(data["sceneTimings"]) == 6
        assert audio.read_bytes().startswith(b"ID3MOCK")

        assert main(args) == 0
        assert read(out)["cacheHit"] is True

    def test_timing_bad_script(self, config_path, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"scenes": "nope"}))
        assert main(["--config", str(config_path), "timing", str(bad)]) == 1


class TestCmdPatterns:
    """Tests for the patterns command."""

    def test_patterns(self, source, tmp_path):
        ir = tmp_path / "ir.json"
        main(["ir", str(source), "-o", str(ir)])
        out = tmp_path / "patterns.json"

        assert main(["patterns", str(ir), "--format", "square", "-o", str(out)]) == 0
        decisions = read(out)
        assert len(decisions) == 9
        assert decisions[5]["pattern"] == "ChartReveal"
        assert decisions[5]["props"]["format"] == "square"

    def test_schema_failure(self, tmp_path, capsys):
        ir = tmp_path / "ir.json"
        ir.write_text(json.dumps({"beats": [{"text": "Chart", "role": "data"}]}))
        assert main(["patterns", str(ir)]) == 1
        assert "ChartReveal" in capsys.readouterr().err


class TestCmdAutotime:
    """Tests for the autotime command."""

    def test_calibrates_and_saves(self, storyboard, capsys):
        assert main(["autotime", str(storyboard), "--cal", "1", "1"]) == 0

        doc = read(storyboard)
        assert doc["estimatedTotalDurationSec"] == 59.5
        assert (storyboard.parent / "STORYBOARD.md").exists()
        out = capsys.readouterr().out
        assert "Auto-timed 6 beats using chars and field=voiceover." in out
        assert "10.00 cps" in out

    def test_duration_override(self, storyboard):
        assert main(["autotime", str(storyboard), "--cal", "1", "1", "20"]) == 0
        assert read(storyboard)["scenes"][0]["beats"][1]["durationSec"] == 10

    def test_custom_gaps(self, storyboard):
        args = ["autotime", str(storyboard), "--beat-gap", "0", "--scene-gap", "0", "--act-gap", "0"]
        assert main(args) == 0
        assert read(storyboard)["estimatedTotalDurationSec"] == 50

    def test_bad_calibration_arguments(self, storyboard):
        assert main(["autotime", str(storyboard), "--cal", "1"]) == 1
        assert main(["autotime", str(storyboard), "--cal", "one", "1"]) == 1

    def test_missing_calibration_beat(self, storyboard, capsys):
        assert main(["autotime", str(storyboard), "--cal", "7", "1"]) == 1
        assert "not found" in capsys.readouterr().err


class TestCmdAlign:
    """Tests for the align command."""

    def test_set_single_beat(self, storyboard, capsys):
        assert main(["align", str(storyboard), "--set", "2", "1", "8"]) == 0
        doc = read(storyboard)
        assert doc["scenes"][1]["beats"][0]["durationSec"] == 8
        assert doc["estimatedTotalDurationSec"] == 30.5
        assert "Set scene 2 beat 1 = 8s" in capsys.readouterr().out

    def test_timings_file(self, storyboard, tmp_path, capsys):
        timings = tmp_path / "timings.json"
        timings.write_text(json.dumps({"beats": [{"scene": 1, "beat": 1, "durationSec": 4}]}))
        assert main(["align", str(storyboard), "--timings", str(timings)]) == 0
        assert read(storyboard)["scenes"][0]["beats"][0]["durationSec"] == 4
        assert "Applied 1 timing overrides" in capsys.readouterr().out

    def test_reconcile_only(self, storyboard):
        assert main(["align", str(storyboard)]) == 0
        assert read(storyboard)["meta"]["overhead"]["totalOverheadSec"] == 9.5

    def test_unknown_beat(self, storyboard):
        assert main(["align", str(storyboard), "--set", "9", "1", "8"]) == 1

    def test_missing_storyboard(self, tmp_path):
        assert main(["align", str(tmp_path / "none.json")]) == 1


class TestCmdPlan:
    """Tests for the plan command."""

    def test_writes_plan(self, config_path, source, tmp_path, capsys):
        out = tmp_path / "out"
        assert main(["--config", str(config_path), "plan", str(source), "--output-dir", str(out)]) == 0

        plan = read(out / "render_plan.json")
        assert len(plan["scenes"]) == 6
        assert Path(plan["audioPath"]).exists()
        assert "Render plan saved to" in capsys.readouterr().out

    def test_prints_plan_without_output_dir(self, config_path, source, capsys):
        assert main(["--config", str(config_path), "plan", str(source), "--arc", "MMS"]) == 0
        plan = json.loads(capsys.readouterr().out)
        assert len(plan["scenes"]) == 5

    def test_missing_source(self, config_path, tmp_path):
        assert main(["--config", str(config_path), "plan", str(tmp_path / "none.md")]) == 1
