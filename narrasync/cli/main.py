"""Main CLI entry point for the narrative synchronization pipeline.

Usage:
    python -m narrasync.cli ir <doc.md>                               # Story IR as JSON
    python -m narrasync.cli brief <insights.json> --arc MMS           # Narrative brief
    python -m narrasync.cli script <brief.json> --budget micro60      # VO script + validation
    python -m narrasync.cli patterns <ir.json> --format square        # Pattern decisions
    python -m narrasync.cli timing <script.json> --provider mock      # Speech timing
    python -m narrasync.cli autotime <storyboard.json> --cal 1 1 17   # Calibrate beat durations
    python -m narrasync.cli align <storyboard.json> --set 2 1 8       # Overrides + overhead
    python -m narrasync.cli plan <doc.md> --output-dir out            # Full render plan

Pipeline workflow:
    1. ir       - Extract beats from source markdown
    2. brief    - Synthesize the narrative brief
    3. script   - Write the word-budgeted voice-over
    4. patterns - Pick a visual pattern per beat
    5. timing   - Synthesize speech and derive timing
    6. plan     - All of the above, producing render_plan.json
"""

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError


def _emit(data, output: str | None) -> None:
    """Write JSON to a file, or to stdout when no output path is given."""
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        print(f"Saved to: {path}", file=sys.stderr)
    else:
        print(text)


def _read_json(path: str):
    with open(path) as f:
        return json.load(f)


def _load_config(args: argparse.Namespace):
    from ..config import load_config

    return load_config(args.config)


def _load_provenance(path: str | None):
    from ..models import Provenance

    if not path:
        return []
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("provenance", [])
    return [Provenance.model_validate(entry) for entry in data]


def cmd_ir(args: argparse.Namespace) -> int:
    """Extract a story IR from markdown."""
    from ..ingestion import extract_story_ir_from_file

    try:
        ir = extract_story_ir_from_file(args.source)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Extracted {len(ir.beats)} beats", file=sys.stderr)
    _emit(ir.to_dict(), args.output)
    return 0


def cmd_brief(args: argparse.Namespace) -> int:
    """Generate a narrative brief from insights JSON."""
    from ..ingestion import load_insights
    from ..narrative import NarrativeBriefGenerator

    try:
        insights = load_insights(args.insights)
        brief = NarrativeBriefGenerator().generate_brief(insights, args.duration, args.arc)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid brief input: {e}", file=sys.stderr)
        return 1

    _emit(brief.to_dict(), args.output)
    return 0


def cmd_script(args: argparse.Namespace) -> int:
    """Generate and validate a VO script from a brief."""
    from ..models import NarrativeBrief
    from ..script import (
        BudgetExceededError,
        VOScriptGenerator,
        budget_for_duration,
        enforce_budget,
        validate_script,
    )

    config = _load_config(args)
    try:
        brief = NarrativeBrief.model_validate(_read_json(args.brief))
        provenance = _load_provenance(args.provenance)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid input: {e}", file=sys.stderr)
        return 1

    budget = args.budget or budget_for_duration(brief.target_duration_sec)
    generator = VOScriptGenerator(target_wpm=config.timing.target_wpm, verbose=args.verbose)
    script = generator.generate_script(brief, budget, provenance)
    validation = validate_script(script, budget)

    for issue in validation.issues + validation.warnings:
        print(f"Warning: {issue}", file=sys.stderr)

    if args.strict or config.script.strict_budget:
        try:
            enforce_budget(validation)
        except BudgetExceededError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    print(
        f"{len(script.scenes)} scenes, {script.total_words} words "
        f"({'within' if validation.within_budget else 'outside'} {budget})",
        file=sys.stderr,
    )
    _emit({"script": script.to_dict(), "validation": validation.to_dict()}, args.output)
    return 0


def cmd_patterns(args: argparse.Namespace) -> int:
    """Map every beat of a story IR to a pattern."""
    from ..models import StoryIR
    from ..patterns import PatternPropsError, map_beats

    try:
        ir = StoryIR.model_validate(_read_json(args.ir))
        decisions = map_beats(ir.beats, args.format, args.workers)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PatternPropsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid IR: {e}", file=sys.stderr)
        return 1

    _emit([d.to_dict() for d in decisions], args.output)
    return 0


def cmd_timing(args: argparse.Namespace) -> int:
    """Synthesize a script and print its timing."""
    from ..audio import SynthesisError, get_tts_provider
    from ..models import VOScript
    from ..timing import TimingCache, TimingExtractor

    config = _load_config(args)
    if args.provider:
        config.tts.provider = args.provider
    if args.cache_dir:
        config.timing.cache_dir = args.cache_dir

    try:
        data = _read_json(args.script)
        script = VOScript.model_validate(data.get("script", data) if isinstance(data, dict) else data)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid script: {e}", file=sys.stderr)
        return 1

    extractor = TimingExtractor(
        provider=get_tts_provider(config),
        cache=TimingCache(config.timing.cache_dir, verbose=args.verbose),
        config=config.timing,
        voice=config.tts.voice_id,
        speed=config.tts.speed,
        verbose=args.verbose,
    )
    try:
        timed = extractor.generate_with_timing(script, timeout=config.tts.timeout_seconds)
    except SynthesisError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.audio_out:
        Path(args.audio_out).parent.mkdir(parents=True, exist_ok=True)
        Path(args.audio_out).write_bytes(timed.audio)
        print(f"Audio saved to: {args.audio_out}", file=sys.stderr)

    result = timed.result
    print(
        f"Total {result.total_duration_ms} ms, cache {'hit' if result.cache_hit else 'miss'} ({result.cache_key})",
        file=sys.stderr,
    )
    _emit(result.to_dict(), args.output)
    return 0


def _gaps_from_args(args: argparse.Namespace, config):
    updates = {
        "beat_gap_sec": args.beat_gap,
        "scene_gap_sec": args.scene_gap,
        "act_gap_sec": args.act_gap,
    }
    return config.gaps.model_copy(update={k: v for k, v in updates.items() if v is not None})


def cmd_autotime(args: argparse.Namespace) -> int:
    """Retime every storyboard beat from one calibration beat."""
    from ..storyboard import load_storyboard, save_storyboard
    from ..sync import CalibrationError, calibrate_storyboard

    config = _load_config(args)
    cal = args.cal or [1, 1]
    if len(cal) not in (2, 3):
        print("Error: --cal takes SCENE BEAT [SECONDS]", file=sys.stderr)
        return 1

    try:
        scene_number, beat_number = int(cal[0]), int(cal[1])
        override = float(cal[2]) if len(cal) == 3 else None
        doc = load_storyboard(args.storyboard)
        result = calibrate_storyboard(
            doc,
            scene_number=scene_number,
            beat_number=beat_number,
            duration_override=override,
            unit=args.unit,
            field=args.field,
            gaps=_gaps_from_args(args, config),
        )
        save_storyboard(doc, args.storyboard)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except CalibrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: malformed calibration input: {e}", file=sys.stderr)
        return 1

    rate_unit = "cps" if result.unit == "chars" else "wps"
    print(f"Auto-timed {result.beats_timed} beats using {result.unit} and field={result.field}.")
    print(
        f"Calibration: scene {result.scene_number}, beat {result.beat_number}, "
        f"duration {result.base_sec:g}s -> {result.rate:.2f} {rate_unit}"
    )
    print(f"Aligned total: {result.estimated_total_sec:g}s")
    return 0


def cmd_align(args: argparse.Namespace) -> int:
    """Apply timing overrides (optional) and reconcile storyboard overhead."""
    from ..storyboard import load_storyboard, save_storyboard
    from ..sync import CalibrationError, apply_timings, load_timing_overrides, reconcile_overhead

    config = _load_config(args)
    gaps = _gaps_from_args(args, config)

    try:
        doc = load_storyboard(args.storyboard)
        if args.set:
            scene, beat, seconds = args.set
            applied = apply_timings(doc, [(int(scene), int(beat), float(seconds))], gaps, strict=True)
            print(f"Set scene {scene} beat {beat} = {seconds}s")
        elif args.timings:
            applied = apply_timings(doc, load_timing_overrides(args.timings), gaps, strict=False)
            print(f"Applied {applied} timing overrides")
        else:
            reconcile_overhead(doc, gaps)
        save_storyboard(doc, args.storyboard)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except CalibrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: malformed input: {e}", file=sys.stderr)
        return 1

    overhead = doc["meta"]["overhead"]
    print(
        f"Overhead: {overhead['totalOverheadSec']}s, "
        f"aligned total: {doc['estimatedTotalDurationSec']}s"
    )
    print(f"Updated: {args.storyboard}")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    """Run the full pipeline and write the render plan."""
    from ..audio import SynthesisError
    from ..ingestion import load_insights
    from ..patterns import PatternPropsError
    from ..pipeline import NarrativePipeline
    from ..script import BudgetExceededError

    config = _load_config(args)
    if args.provider:
        config.tts.provider = args.provider
    if args.strict:
        config.script.strict_budget = True

    try:
        insights = load_insights(args.insights) if args.insights else None
        provenance = _load_provenance(args.provenance)
        pipeline = NarrativePipeline(config, output_dir=args.output_dir, verbose=args.verbose)
        result = pipeline.run_file(
            args.source,
            insights=insights,
            provenance=provenance,
            arc=args.arc,
            target_duration=args.duration,
            format=args.format,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (BudgetExceededError, PatternPropsError, SynthesisError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid input: {e}", file=sys.stderr)
        return 1

    for issue in result.qa.issues:
        print(f"QA [{issue.severity}] scene {issue.scene} {issue.code}: {issue.message}", file=sys.stderr)

    if result.plan_path is None:
        _emit(result.plan.to_dict(), None)
    else:
        print(f"Render plan saved to: {result.plan_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from ..models import Arc
    from ..script import WORD_BUDGETS

    parser = argparse.ArgumentParser(
        description="Narrative Synchronization Pipeline CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to config.yaml (default: ./config.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print progress messages")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    arcs = [arc.value for arc in Arc]
    formats = ["vertical", "square", "horizontal"]

    # ir command
    ir_parser = subparsers.add_parser("ir", help="Extract story IR from markdown")
    ir_parser.add_argument("source", help="Markdown source document")
    ir_parser.add_argument("--output", "-o", help="Output JSON path (default: stdout)")
    ir_parser.set_defaults(func=cmd_ir)

    # brief command
    brief_parser = subparsers.add_parser("brief", help="Generate a narrative brief")
    brief_parser.add_argument("insights", help="Insights JSON file")
    brief_parser.add_argument("--arc", choices=arcs, default=Arc.PROBLEM_TURN_PROOF.value)
    brief_parser.add_argument("--duration", type=int, default=60, help="Target seconds (30-90)")
    brief_parser.add_argument("--output", "-o", help="Output JSON path (default: stdout)")
    brief_parser.set_defaults(func=cmd_brief)

    # script command
    script_parser = subparsers.add_parser("script", help="Generate a VO script from a brief")
    script_parser.add_argument("brief", help="Brief JSON file")
    script_parser.add_argument("--budget", choices=list(WORD_BUDGETS), help="Duration class")
    script_parser.add_argument("--provenance", help="Provenance JSON file")
    script_parser.add_argument("--strict", action="store_true", help="Fail on budget violations")
    script_parser.add_argument("--output", "-o", help="Output JSON path (default: stdout)")
    script_parser.set_defaults(func=cmd_script)

    # patterns command
    patterns_parser = subparsers.add_parser("patterns", help="Map IR beats to patterns")
    patterns_parser.add_argument("ir", help="Story IR JSON file")
    patterns_parser.add_argument("--format", choices=formats, default="vertical")
    patterns_parser.add_argument("--workers", type=int, help="Thread pool size")
    patterns_parser.add_argument("--output", "-o", help="Output JSON path (default: stdout)")
    patterns_parser.set_defaults(func=cmd_patterns)

    # timing command
    timing_parser = subparsers.add_parser("timing", help="Synthesize speech and derive timing")
    timing_parser.add_argument("script", help="Script JSON file")
    timing_parser.add_argument("--provider", choices=["openai", "elevenlabs", "mock"])
    timing_parser.add_argument("--cache-dir", help="Timing cache directory")
    timing_parser.add_argument("--audio-out", help="Write the synthesized audio here")
    timing_parser.add_argument("--output", "-o", help="Output JSON path (default: stdout)")
    timing_parser.set_defaults(func=cmd_timing)

    # autotime command
    autotime_parser = subparsers.add_parser("autotime", help="Calibrate storyboard beat durations")
    autotime_parser.add_argument("storyboard", help="Storyboard JSON file")
    autotime_parser.add_argument(
        "--cal",
        nargs="+",
        metavar="N",
        help="Calibration SCENE BEAT [SECONDS] (default: 1 1)",
    )
    autotime_parser.add_argument("--unit", default="chars", help="chars or words")
    autotime_parser.add_argument("--field", default="voiceover", help="voiceover or beat")
    autotime_parser.set_defaults(func=cmd_autotime)

    # align command
    align_parser = subparsers.add_parser("align", help="Apply overrides and reconcile overhead")
    align_parser.add_argument("storyboard", help="Storyboard JSON file")
    align_group = align_parser.add_mutually_exclusive_group()
    align_group.add_argument("--set", nargs=3, metavar=("SCENE", "BEAT", "SECONDS"))
    align_group.add_argument("--timings", help='JSON file {"beats": [{scene, beat, durationSec}]}')
    align_parser.set_defaults(func=cmd_align)

    for gap_parser in (autotime_parser, align_parser):
        gap_parser.add_argument("--beat-gap", type=float, help="Seconds between beats")
        gap_parser.add_argument("--scene-gap", type=float, help="Seconds between scenes")
        gap_parser.add_argument("--act-gap", type=float, help="Seconds between acts")

    # plan command
    plan_parser = subparsers.add_parser("plan", help="Run the full pipeline")
    plan_parser.add_argument("source", help="Markdown source document")
    plan_parser.add_argument("--insights", help="Insights JSON file (default: derived from IR)")
    plan_parser.add_argument("--provenance", help="Provenance JSON file")
    plan_parser.add_argument("--arc", choices=arcs, default=Arc.PROBLEM_TURN_PROOF.value)
    plan_parser.add_argument("--duration", type=int, default=60, help="Target seconds (30-90)")
    plan_parser.add_argument("--format", choices=formats, help="Output format (default: config)")
    plan_parser.add_argument("--provider", choices=["openai", "elevenlabs", "mock"])
    plan_parser.add_argument("--strict", action="store_true", help="Fail on budget violations")
    plan_parser.add_argument("--output-dir", help="Write audio and render_plan.json here")
    plan_parser.set_defaults(func=cmd_plan)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
