"""Narrative pipeline orchestrator: source markdown to a timed render plan."""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from rich.console import Console

from ..audio.tts import TTSProvider, get_tts_provider
from ..config import Config, load_config
from ..ingestion import Insights, extract_story_ir
from ..models import (
    Arc,
    BeatRole,
    Cue,
    EvidenceKind,
    NarrativeBrief,
    PatternDecision,
    Provenance,
    RenderPlan,
    RenderScene,
    SceneTiming,
    StoryBeat,
    StoryIR,
    TimingExtractionResult,
    VOScene,
    VOScript,
)
from ..narrative import NarrativeBriefGenerator, insights_from_story_ir
from ..patterns import METRIC_TOKEN, map_beat_to_pattern
from ..qa import QAReport, qa_preflight
from ..script import (
    ScriptValidation,
    VOScriptGenerator,
    budget_for_duration,
    enforce_budget,
    validate_script,
)
from ..sync import (
    AnimationInterval,
    RevealRequest,
    align_to_cues,
    duration_ms_to_frames,
    resolve_reveals,
    validate_concurrent_animations,
)
from ..text import strip_evidence_tokens
from ..timing import TimingCache, TimingExtractor, to_cues

console = Console()

# Normal entrance animation length at 30 fps
ENTRANCE_FRAMES = 18

# Story-IR roles a VO scene may borrow a beat from, by arc role
SCENE_BEAT_ROLES: dict[str, tuple[BeatRole, ...]] = {
    "HOOK": (BeatRole.HOOK,),
    "PROBLEM": (BeatRole.PROBLEM,),
    "BACKSTORY": (BeatRole.PROBLEM,),
    "PROOF": (BeatRole.CASE_STUDY, BeatRole.DATA),
    "RESULT": (BeatRole.CASE_STUDY, BeatRole.DATA),
    "OUTCOME": (BeatRole.CASE_STUDY, BeatRole.DATA),
    "CTA": (BeatRole.CTA,),
}


@dataclass
class PipelineResult:
    """Every intermediate artifact of one pipeline run."""

    ir: StoryIR
    brief: NarrativeBrief
    script: VOScript
    validation: ScriptValidation
    decisions: list[PatternDecision]
    timing: TimingExtractionResult
    plan: RenderPlan
    qa: QAReport
    audio_path: Path | None = None
    plan_path: Path | None = None
    stages_completed: list[str] = field(default_factory=list)


class NarrativePipeline:
    """Run IR -> brief -> script -> patterns + timing -> render plan.

    Pattern mapping and timing extraction are independent of each other;
    the plan combines both per scene.
    """

    def __init__(
        self,
        config: Config | None = None,
        tts_provider: TTSProvider | None = None,
        output_dir: Path | str | None = None,
        verbose: bool = True,
    ):
        """Initialize the pipeline.

        Args:
            config: Configuration object. If None, loads from config.yaml.
            tts_provider: Speech provider. If None, built from config.tts.
            output_dir: Where audio and the plan are written. None writes nothing.
            verbose: Print progress messages.
        """
        self.config = config or load_config()
        self.output_dir = Path(output_dir) if output_dir else None
        self.verbose = verbose

        self.brief_generator = NarrativeBriefGenerator()
        self.script_generator = VOScriptGenerator(target_wpm=self.config.timing.target_wpm, verbose=verbose)
        self.tts = tts_provider or get_tts_provider(self.config)
        self.timing_extractor = TimingExtractor(
            provider=self.tts,
            cache=TimingCache(self.config.timing.cache_dir, verbose=verbose),
            config=self.config.timing,
            voice=self.config.tts.voice_id,
            speed=self.config.tts.speed,
            verbose=verbose,
        )

        self._progress_callback: Callable[[str, float], None] | None = None

    def set_progress_callback(self, callback: Callable[[str, float], None]) -> None:
        """Set a callback receiving (stage_name, progress_percent)."""
        self._progress_callback = callback

    def _report_progress(self, stage: str, progress: float) -> None:
        if self._progress_callback:
            self._progress_callback(stage, progress)
        if self.verbose:
            console.print(f"[dim]{progress:>3.0f}%[/dim] {stage}")

    def run(
        self,
        markdown: str,
        insights: Insights | dict | None = None,
        provenance: Sequence[Provenance] = (),
        arc: Arc | str = Arc.PROBLEM_TURN_PROOF,
        target_duration: int = 60,
        format: str | None = None,
        reveals: dict[str, list[RevealRequest]] | None = None,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PipelineResult:
        """Build a render plan from source markdown.

        Args:
            markdown: Source document.
            insights: Structured insights; derived from the IR when None.
            provenance: Sources for evidence tokens.
            arc: Narrative arc template.
            target_duration: Target runtime in seconds (30-90).
            format: Output format; defaults to config.video.format.
            reveals: Trigger-word reveals per scene id, checked against cues.
            timeout: Synthesis timeout in seconds; defaults to config.
            cancel_event: Cancels synthesis when set.

        Returns:
            PipelineResult with the plan and every intermediate artifact.

        Raises:
            pydantic.ValidationError: Invalid brief inputs.
            BudgetExceededError: Budget violation with script.strict_budget.
            PatternPropsError: A pattern decision failed its schema.
            SynthesisError: Speech synthesis failed or was cancelled.
        """
        fmt = format or self.config.video.format
        fps = self.config.video.fps
        stages: list[str] = []

        self._report_progress("Extracting story IR", 0)
        ir = extract_story_ir(markdown)
        stages.append("ir")

        self._report_progress("Generating narrative brief", 15)
        if insights is None:
            insights = insights_from_story_ir(ir)
        brief = self.brief_generator.generate_brief(insights, target_duration, arc)
        stages.append("brief")

        self._report_progress("Writing voice-over script", 30)
        budget = budget_for_duration(brief.target_duration_sec)
        script = self.script_generator.generate_script(brief, budget, provenance)
        validation = validate_script(script, budget)
        if self.config.script.strict_budget:
            enforce_budget(validation)
        stages.append("script")

        self._report_progress("Mapping patterns", 45)
        decisions = self.decide_patterns(ir, script, fmt)
        stages.append("patterns")

        self._report_progress("Synthesizing speech", 60)
        timed = self.timing_extractor.generate_with_timing(
            script,
            timeout=timeout if timeout is not None else self.config.tts.timeout_seconds,
            cancel_event=cancel_event,
        )
        stages.append("timing")

        self._report_progress("Building render plan", 80)
        plan = self.build_plan(ir, script, decisions, timed.result, fmt, fps)
        plan.warnings.extend(self._validation_warnings(validation))
        if reveals:
            plan.warnings.extend(self._check_reveals(reveals, timed.result, fps))
        qa = qa_preflight(plan)
        stages.append("plan")

        audio_path = plan_path = None
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            audio_path = self.output_dir / f"voiceover-{timed.result.cache_key}.{self.config.tts.output_format}"
            audio_path.write_bytes(timed.audio)
            plan.audio_path = str(audio_path)
            plan_path = self.output_dir / "render_plan.json"
            with open(plan_path, "w") as f:
                json.dump(plan.to_dict(), f, indent=2)
            stages.append("write")

        self._report_progress("Done", 100)
        if self.verbose:
            status = "[green]QA ok[/green]" if qa.ok else f"[red]QA errors: {len(qa.errors)}[/red]"
            console.print(
                f"Plan: {len(plan.scenes)} scenes, {plan.total_duration_frames} frames "
                f"({plan.total_duration_frames / fps:.1f}s), {status}"
            )

        return PipelineResult(
            ir=ir,
            brief=brief,
            script=script,
            validation=validation,
            decisions=decisions,
            timing=timed.result,
            plan=plan,
            qa=qa,
            audio_path=audio_path,
            plan_path=plan_path,
            stages_completed=stages,
        )

    def run_file(self, source_path: Path | str, **kwargs) -> PipelineResult:
        """Run the pipeline on a markdown file."""
        source_path = Path(source_path)
        if not source_path.exists():
            raise FileNotFoundError(f"Source not found: {source_path}")
        return self.run(source_path.read_text(encoding="utf-8"), **kwargs)

    def decide_patterns(self, ir: StoryIR, script: VOScript, fmt: str) -> list[PatternDecision]:
        """One decision per VO scene, in scene order.

        Each scene takes the first unused IR beat whose role suits it, or a
        beat built from its own spoken text when none is left.
        """
        used: set[int] = set()
        beats = []
        for scene in script.scenes:
            beats.append(self._beat_for_scene(scene, ir, used))
        return [map_beat_to_pattern(beat, fmt) for beat in beats]

    def _beat_for_scene(self, scene: VOScene, ir: StoryIR, used: set[int]) -> StoryBeat:
        accepted = SCENE_BEAT_ROLES.get(scene.role, (BeatRole.DEFAULT,))
        for index, beat in enumerate(ir.beats):
            if index not in used and beat.role in accepted:
                used.add(index)
                return beat

        spoken = strip_evidence_tokens(scene.text)
        role = accepted[0]
        evidence = EvidenceKind.NONE
        if role == BeatRole.CASE_STUDY and METRIC_TOKEN.search(spoken):
            evidence = EvidenceKind.METRIC
        return StoryBeat(text=spoken, role=role, evidence=evidence)

    def build_plan(
        self,
        ir: StoryIR,
        script: VOScript,
        decisions: list[PatternDecision],
        timing: TimingExtractionResult,
        fmt: str,
        fps: int,
    ) -> RenderPlan:
        """Combine pattern decisions and scene timing into a render plan."""
        cues = to_cues(timing, fps)
        timings = {t.scene_id: t for t in timing.scene_timings}

        scenes = []
        for scene, decision in zip(script.scenes, decisions):
            scene_timing = timings[scene.id]
            start_frame = scene_start_frame(scene_timing, fps)
            scenes.append(
                RenderScene(
                    scene_id=scene.id,
                    pattern=decision.pattern,
                    props=decision.props,
                    duration_frames=duration_ms_to_frames(scene_timing.total_duration_ms, fps),
                    cues=[
                        Cue(frame=max(0, cue.frame - start_frame), id=cue.id)
                        for cue in cues.get(scene.id, [])
                    ],
                    voiceover=strip_evidence_tokens(scene.text),
                    rationale=decision.rationale,
                )
            )

        return RenderPlan(
            title=ir.title,
            fps=fps,
            format=fmt,
            scenes=scenes,
            total_duration_frames=sum(s.duration_frames for s in scenes),
            cache_key=timing.cache_key,
        )

    def _validation_warnings(self, validation: ScriptValidation) -> list[str]:
        warnings = []
        if validation.over_budget_by:
            warnings.append(f"Script over {validation.budget} budget by {validation.over_budget_by} words")
        if validation.under_budget_by:
            warnings.append(f"Script under {validation.budget} budget by {validation.under_budget_by} words")
        warnings.extend(validation.issues)
        warnings.extend(validation.warnings)
        if warnings and self.verbose:
            for warning in warnings:
                console.print(f"[yellow]{warning}[/yellow]")
        return warnings

    def _check_reveals(
        self,
        reveals: dict[str, list[RevealRequest]],
        timing: TimingExtractionResult,
        fps: int,
    ) -> list[str]:
        """Resolve trigger-word reveals and report alignment problems."""
        cues = to_cues(timing, fps)
        warnings: list[str] = []

        for scene_timing in timing.scene_timings:
            requests = reveals.get(scene_timing.scene_id)
            if not requests:
                continue
            words = [w for s in scene_timing.sentences for w in s.words]
            resolved, diagnostics = resolve_reveals(requests, words, fps)
            report = align_to_cues(
                resolved,
                cues.get(scene_timing.scene_id, []),
                fps=fps,
                tolerance_sec=self.config.alignment.tolerance_sec,
            )
            concurrency = validate_concurrent_animations(
                [AnimationInterval(r.frame, r.frame + ENTRANCE_FRAMES, r.id) for r in resolved],
                self.config.alignment.max_concurrent,
            )
            for diagnostic in diagnostics + report.diagnostics + concurrency.violations:
                warnings.append(f"{scene_timing.scene_id} @{diagnostic.frame}: {diagnostic.message}")

        if warnings and self.verbose:
            console.print(f"[yellow]{len(warnings)} reveal diagnostics[/yellow]")
        return warnings


def scene_start_frame(scene_timing: SceneTiming, fps: int = 30) -> int:
    """First frame of a scene in program time."""
    return round(scene_timing.start / 1000 * fps)
