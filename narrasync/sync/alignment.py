"""Reveal-to-cue alignment and animation concurrency checks."""

from typing import Optional, Sequence, Union

from ..models import Cue, Reveal, WordTiming
from .models import (
    AlignmentReport,
    AnimationInterval,
    ConcurrencyReport,
    CueMatch,
    Diagnostic,
    RevealRequest,
)
from .utils import find_word_frame_fuzzy, suggest_trigger_word

DEFAULT_TOLERANCE_SEC = 0.2


def align_to_cues(
    reveals: Sequence[Reveal],
    cues: Sequence[Cue],
    tolerance_frames: Optional[int] = None,
    fps: int = 30,
    tolerance_sec: float = DEFAULT_TOLERANCE_SEC,
) -> AlignmentReport:
    """Match every reveal to its nearest cue.

    A reveal is aligned when it lands within the tolerance of that cue
    (6 frames at 30 fps by default). Ties between equally near cues go to
    the earlier cue in the list. Nothing is moved; unaligned reveals are
    reported as diagnostics.

    Args:
        reveals: Planned reveals (frame, id).
        cues: Speech cues (frame, id) of the same scene.
        tolerance_frames: Explicit tolerance; overrides tolerance_sec.
        fps: Frames per second used to convert tolerance_sec.
        tolerance_sec: Tolerance in seconds.

    Returns:
        AlignmentReport with one match per reveal, in reveal order.
    """
    tolerance = tolerance_frames if tolerance_frames is not None else round(tolerance_sec * fps)
    report = AlignmentReport(tolerance_frames=tolerance)

    for reveal in reveals:
        if not cues:
            report.matches.append(CueMatch(reveal_id=reveal.id, cue_id=None, aligned=False, offset=0))
            report.diagnostics.append(
                Diagnostic(reveal.frame, "no_cues", f"Reveal '{reveal.id}' has no cue to align to")
            )
            continue

        closest = cues[0]
        for cue in cues[1:]:
            if abs(reveal.frame - cue.frame) < abs(reveal.frame - closest.frame):
                closest = cue

        offset = reveal.frame - closest.frame
        aligned = abs(offset) <= tolerance
        report.matches.append(
            CueMatch(reveal_id=reveal.id, cue_id=closest.id, aligned=aligned, offset=offset)
        )
        if not aligned:
            report.diagnostics.append(
                Diagnostic(
                    reveal.frame,
                    "unaligned",
                    f"Reveal '{reveal.id}' is {offset:+d} frames from cue '{closest.id}' "
                    f"(tolerance {tolerance})",
                )
            )

    return report


def resolve_reveals(
    requests: Sequence[RevealRequest],
    word_timings: Sequence[WordTiming],
    fps: int = 30,
) -> tuple[list[Reveal], list[Diagnostic]]:
    """Resolve trigger-word reveals to frames.

    Returns:
        The resolved reveals, and a diagnostic for every trigger word that
        was not spoken.
    """
    reveals: list[Reveal] = []
    diagnostics: list[Diagnostic] = []

    for request in requests:
        frame = find_word_frame_fuzzy(
            word_timings,
            request.trigger_word,
            fps=fps,
            use_start=request.use_word_start,
            offset_frames=request.offset_frames,
        )
        if frame is None:
            suggestion = suggest_trigger_word(word_timings, request.trigger_word)
            hint = f" (did you mean '{suggestion}'?)" if suggestion else ""
            diagnostics.append(
                Diagnostic(
                    0,
                    "trigger_not_found",
                    f"Trigger word '{request.trigger_word}' for '{request.id}' is not spoken{hint}",
                )
            )
            continue
        reveals.append(Reveal(frame=max(0, frame), id=request.id))

    return reveals, diagnostics


def validate_concurrent_animations(
    intervals: Sequence[Union[AnimationInterval, tuple[int, int]]],
    max_concurrent: int = 3,
) -> ConcurrencyReport:
    """Report every frame where more than max_concurrent animations are active.

    Intervals are inclusive at both ends. Every frame from the earliest
    start to the latest end is checked.
    """
    spans = [
        (i.start, i.end) if isinstance(i, AnimationInterval) else (int(i[0]), int(i[1]))
        for i in intervals
    ]
    report = ConcurrencyReport(max_concurrent=max_concurrent)
    if not spans:
        return report

    first = min(start for start, _ in spans)
    last = max(end for _, end in spans)
    for frame in range(first, last + 1):
        active = sum(1 for start, end in spans if start <= frame <= end)
        if active > max_concurrent:
            report.violations.append(
                Diagnostic(
                    frame,
                    "concurrency",
                    f"Frame {frame}: {active} concurrent animations (max {max_concurrent})",
                )
            )
    return report
