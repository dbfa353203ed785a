"""
Reveal-voiceover sync.

Aligns planned visual reveals to speech cues, resolves trigger words to
frames, checks animation concurrency, and calibrates storyboard beat
durations (autotime, explicit overrides and overhead reconciliation).

Usage:
    from narrasync.sync import align_to_cues, calibrate_storyboard

    report = align_to_cues(reveals, cues)
    result = calibrate_storyboard(doc, scene_number=1, beat_number=1)
"""

from .alignment import align_to_cues, resolve_reveals, validate_concurrent_animations
from .calibration import (
    CalibrationError,
    apply_timings,
    beat_text,
    calibrate_storyboard,
    compute_overhead,
    find_beat,
    load_timing_overrides,
    reconcile_overhead,
)
from .models import (
    AlignmentReport,
    AnimationInterval,
    CalibrationResult,
    ConcurrencyReport,
    CueMatch,
    Diagnostic,
    Overhead,
    RevealRequest,
)
from .utils import duration_ms_to_frames, find_word_frame, find_word_frame_fuzzy

__all__ = [
    # Models
    "AlignmentReport",
    "AnimationInterval",
    "CalibrationResult",
    "ConcurrencyReport",
    "CueMatch",
    "Diagnostic",
    "Overhead",
    "RevealRequest",
    # Alignment
    "align_to_cues",
    "resolve_reveals",
    "validate_concurrent_animations",
    # Calibration
    "CalibrationError",
    "apply_timings",
    "beat_text",
    "calibrate_storyboard",
    "compute_overhead",
    "find_beat",
    "load_timing_overrides",
    "reconcile_overhead",
    # Utils
    "duration_ms_to_frames",
    "find_word_frame",
    "find_word_frame_fuzzy",
]
