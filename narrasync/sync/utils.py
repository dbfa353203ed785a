"""
Utility functions for reveal-voiceover sync.

Word matching and frame conversions over millisecond word timings.
"""

import math
import re
from typing import Optional, Sequence

from ..models import WordTiming

TRAILING_PUNCTUATION = re.compile(r"[.,!?;:'\"]+$")


def _clean(word: str) -> str:
    return TRAILING_PUNCTUATION.sub("", word.lower().strip())


def ms_to_frames(ms: int, fps: int = 30) -> int:
    """Frame on which a millisecond timestamp falls."""
    return ms * fps // 1000


def duration_ms_to_frames(duration_ms: int, fps: int = 30) -> int:
    """Frames needed to cover a duration, rounded up."""
    return math.ceil(duration_ms / 1000 * fps)


def find_word_frame(
    word_timings: Sequence[WordTiming],
    target_word: str,
    fps: int = 30,
    match_mode: str = "contains",
    use_start: bool = True,
    offset_frames: int = 0,
) -> Optional[int]:
    """Find the frame number when a specific word is spoken.

    Args:
        word_timings: Word timings in milliseconds.
        target_word: The word to find (case-insensitive).
        fps: Frames per second for conversion.
        match_mode: How to match words:
            - "exact": Word must match exactly (after stripping punctuation)
            - "contains": Word contains the target, or the reverse (default)
            - "starts_with": Word starts with target
        use_start: If True, return frame at word START. If False, return frame at word END.
        offset_frames: Number of frames to add to the result (negative = earlier).

    Returns:
        Frame number when the word starts/ends (plus offset), or None if not found.
    """
    target_clean = _clean(target_word)
    if not target_clean:
        return None

    for timing in word_timings:
        word_clean = _clean(timing.word)
        if not word_clean:
            continue

        if match_mode == "exact":
            matched = word_clean == target_clean
        elif match_mode == "contains":
            matched = target_clean in word_clean or word_clean in target_clean
        elif match_mode == "starts_with":
            matched = word_clean.startswith(target_clean)
        else:
            raise ValueError(f"Unknown match mode: {match_mode}")

        if matched:
            ms = timing.start if use_start else timing.end
            return ms_to_frames(ms, fps) + offset_frames

    return None


def find_word_frame_fuzzy(
    word_timings: Sequence[WordTiming],
    target_word: str,
    fps: int = 30,
    use_start: bool = True,
    offset_frames: int = 0,
) -> Optional[int]:
    """Find word frame trying exact, then contains, then starts_with matching."""
    for mode in ("exact", "contains", "starts_with"):
        frame = find_word_frame(word_timings, target_word, fps, mode, use_start, offset_frames)
        if frame is not None:
            return frame
    return None


def suggest_trigger_word(word_timings: Sequence[WordTiming], trigger_word: str) -> Optional[str]:
    """A spoken word sharing a three-letter prefix with trigger_word, if any."""
    target = trigger_word.lower().strip()
    for timing in word_timings:
        word = timing.word.lower().strip()
        if target[:3] in word or word[:3] in target:
            return timing.word
    return None
