"""Speech timing: estimation, content-addressed cache and extraction."""

from .cache import TimingCache, cache_key
from .estimation import (
    count_syllables,
    distribute_proportionally,
    estimate_sentence_ms,
    estimate_word_ms,
)
from .extractor import TimingExtractor, TimingWithAudio, to_cues
from ..text import estimate_text_ms

__all__ = [
    "TimingCache",
    "TimingExtractor",
    "TimingWithAudio",
    "cache_key",
    "count_syllables",
    "distribute_proportionally",
    "estimate_sentence_ms",
    "estimate_text_ms",
    "estimate_word_ms",
    "to_cues",
]
