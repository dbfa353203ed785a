"""Speech synthesis with scene / sentence / word timing for a VO script."""

import threading
from dataclasses import dataclass

from rich.console import Console

from ..audio.tts import SynthesisCancelled, SynthesisError, TTSProvider
from ..config import TimingConfig
from ..models import (
    Cue,
    SceneTiming,
    SentenceTiming,
    TimingExtractionResult,
    VOScene,
    VOScript,
    WordTiming,
)
from ..text import strip_evidence_tokens
from .cache import TimingCache, cache_key
from .estimation import distribute_proportionally, estimate_sentence_ms, estimate_word_ms

console = Console()


@dataclass
class TimingWithAudio:
    """Timing result plus the audio it was derived from."""

    result: TimingExtractionResult
    audio: bytes


class TimingExtractor:
    """Synthesizes a script once and derives hierarchical timing from it.

    The whole script is synthesized in a single call. Timing is then split
    top-down (program across scenes, scene across sentences, sentence
    across words) and every level sums exactly to its parent. A sentence's
    pause is spread over its words.
    """

    def __init__(
        self,
        provider: TTSProvider,
        cache: TimingCache | None = None,
        config: TimingConfig | None = None,
        voice: str | None = None,
        speed: float = 1.0,
        verbose: bool = True,
    ):
        self.provider = provider
        self.config = config or TimingConfig()
        self.cache = cache if cache is not None else TimingCache(self.config.cache_dir, verbose=verbose)
        self.voice = voice
        self.speed = speed
        self.verbose = verbose

    def generate_with_timing(
        self,
        script: VOScript,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> TimingWithAudio:
        """Synthesize the script (or reuse the cache) and compute timing.

        Args:
            script: The voice-over script.
            timeout: Seconds allowed for the synthesis call.
            cancel_event: When set, the call raises instead of keeping a result.

        Returns:
            TimingWithAudio for the script.

        Raises:
            SynthesisError: If the provider fails.
            SynthesisCancelled: If cancel_event is set.
        """
        key = cache_key(script.full_text, self.config.cache_key_length)

        cached = self.cache.get(key)
        if cached is not None:
            result, audio = cached
            if self.verbose:
                console.print(f"[dim]Timing cache hit: {key}[/dim]")
            return TimingWithAudio(result=result, audio=audio)

        self._check_cancelled(cancel_event)

        spoken = strip_evidence_tokens(script.full_text)
        if self.verbose:
            console.print(f"Synthesizing {len(spoken.split())} words...")
        synthesis = self.provider.synthesize(spoken, voice=self.voice, speed=self.speed, timeout=timeout)
        if not synthesis.audio:
            raise SynthesisError("Provider returned empty audio")

        self._check_cancelled(cancel_event)

        total_ms = synthesis.duration_ms
        if total_ms is None:
            total_ms = round(sum(scene.estimated_duration_ms for scene in script.scenes))

        scene_timings = self.compute_scene_timings(script.scenes, total_ms)
        result = TimingExtractionResult(
            scene_timings=scene_timings,
            total_duration_ms=max((s.end for s in scene_timings), default=0),
            cache_key=key,
            cache_hit=False,
        )

        self.cache.put(key, result, synthesis.audio)
        return TimingWithAudio(result=result, audio=synthesis.audio)

    def _check_cancelled(self, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise SynthesisCancelled("Synthesis cancelled")

    def compute_scene_timings(self, scenes: list[VOScene], total_ms: int) -> list[SceneTiming]:
        """Split total_ms across scenes weighted by their estimated duration."""
        scene_totals = distribute_proportionally(
            total_ms, [scene.estimated_duration_ms for scene in scenes]
        )
        timings = []
        cursor = 0
        for scene, scene_ms in zip(scenes, scene_totals):
            sentences = self._sentence_timings(scene.sentences, cursor, scene_ms)
            timings.append(
                SceneTiming(
                    scene_id=scene.id,
                    start=cursor,
                    end=cursor + scene_ms,
                    sentences=sentences,
                    total_duration_ms=scene_ms,
                )
            )
            cursor += scene_ms
        return timings

    def _sentence_timings(self, sentences: list[str], start: int, total_ms: int) -> list[SentenceTiming]:
        weights = [
            estimate_sentence_ms(s, self.config.target_wpm, self.config.sentence_pause_ms)
            for s in sentences
        ]
        timings = []
        cursor = start
        for sentence, sentence_ms in zip(sentences, distribute_proportionally(total_ms, weights)):
            timings.append(
                SentenceTiming(
                    sentence=sentence,
                    start=cursor,
                    end=cursor + sentence_ms,
                    words=self._word_timings(sentence, cursor, sentence_ms),
                )
            )
            cursor += sentence_ms
        return timings

    def _word_timings(self, sentence: str, start: int, total_ms: int) -> list[WordTiming]:
        words = sentence.split()
        weights = [
            estimate_word_ms(w, self.config.syllables_per_second, self.config.min_word_ms)
            for w in words
        ]
        timings = []
        cursor = start
        for word, word_ms in zip(words, distribute_proportionally(total_ms, weights)):
            timings.append(WordTiming(word=word, start=cursor, end=cursor + word_ms))
            cursor += word_ms
        return timings


def to_cues(result: TimingExtractionResult, fps: int = 30) -> dict[str, list[Cue]]:
    """One cue per sentence start, keyed by scene id. Frames are absolute."""
    cues: dict[str, list[Cue]] = {}
    for scene in result.scene_timings:
        cues[scene.scene_id] = [
            Cue(frame=round(sentence.start / 1000 * fps), id=f"{scene.scene_id}-s{i + 1}")
            for i, sentence in enumerate(scene.sentences)
        ]
    return cues
