"""
Data models for reveal alignment and storyboard calibration.

Alignment and concurrency checks report problems as Diagnostic entries
rather than raising, so callers can accept imperfect timing.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Diagnostic:
    """A frame-anchored warning."""

    frame: int
    code: str  # e.g. "unaligned", "no_cues", "concurrency", "trigger_not_found"
    message: str

    def to_dict(self) -> dict:
        return {"frame": self.frame, "code": self.code, "message": self.message}


@dataclass
class CueMatch:
    """A reveal paired with its nearest cue."""

    reveal_id: str
    cue_id: Optional[str]
    aligned: bool
    offset: int  # reveal frame minus cue frame

    def to_dict(self) -> dict:
        return {
            "revealId": self.reveal_id,
            "cueId": self.cue_id,
            "aligned": self.aligned,
            "offset": self.offset,
        }


@dataclass
class AlignmentReport:
    """Matches for every reveal plus diagnostics for the unaligned ones."""

    tolerance_frames: int
    matches: list[CueMatch] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def all_aligned(self) -> bool:
        return all(m.aligned for m in self.matches)

    def to_dict(self) -> dict:
        return {
            "toleranceFrames": self.tolerance_frames,
            "allAligned": self.all_aligned,
            "matches": [m.to_dict() for m in self.matches],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class AnimationInterval:
    """An animation active from start to end frame, both inclusive."""

    start: int
    end: int
    id: str = ""


@dataclass
class ConcurrencyReport:
    """Frames where more animations run than the ceiling allows."""

    max_concurrent: int
    violations: list[Diagnostic] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    @property
    def violating_frames(self) -> list[int]:
        return [d.frame for d in self.violations]


@dataclass
class RevealRequest:
    """A planned reveal anchored to a spoken trigger word."""

    id: str
    trigger_word: str
    use_word_start: bool = True
    offset_frames: int = 0  # negative = anticipate the word

    @classmethod
    def from_dict(cls, data: dict) -> "RevealRequest":
        return cls(
            id=data["id"],
            trigger_word=data.get("trigger_word") or data["triggerWord"],
            use_word_start=data.get("use_word_start", data.get("useWordStart", True)),
            offset_frames=data.get("offset_frames", data.get("offsetFrames", 0)),
        )


@dataclass
class Overhead:
    """Gap accounting for a storyboard. Totals are rounded to 0.01 s."""

    beat_gap_sec: float
    scene_gap_sec: float
    act_gap_sec: float
    beat_gaps_count: int
    scene_gaps_count: int
    act_gaps_count: int
    beat_gaps_total_sec: float
    scene_gaps_total_sec: float
    act_gaps_total_sec: float
    total_overhead_sec: float

    def to_dict(self) -> dict:
        return {
            "beatGapSec": self.beat_gap_sec,
            "sceneGapSec": self.scene_gap_sec,
            "actGapSec": self.act_gap_sec,
            "beatGapsCount": self.beat_gaps_count,
            "sceneGapsCount": self.scene_gaps_count,
            "actGapsCount": self.act_gaps_count,
            "beatGapsTotalSec": self.beat_gaps_total_sec,
            "sceneGapsTotalSec": self.scene_gaps_total_sec,
            "actGapsTotalSec": self.act_gaps_total_sec,
            "totalOverheadSec": self.total_overhead_sec,
        }


@dataclass
class CalibrationResult:
    """Outcome of retiming every beat from one reference beat."""

    scene_number: int
    beat_number: int
    unit: str
    field: str
    base_sec: float
    rate: float  # units per second
    beats_timed: int
    beats_total_sec: float
    overhead: Overhead
    estimated_total_sec: float

    def to_dict(self) -> dict:
        return {
            "sceneNumber": self.scene_number,
            "beatNumber": self.beat_number,
            "unit": self.unit,
            "field": self.field,
            "baseSec": self.base_sec,
            "rate": self.rate,
            "beatsTimed": self.beats_timed,
            "beatsTotalSec": self.beats_total_sec,
            "overhead": self.overhead.to_dict(),
            "estimatedTotalDurationSec": self.estimated_total_sec,
        }
