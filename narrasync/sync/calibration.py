"""
Storyboard calibration (autotime), timing overrides and overhead reconciliation.

All functions here work on the storyboard dict in place. Persisting the
result is left to narrasync.storyboard.save_storyboard.
"""

import json
import math
from pathlib import Path
from typing import Any, Iterable

from ..config import GapConfig
from ..storyboard.document import beats_total_sec
from .models import CalibrationResult, Overhead

DEFAULT_REFERENCE_SEC = 10.0
UNITS = ("chars", "words")
TEXT_FIELDS = ("voiceover", "beat")


class CalibrationError(ValueError):
    """The calibration input is missing or malformed."""

    pass


def _r2(value: float) -> float:
    return round(value, 2)


def _scenes(doc: dict[str, Any]) -> list[dict[str, Any]]:
    return doc.get("scenes") or []


def find_beat(doc: dict[str, Any], scene_number: int, beat_number: int) -> dict[str, Any]:
    """Locate a beat by scene number and 1-based beat index.

    Raises:
        CalibrationError: If the scene or beat does not exist.
    """
    for scene in _scenes(doc):
        try:
            number = int(scene.get("sceneNumber"))
        except (TypeError, ValueError):
            continue
        if number == scene_number:
            beats = scene.get("beats") or []
            if 1 <= beat_number <= len(beats):
                return beats[beat_number - 1]
            break
    raise CalibrationError(f"Calibration beat not found: scene {scene_number}, beat {beat_number}")


def beat_text(beat: dict[str, Any], field: str = "voiceover") -> str:
    """Text of a beat, falling back to the other text field when empty."""
    if field == "voiceover":
        text = beat.get("voiceover") or beat.get("beat") or ""
    else:
        text = beat.get("beat") or beat.get("voiceover") or ""
    return str(text)


def _measure(text: str, unit: str) -> int:
    if unit == "chars":
        return len(text)
    return len(text.split())


def calibrate_storyboard(
    doc: dict[str, Any],
    scene_number: int = 1,
    beat_number: int = 1,
    duration_override: float | None = None,
    unit: str = "chars",
    field: str = "voiceover",
    gaps: GapConfig | None = None,
) -> CalibrationResult:
    """Retime every beat from one reference beat.

    The pacing rate is the reference beat's text length divided by its
    duration (the override, else its durationSec, else 10 s). Each beat
    then gets max(1, ceil(length / rate)) seconds. No other beat's
    original duration is consulted. Overhead is reconciled afterwards.

    Raises:
        CalibrationError: If the reference beat is missing, its text is
            empty, its duration is not positive, or unit/field is unknown.
    """
    if unit not in UNITS:
        raise CalibrationError(f"Unknown unit '{unit}', expected one of {UNITS}")
    if field not in TEXT_FIELDS:
        raise CalibrationError(f"Unknown field '{field}', expected one of {TEXT_FIELDS}")

    reference = find_beat(doc, scene_number, beat_number)
    reference_length = _measure(beat_text(reference, field), unit)
    if reference_length == 0:
        raise CalibrationError(
            f"Calibration beat has no {field} text: scene {scene_number}, beat {beat_number}"
        )

    if duration_override is not None:
        base_sec = float(duration_override)
    else:
        base_sec = float(reference.get("durationSec") or DEFAULT_REFERENCE_SEC)
    if not math.isfinite(base_sec) or base_sec <= 0:
        raise CalibrationError(f"Calibration duration must be positive, got {base_sec}")

    rate = reference_length / base_sec
    timed = 0
    for scene in _scenes(doc):
        for beat in scene.get("beats") or []:
            length = _measure(beat_text(beat, field), unit)
            # length / rate, computed without the intermediate division
            beat["durationSec"] = max(1, math.ceil(round(length * base_sec / reference_length, 9)))
            timed += 1

    overhead = reconcile_overhead(doc, gaps)
    beats_sum = _r2(beats_total_sec(doc))
    return CalibrationResult(
        scene_number=scene_number,
        beat_number=beat_number,
        unit=unit,
        field=field,
        base_sec=base_sec,
        rate=rate,
        beats_timed=timed,
        beats_total_sec=beats_sum,
        overhead=overhead,
        estimated_total_sec=doc["estimatedTotalDurationSec"],
    )


def compute_overhead(doc: dict[str, Any], gaps: GapConfig | None = None) -> Overhead:
    """Count the gaps of a storyboard and price them.

    A beat gap follows every beat but the last of its scene. A scene gap
    follows every scene but the last of its act; when not every act lists
    its scene numbers, all scenes form one run. An act gap follows every
    act but the last.
    """
    gaps = gaps or GapConfig()
    scenes = _scenes(doc)
    acts = doc.get("acts") if isinstance(doc.get("acts"), list) else []

    beat_gaps = sum(max(0, len(scene.get("beats") or []) - 1) for scene in scenes)
    if acts and all(isinstance(act.get("scenes"), list) for act in acts):
        scene_gaps = sum(max(0, len(act["scenes"]) - 1) for act in acts)
    else:
        scene_gaps = max(0, len(scenes) - 1)
    act_gaps = max(0, len(acts) - 1)

    beat_total = _r2(beat_gaps * gaps.beat_gap_sec)
    scene_total = _r2(scene_gaps * gaps.scene_gap_sec)
    act_total = _r2(act_gaps * gaps.act_gap_sec)
    return Overhead(
        beat_gap_sec=gaps.beat_gap_sec,
        scene_gap_sec=gaps.scene_gap_sec,
        act_gap_sec=gaps.act_gap_sec,
        beat_gaps_count=beat_gaps,
        scene_gaps_count=scene_gaps,
        act_gaps_count=act_gaps,
        beat_gaps_total_sec=beat_total,
        scene_gaps_total_sec=scene_total,
        act_gaps_total_sec=act_total,
        total_overhead_sec=_r2(beat_total + scene_total + act_total),
    )


def reconcile_overhead(doc: dict[str, Any], gaps: GapConfig | None = None) -> Overhead:
    """Record overhead under meta.overhead and update estimatedTotalDurationSec."""
    overhead = compute_overhead(doc, gaps)
    meta = doc.setdefault("meta", {})
    meta["overhead"] = overhead.to_dict()
    doc["estimatedTotalDurationSec"] = _r2(beats_total_sec(doc) + overhead.total_overhead_sec)
    return overhead


def apply_timings(
    doc: dict[str, Any],
    overrides: Iterable[tuple[int, int, float]],
    gaps: GapConfig | None = None,
    strict: bool = True,
) -> int:
    """Set explicit beat durations, then reconcile overhead.

    Args:
        doc: Storyboard dict.
        overrides: (scene number, 1-based beat number, seconds) triples.
        gaps: Gap constants.
        strict: Raise on unknown beats instead of skipping them.

    Returns:
        Number of beats updated.

    Raises:
        CalibrationError: On a non-positive duration, or an unknown beat when strict.
    """
    applied = 0
    for scene_number, beat_number, seconds in overrides:
        if seconds is None or float(seconds) <= 0:
            raise CalibrationError(
                f"Duration for scene {scene_number}, beat {beat_number} must be positive"
            )
        try:
            beat = find_beat(doc, int(scene_number), int(beat_number))
        except CalibrationError:
            if strict:
                raise
            continue
        seconds = float(seconds)
        beat["durationSec"] = int(seconds) if seconds.is_integer() else seconds
        applied += 1

    reconcile_overhead(doc, gaps)
    return applied


def load_timing_overrides(path: Path | str) -> list[tuple[int, int, float]]:
    """Read `{"beats": [{"scene", "beat", "durationSec"}]}` into override triples.

    Raises:
        FileNotFoundError: If the file does not exist.
        CalibrationError: If an entry is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Timings file not found: {path}")

    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise CalibrationError(f"Timings file must be a JSON object: {path}")

    overrides = []
    for entry in data.get("beats") or []:
        try:
            overrides.append((int(entry["scene"]), int(entry["beat"]), float(entry["durationSec"])))
        except (KeyError, TypeError, ValueError) as e:
            raise CalibrationError(f"Malformed timing entry {entry!r}: {e}") from e
    return overrides
