"""
Storyboard document persistence.

A storyboard is a JSON tree of scenes and beats (plus optional acts and a
meta block). It is kept as a plain dict so fields this package does not
know about survive a load/save round trip. Writes replace the file
atomically and regenerate STORYBOARD.md beside it.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

SUMMARY_FILENAME = "STORYBOARD.md"


def load_storyboard(path: Path | str) -> dict[str, Any]:
    """Load a storyboard JSON document.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object with a scenes list.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Storyboard not found: {path}")

    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Storyboard must be a JSON object: {path}")
    if not isinstance(data.get("scenes", []), list):
        raise ValueError(f"Storyboard 'scenes' must be a list: {path}")
    return data


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def save_storyboard(doc: dict[str, Any], path: Path | str, write_summary: bool = True) -> Path:
    """Atomically write the storyboard and, by default, its markdown summary.

    Returns:
        Path to the written JSON file.
    """
    path = Path(path)
    _atomic_write(path, json.dumps(doc, indent=2, ensure_ascii=False))
    if write_summary:
        _atomic_write(path.parent / SUMMARY_FILENAME, render_markdown(doc))
    return path


def _num(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def beats_total_sec(doc: dict[str, Any]) -> float:
    """Sum of every beat's durationSec."""
    return sum(
        float(beat.get("durationSec") or 0)
        for scene in doc.get("scenes") or []
        for beat in scene.get("beats") or []
    )


def render_markdown(doc: dict[str, Any]) -> str:
    """Human-readable storyboard summary."""
    scenes = doc.get("scenes") or []
    overhead = (doc.get("meta") or {}).get("overhead") or {}
    beat_count = sum(len(scene.get("beats") or []) for scene in scenes)

    lines = [f"# Storyboard — {doc.get('title', '')}"]
    if doc.get("logline"):
        lines.append(f"\n> {doc['logline']}\n")
    lines.append(f"- Format: {(doc.get('videoSpecs') or {}).get('format') or 'vertical'}")
    lines.append(f"- Estimated Total (aligned): {_num(doc.get('estimatedTotalDurationSec', 0))}s")
    lines.append(f"- Beats Sum: {_num(round(beats_total_sec(doc), 2))}s")
    if overhead:
        lines.append(
            f"- Overhead: {_num(overhead.get('totalOverheadSec', 0))}s "
            f"(beat gaps {_num(overhead.get('beatGapsTotalSec', 0))}s, "
            f"scene gaps {_num(overhead.get('sceneGapsTotalSec', 0))}s, "
            f"act gaps {_num(overhead.get('actGapsTotalSec', 0))}s)"
        )
    lines.append(f"- Scenes: {len(scenes)}")
    lines.append(f"- Beats: {beat_count}")

    acts = doc.get("acts") or []
    if acts:
        lines.append("\n## Acts")
        for act in acts:
            lines.append(f"- {act.get('label', '')}: {act.get('summary', '')}")

    lines.append("\n## Scenes")
    for scene in scenes:
        beats = scene.get("beats") or []
        lines.append(
            f"\n### Scene {scene.get('sceneNumber')} — {scene.get('label', '')} ({len(beats)} beats)"
        )
        if scene.get("purpose"):
            lines.append(f"- Purpose: {scene['purpose']}")
        for i, beat in enumerate(beats):
            lines.append(f"\n- Beat {i + 1}: {beat.get('beat', '')}")
            lines.append(f"  - Visual: {beat.get('visualType', '')} / {beat.get('recommendedComponent', '')}")
            lines.append(f"  - Duration: {_num(beat.get('durationSec') or 0)}s")
            voiceover = str(beat.get("voiceover") or "").replace("\n", " ")
            lines.append(f"  - VO: {voiceover}")

    return "\n".join(lines) + "\n"
