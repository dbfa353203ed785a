"""Heuristic markdown parser producing the Story IR.

Works from headings, bullet lists and tables only. Metrics and
chart-shaped tables become evidence on the beats they belong to.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from ..models import BeatRole, EvidenceKind, SeriesPoint, StoryBeat, StoryIR

METRIC_PATTERN = re.compile(r"\d+(?:\.\d+)?\s?%|\b\d+(?:\.\d+)?\s?x\b|\b\d+\s?(?:weeks?|days?)\b", re.I)
BULLET_PATTERN = re.compile(r"^\s*(?:[-*•—]|\d+[.)])\s+")
TABLE_SEPARATOR = re.compile(r"^\s*\|?\s*:?-{3,}")

MAX_INSIGHT_BEATS = 4

PROBLEM_HEADINGS = re.compile(r"problem|challenge|pain|status quo", re.I)
INSIGHT_HEADINGS = re.compile(r"insight|finding|takeaway", re.I)
CASE_HEADINGS = re.compile(r"case stud|example|customer stor|success stor", re.I)
STEP_HEADINGS = re.compile(r"step|how it works|approach|process|playbook", re.I)
CTA_HEADINGS = re.compile(r"next step|call to action|\bcta\b|get started|what to do", re.I)


@dataclass
class _Section:
    heading: str
    level: int
    lines: list[str] = field(default_factory=list)

    @property
    def paragraphs(self) -> list[str]:
        """Plain prose paragraphs (no bullets, tables or headings)."""
        paragraphs: list[str] = []
        current: list[str] = []
        for line in self.lines:
            stripped = line.strip()
            if not stripped or BULLET_PATTERN.match(line) or stripped.startswith("|"):
                if current:
                    paragraphs.append(" ".join(current))
                    current = []
                continue
            current.append(stripped)
        if current:
            paragraphs.append(" ".join(current))
        return [_strip_inline(p) for p in paragraphs if _strip_inline(p)]

    @property
    def bullets(self) -> list[str]:
        return [
            _strip_inline(BULLET_PATTERN.sub("", line))
            for line in self.lines
            if BULLET_PATTERN.match(line)
        ]


def _strip_inline(text: str) -> str:
    """Remove markdown emphasis, inline code and link syntax."""
    text = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", text)
    text = re.sub(r"(\*\*|__|\*|_|`)", "", text)
    return re.sub(r"\s+", " ", text).strip()


def _first_sentence(text: str) -> str:
    parts = re.split(r"(?<=[.!?])\s+", text.strip(), maxsplit=1)
    return parts[0].strip()


def _evidence_for(text: str) -> EvidenceKind:
    return EvidenceKind.METRIC if METRIC_PATTERN.search(text) else EvidenceKind.NONE


def _parse_number(cell: str) -> float | None:
    match = re.search(r"-?\d[\d,]*(?:\.\d+)?", cell)
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def _table_series(lines: list[str]) -> list[SeriesPoint]:
    """Extract label/value pairs from the first markdown table in the lines."""
    rows = [line for line in lines if line.strip().startswith("|")]
    series: list[SeriesPoint] = []
    header_skipped = False
    for row in rows:
        if TABLE_SEPARATOR.match(row):
            header_skipped = True
            continue
        if not header_skipped:
            continue
        cells = [c.strip() for c in row.strip().strip("|").split("|")]
        if len(cells) < 2:
            continue
        value = _parse_number(cells[1])
        if value is None:
            continue
        series.append(SeriesPoint(label=_strip_inline(cells[0]), value=value))
    return series


def _split_sections(lines: list[str]) -> list[_Section]:
    sections: list[_Section] = [_Section(heading="", level=0)]
    for line in lines:
        heading = re.match(r"^(#{2,6})\s+(.*)$", line)
        if heading:
            sections.append(_Section(heading=heading.group(2).strip(), level=len(heading.group(1))))
        elif not line.startswith("# "):
            sections[-1].lines.append(line)
    return sections


def _hook_text(sections: list[_Section]) -> str:
    for section in sections:
        if re.search(r"executive summary|summary|tl;?dr", section.heading, re.I):
            body = " ".join(section.lines[:15])
            bold = re.search(r"\*\*(.+?)\*\*", body)
            if bold:
                return _strip_inline(bold.group(1))
            if section.paragraphs:
                return _first_sentence(section.paragraphs[0])

    for section in sections:
        if section.paragraphs:
            return _first_sentence(section.paragraphs[0])
    return ""


def extract_story_ir(markdown: str) -> StoryIR:
    """Parse markdown into an ordered list of story beats.

    Beat order follows the document: the hook first, then one or more beats
    per recognised section, with the call to action last.

    Args:
        markdown: Raw markdown content.

    Returns:
        StoryIR with the document title (first H1) and extracted beats.
    """
    lines = markdown.splitlines()
    h1 = next((line for line in lines if line.startswith("# ")), None)
    title = h1[2:].strip() if h1 else None

    sections = _split_sections(lines)
    beats: list[StoryBeat] = []
    cta: StoryBeat | None = None

    hook = _hook_text(sections)
    if hook:
        beats.append(StoryBeat(text=hook, role=BeatRole.HOOK))

    for section in sections:
        heading = section.heading
        if not heading:
            continue

        series = _table_series(section.lines)
        if len(series) >= 2:
            beats.append(
                StoryBeat(
                    text=_strip_inline(heading),
                    role=BeatRole.DATA,
                    evidence=EvidenceKind.TIMELINE if _looks_temporal(series) else EvidenceKind.NONE,
                    series=series,
                )
            )

        if CTA_HEADINGS.search(heading):
            source = section.paragraphs[0] if section.paragraphs else (section.bullets[0] if section.bullets else "")
            if source:
                cta = StoryBeat(text=_first_sentence(source), role=BeatRole.CTA)
        elif PROBLEM_HEADINGS.search(heading) and section.paragraphs:
            text = section.paragraphs[0]
            beats.append(StoryBeat(text=text, role=BeatRole.PROBLEM, evidence=_evidence_for(text)))
        elif INSIGHT_HEADINGS.search(heading):
            for bullet in section.bullets[:MAX_INSIGHT_BEATS]:
                beats.append(StoryBeat(text=bullet, evidence=_evidence_for(bullet)))
        elif CASE_HEADINGS.search(heading) and section.paragraphs:
            text = section.paragraphs[0]
            beats.append(StoryBeat(text=text, role=BeatRole.CASE_STUDY, evidence=_evidence_for(text)))
        elif STEP_HEADINGS.search(heading) and len(section.bullets) >= 3:
            items = "\n".join(f"- {b}" for b in section.bullets)
            beats.append(StoryBeat(text=f"{_strip_inline(heading)}:\n{items}"))

    if cta is not None:
        beats.append(cta)

    return StoryIR(title=title, beats=beats)


def _looks_temporal(series: list[SeriesPoint]) -> bool:
    """True when every label reads like a point in time (year, quarter, month, week)."""
    temporal = re.compile(r"^(?:(?:19|20)\d{2}|q[1-4]|h[12]|week \d+|w\d+|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.I)
    return all(temporal.match(point.label.strip()) for point in series)


def extract_story_ir_from_file(path: Path | str) -> StoryIR:
    """Read a markdown file and extract its Story IR."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source document not found: {path}")
    return extract_story_ir(path.read_text())
