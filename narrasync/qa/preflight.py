"""Preflight checks over a render plan before it goes to the renderer."""

import re
from dataclasses import dataclass, field

from ..models import PatternName, RenderPlan

WORDS_PER_SEC = 4.8
VO_SHORT_SEC = 1.5
VO_LONG_SEC = 12.0
BRIDGE = re.compile(r"^\s*(So|For example|Next|Meanwhile|In short|Then)\b", re.IGNORECASE)


@dataclass
class QAIssue:
    scene: int  # 1-based
    severity: str  # "error" or "warn"
    code: str
    message: str

    def to_dict(self) -> dict:
        return {
            "scene": self.scene,
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class QAReport:
    issues: list[QAIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> list[QAIssue]:
        return [i for i in self.issues if i.severity == "error"]

    def to_dict(self) -> dict:
        return {"ok": self.ok, "issues": [i.to_dict() for i in self.issues]}


def estimate_vo_seconds(text: str) -> float:
    words = len(text.split())
    return round(words / WORDS_PER_SEC, 2)


def qa_preflight(plan: RenderPlan, check_bridges: bool = False) -> QAReport:
    """Check VO length and pattern props of every scene.

    Args:
        plan: The render plan to check.
        check_bridges: Also warn when a scene after the first does not open
            with a bridge phrase ("So", "Next", ...).

    Returns:
        QAReport; ``ok`` is False when any issue is an error.
    """
    report = QAReport()

    for number, scene in enumerate(plan.scenes, start=1):
        issues = report.issues
        props = scene.props or {}

        secs = estimate_vo_seconds(scene.voiceover or "")
        if secs < VO_SHORT_SEC:
            issues.append(QAIssue(number, "warn", "vo_short", f"VO {secs}s may be too short."))
        if secs > VO_LONG_SEC:
            issues.append(QAIssue(number, "error", "vo_long", f"VO {secs}s exceeds {VO_LONG_SEC:g}s."))

        if check_bridges and number > 1 and not BRIDGE.match(scene.voiceover or ""):
            issues.append(
                QAIssue(number, "warn", "vo_no_bridge", "Consider adding a short bridge for coherence.")
            )

        if scene.pattern == PatternName.TITLE_SUBHEAD:
            title = props.get("title") or ""
            if len(title.strip()) < 8:
                issues.append(
                    QAIssue(
                        number, "error", "title_missing",
                        "TitleSubhead requires a meaningful title (>=8 chars).",
                    )
                )
            if len(title) > 120:
                issues.append(QAIssue(number, "warn", "title_long", "Title may be too long (>120 chars)."))

        elif scene.pattern == PatternName.CALLOUT:
            body = props.get("body") or ""
            if not props.get("title"):
                issues.append(QAIssue(number, "error", "callout_title_missing", "Callout requires a title."))
            if not body:
                issues.append(QAIssue(number, "error", "callout_body_missing", "Callout requires a body."))
            if len(body) > 240:
                issues.append(
                    QAIssue(number, "warn", "callout_body_long", "Callout body may be too long (>240 chars).")
                )

        elif scene.pattern == PatternName.CHART_REVEAL:
            data = props.get("data") or []
            if not 2 <= len(data) <= 6:
                issues.append(
                    QAIssue(number, "error", "chart_density", "Chart requires between 2 and 6 bars.")
                )
            for i, point in enumerate(data, start=1):
                label = point.get("label") or ""
                if not label or len(label) > 18:
                    issues.append(
                        QAIssue(
                            number, "warn", "label_length",
                            f"Bar {i} label is missing or too long (>18).",
                        )
                    )

        elif scene.pattern == PatternName.STAT_HERO:
            value = props.get("statValue")
            if value is None or not str(value).strip():
                issues.append(QAIssue(number, "error", "stat_missing", "StatHero requires a statValue."))

    return report
