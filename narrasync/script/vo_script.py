"""Voice-over script generation and word-budget validation."""

import itertools
import math
import re
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from rich.console import Console

from ..models import EvidenceToken, NarrativeBrief, Provenance, VOScene, VOScript
from ..narrative.brief import ARC_TEMPLATES, ArcTemplate
from ..text import EVIDENCE_TOKEN_PATTERN, count_words, estimate_text_ms, split_sentences
from ..timing.estimation import distribute_proportionally

console = Console()


@dataclass(frozen=True)
class WordBudget:
    """Word range and per-scene sentence cap of one duration class."""

    min: int
    max: int
    max_sentences_per_scene: int


WORD_BUDGETS: dict[str, WordBudget] = {
    "clip30": WordBudget(min=47, max=55, max_sentences_per_scene=3),
    "micro60": WordBudget(min=95, max=110, max_sentences_per_scene=4),
    "micro75": WordBudget(min=115, max=130, max_sentences_per_scene=4),
    "micro90": WordBudget(min=140, max=160, max_sentences_per_scene=5),
}


class BudgetExceededError(Exception):
    """A script falls outside its word or sentence budget."""


def budget_for_duration(seconds: float) -> str:
    """Map a target duration in seconds to its duration class."""
    if seconds <= 30:
        return "clip30"
    if seconds <= 60:
        return "micro60"
    if seconds <= 75:
        return "micro75"
    return "micro90"


def _get_budget(budget: str) -> WordBudget:
    try:
        return WORD_BUDGETS[budget]
    except KeyError:
        raise ValueError(
            f"Unknown budget '{budget}'. Expected one of: {', '.join(WORD_BUDGETS)}"
        ) from None


def extract_evidence_tokens(text: str, provenance: Sequence[Provenance]) -> list[EvidenceToken]:
    """Find `[prov:<id>]` tokens in text, keeping only ids present in provenance."""
    known = {p.id for p in provenance}
    return [
        EvidenceToken(token=match.group(0), prov_id=match.group(1), position=match.start())
        for match in EVIDENCE_TOKEN_PATTERN.finditer(text)
        if match.group(1) in known
    ]


# ============================================================================
# SENTENCE STRATEGIES
# ============================================================================


def _clause(text: str) -> str:
    """Normalize a brief field into one sentence body without terminator."""
    text = text.replace("…", "")
    text = re.sub(r"[.!?]+\s+", "; ", " ".join(text.split()))
    return text.strip().rstrip(".!?;:,").strip()


def _lower_first(text: str) -> str:
    if len(text) > 1 and text[0].isupper() and not text[1].isupper():
        return text[0].lower() + text[1:]
    return text


def _role_candidates(role: str, brief: NarrativeBrief) -> list[str]:
    """Sentence candidates for one arc role, most important first."""
    idea = _clause(brief.controlling_idea)
    antagonist = _clause(brief.antagonist)
    stakes = _clause(brief.stakes)
    promise = _clause(brief.promise)
    next_step = _clause(brief.next_step)
    change = _clause(brief.audience_change)
    pillars = [_clause(p) for p in brief.proof_pillars if _clause(p)]
    proof = pillars[0] if pillars else "Teams see measurable improvement"

    if role == "HOOK":
        pool = ["You are not short on data", "You are short on signal", idea]
    elif role == "PROBLEM":
        pool = [f"The real problem is {_lower_first(antagonist)}", stakes]
    elif role == "TURN":
        pool = [f"Here is the turn: {_lower_first(idea)}", "Stop reacting to noise and target what matters"]
    elif role == "APPROACH":
        pool = [promise, "Quantify the impact, route the work and measure the gain"]
    elif role in ("PROOF", "RESULT"):
        pool = [proof, *pillars[1:], "The results are measurable and repeatable"]
    elif role == "OUTCOME":
        pool = [proof, promise]
    elif role == "BACKSTORY":
        pool = [f"It started with {_lower_first(antagonist)}", stakes]
    elif role == "PROCESS":
        pool = [promise, idea]
    elif role == "CTA":
        pool = [next_step, change]
    else:
        pool = [idea]
    return [c for c in pool if c]


def _fallback_candidates(brief: NarrativeBrief) -> list[str]:
    fallback = [
        _clause(brief.controlling_idea),
        _clause(brief.audience_change),
        _clause(brief.promise),
        _clause(brief.stakes),
    ]
    return [c for c in fallback if c] or ["Focus on what matters most"]


def _compose_scene_text(candidates: Iterator[str], target_words: int, max_sentences: int) -> list[str]:
    """Build sentences totalling exactly target_words words.

    Whole candidates fill the leading sentence slots while they fit. The
    last slot merges whatever is left and is cut at the word target.
    """
    sentences: list[str] = []
    remaining = target_words
    pending: list[str] = []

    for _ in range(max_sentences - 1):
        candidate = next(candidates)
        if len(candidate.split()) < remaining:
            sentences.append(candidate + ".")
            remaining -= len(candidate.split())
        else:
            pending.append(candidate)
            break

    merged = pending
    while sum(len(c.split()) for c in merged) < remaining:
        merged.append(next(candidates))
    words = "; ".join(merged).split()[:remaining]
    words[-1] = words[-1].rstrip(".!?;:,") or words[-1]
    sentences.append(" ".join(words) + ".")
    return sentences


def _turn_adjusted_targets(template: ArcTemplate, base_target: int) -> list[int]:
    """Per-scene word targets that put the turn scene before its deadline.

    Words are moved from scenes before the turn to the turn and later
    scenes. The total never changes.
    """
    count = len(template.scenes)
    targets = [base_target] * count
    total = base_target * count
    turn = template.turn_index
    turn_offset = sum(targets[:turn])
    allowed = math.floor(template.turn_by_percent * total)
    excess = turn_offset - allowed
    if turn == 0 or excess <= 0:
        return targets

    removed = distribute_proportionally(excess, targets[:turn])
    added = distribute_proportionally(excess, targets[turn:])
    return [t - r for t, r in zip(targets[:turn], removed)] + [
        t + a for t, a in zip(targets[turn:], added)
    ]


class VOScriptGenerator:
    """Generates a word-budgeted voice-over script from a narrative brief."""

    def __init__(self, target_wpm: int = 110, verbose: bool = True):
        self.target_wpm = target_wpm
        self.verbose = verbose

    def generate_script(
        self,
        brief: NarrativeBrief,
        budget: str,
        provenance: Sequence[Provenance] = (),
    ) -> VOScript:
        """Generate one scene per arc role.

        Args:
            brief: Validated narrative brief.
            budget: Duration class key from WORD_BUDGETS.
            provenance: Citable sources for evidence tokens.

        Returns:
            The script with per-scene word counts and duration estimates.
        """
        word_budget = _get_budget(budget)
        template = ARC_TEMPLATES[brief.arc]
        base_target = word_budget.max // len(template.scenes)
        targets = _turn_adjusted_targets(template, base_target)
        fallback = _fallback_candidates(brief)

        scenes = []
        for index, (role, target) in enumerate(zip(template.scenes, targets)):
            candidates = itertools.chain(_role_candidates(role, brief), itertools.cycle(fallback))
            sentences = _compose_scene_text(candidates, target, word_budget.max_sentences_per_scene)
            citation = self._citation_for(role, provenance)
            if citation:
                sentences.insert(1, citation)
            text = " ".join(sentences)
            scenes.append(self._build_scene(index, role, text, provenance))

        total_words = sum(s.word_count for s in scenes)
        within_budget = word_budget.min <= total_words <= word_budget.max
        if self.verbose and not within_budget:
            console.print(
                f"[yellow]Script word count {total_words} outside {budget} "
                f"range {word_budget.min}-{word_budget.max}[/yellow]"
            )

        return VOScript(
            scenes=scenes,
            total_words=total_words,
            total_estimated_ms=sum(s.estimated_duration_ms for s in scenes),
            budget=budget,
            within_budget=within_budget,
            target_wpm=self.target_wpm,
        )

    def _citation_for(self, role: str, provenance: Sequence[Provenance]) -> str | None:
        if role in ("PROOF", "RESULT") and provenance:
            return f"[prov:{provenance[0].id}]"
        return None

    def _build_scene(
        self, index: int, role: str, text: str, provenance: Sequence[Provenance]
    ) -> VOScene:
        word_count = count_words(text)
        return VOScene(
            id=f"scene-{index + 1}-{role.lower()}",
            role=role,
            text=text,
            sentences=split_sentences(text),
            evidence_tokens=extract_evidence_tokens(text, provenance),
            word_count=word_count,
            estimated_duration_ms=estimate_text_ms(word_count, self.target_wpm),
        )


# ============================================================================
# VALIDATION
# ============================================================================


@dataclass
class ScriptValidation:
    """Outcome of checking a script against its word budget."""

    budget: str
    total_words: int
    over_budget_by: int = 0
    under_budget_by: int = 0
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def within_budget(self) -> bool:
        return self.over_budget_by == 0 and self.under_budget_by == 0

    @property
    def valid(self) -> bool:
        return self.within_budget and not self.issues

    def to_dict(self) -> dict:
        return {
            "budget": self.budget,
            "totalWords": self.total_words,
            "overBudgetBy": self.over_budget_by,
            "underBudgetBy": self.under_budget_by,
            "issues": self.issues,
            "suggestions": self.suggestions,
            "warnings": self.warnings,
            "valid": self.valid,
        }


def _template_for(script: VOScript) -> ArcTemplate | None:
    roles = tuple(scene.role for scene in script.scenes)
    for template in ARC_TEMPLATES.values():
        if template.scenes == roles:
            return template
    return None


def validate_script(script: VOScript, budget: str | None = None) -> ScriptValidation:
    """Report budget and sentence-cap violations. Never raises on violations.

    Args:
        script: The script to check.
        budget: Duration class; defaults to the one the script was built for.
    """
    budget = budget or script.budget
    word_budget = _get_budget(budget)
    total = script.total_words
    scene_total = sum(scene.word_count for scene in script.scenes)

    validation = ScriptValidation(
        budget=budget,
        total_words=total,
        over_budget_by=max(0, total - word_budget.max),
        under_budget_by=max(0, word_budget.min - total),
    )
    if validation.over_budget_by:
        validation.suggestions.append(f"Remove {validation.over_budget_by} words")
    if validation.under_budget_by:
        validation.suggestions.append(f"Add {validation.under_budget_by} words")
    if scene_total != total:
        validation.issues.append(f"totalWords is {total} but scenes hold {scene_total} words")

    for i, scene in enumerate(script.scenes):
        if len(scene.sentences) > word_budget.max_sentences_per_scene:
            validation.issues.append(
                f"Scene {i + 1} has {len(scene.sentences)} sentences "
                f"(max {word_budget.max_sentences_per_scene})"
            )
            validation.suggestions.append(f"Combine sentences in scene {i + 1}")

    template = _template_for(script)
    total_ms = sum(scene.estimated_duration_ms for scene in script.scenes)
    if template and total_ms > 0:
        turn_start = sum(s.estimated_duration_ms for s in script.scenes[: template.turn_index])
        fraction = turn_start / total_ms
        if fraction > template.turn_by_percent:
            validation.warnings.append(
                f"Turn scene starts at {fraction:.0%} of runtime "
                f"(should be by {template.turn_by_percent:.0%})"
            )

    return validation


def enforce_budget(validation: ScriptValidation) -> ScriptValidation:
    """Raise BudgetExceededError unless the validation passed."""
    if not validation.valid:
        problems = []
        if validation.over_budget_by:
            problems.append(f"over budget by {validation.over_budget_by} words")
        if validation.under_budget_by:
            problems.append(f"under budget by {validation.under_budget_by} words")
        problems.extend(validation.issues)
        raise BudgetExceededError(f"{validation.budget}: " + "; ".join(problems))
    return validation
