"""
Core data models used across the pipeline.

Includes models for:
- Story IR extraction (beats and their semantic roles)
- Narrative briefs and voice-over scripts
- Pattern decisions for the rendering collaborator
- Speech timing (scene / sentence / word) and the final render plan
"""

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .text import count_words, estimate_text_ms, split_sentences


class CamelModel(BaseModel):
    """Base model persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# STORY IR MODELS
# ============================================================================


class BeatRole(str, Enum):
    """Semantic role of a narrative beat."""

    HOOK = "hook"
    PROBLEM = "problem"
    DATA = "data"
    CASE_STUDY = "case-study"
    CTA = "cta"
    DEFAULT = "default"


class EvidenceKind(str, Enum):
    """Kind of evidence a beat carries."""

    METRIC = "metric"
    TIMELINE = "timeline"
    NONE = "none"


class SeriesPoint(CamelModel):
    """One label/value pair of a chart-shaped beat."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: float


class StoryBeat(CamelModel):
    """One narrative unit. Immutable once extracted."""

    model_config = ConfigDict(frozen=True)

    text: str
    role: BeatRole = BeatRole.DEFAULT
    evidence: EvidenceKind = EvidenceKind.NONE
    series: tuple[SeriesPoint, ...] = ()


class StoryIR(CamelModel):
    """Ordered beats extracted from a source document."""

    title: Optional[str] = None
    beats: list[StoryBeat] = Field(default_factory=list)


# ============================================================================
# NARRATIVE BRIEF MODELS
# ============================================================================


class Arc(str, Enum):
    """Closed set of narrative arc templates."""

    PROBLEM_TURN_PROOF = "ProblemTurnProof"
    CASE_LED = "CaseLed"
    MMS = "MMS"


class Audience(str, Enum):
    """Target audience of a program."""

    EXEC = "exec"
    TECHNICAL = "technical"
    GENERAL = "general"


BriefText = Annotated[str, Field(max_length=120)]


class NarrativeBrief(CamelModel):
    """
    The controlling idea, arc and proof pillars that bound a whole script.

    Created once per input document and never mutated after validation.
    """

    model_config = ConfigDict(frozen=True)

    controlling_idea: BriefText
    audience_change: BriefText
    antagonist: BriefText
    stakes: BriefText
    promise: BriefText
    proof_pillars: list[BriefText] = Field(default_factory=list, max_length=3)
    next_step: BriefText
    arc: Arc
    target_duration_sec: int = Field(ge=30, le=90)
    audience: Audience = Audience.GENERAL
    allow_resequence: bool = True


# ============================================================================
# VOICE-OVER SCRIPT MODELS
# ============================================================================


class Provenance(CamelModel):
    """A citable source used to resolve evidence tokens."""

    id: str
    label: str
    href: Optional[str] = None


class EvidenceToken(CamelModel):
    """A resolved `[prov:<id>]` citation inside scene text."""

    token: str
    prov_id: str
    position: int


class VOScene(CamelModel):
    """One voice-over block, generated for one arc role.

    Scenes read back with only ``text`` get their sentences, word count and
    duration estimate derived from it.
    """

    id: str
    role: str
    text: str
    sentences: list[str] = Field(default_factory=list)
    evidence_tokens: list[EvidenceToken] = Field(default_factory=list)
    word_count: int = 0
    estimated_duration_ms: float = 0.0

    @model_validator(mode="after")
    def derive_from_text(self) -> "VOScene":
        if "sentences" not in self.model_fields_set:
            self.sentences = split_sentences(self.text)
        if "word_count" not in self.model_fields_set:
            self.word_count = count_words(self.text)
        if "estimated_duration_ms" not in self.model_fields_set:
            self.estimated_duration_ms = estimate_text_ms(self.word_count)
        return self


class VOScript(CamelModel):
    """An ordered list of scenes plus budget bookkeeping."""

    scenes: list[VOScene]
    total_words: int
    total_estimated_ms: float
    budget: str
    within_budget: bool
    target_wpm: int = 110

    @property
    def full_text(self) -> str:
        """All scene texts joined in narrative order."""
        return " ".join(scene.text for scene in self.scenes)


# ============================================================================
# PATTERN MODELS
# ============================================================================


class PatternName(str, Enum):
    """Closed set of visual templates known to the rendering collaborator."""

    TITLE_SUBHEAD = "TitleSubhead"
    CALLOUT = "CalloutPattern"
    STAT_HERO = "StatHero"
    CHART_REVEAL = "ChartReveal"
    STAT_ROW = "StatRow"
    TIMELINE = "Timeline"
    QUOTE_PULL = "QuotePull"


class PatternDecision(CamelModel):
    """A beat's visual template plus its schema-validated props."""

    pattern: PatternName
    props: dict[str, Any]
    rationale: str = ""


# ============================================================================
# TIMING MODELS (all times in integer milliseconds)
# ============================================================================


class WordTiming(CamelModel):
    word: str
    start: int
    end: int


class SentenceTiming(CamelModel):
    sentence: str
    start: int
    end: int
    words: list[WordTiming] = Field(default_factory=list)


class SceneTiming(CamelModel):
    scene_id: str
    start: int
    end: int
    sentences: list[SentenceTiming] = Field(default_factory=list)
    total_duration_ms: int = 0


class TimingExtractionResult(CamelModel):
    """Hierarchical timing for a whole script plus cache metadata."""

    scene_timings: list[SceneTiming]
    total_duration_ms: int
    cache_key: str = ""
    cache_hit: bool = False


class Cue(CamelModel):
    """A frame at which a voice-over event occurs."""

    frame: int
    id: str


class Reveal(CamelModel):
    """A planned visual reveal."""

    frame: int
    id: str


# ============================================================================
# RENDER PLAN MODELS
# ============================================================================


class RenderScene(CamelModel):
    """One scene handed to the rendering collaborator."""

    scene_id: str
    pattern: PatternName
    props: dict[str, Any]
    duration_frames: int
    cues: list[Cue] = Field(default_factory=list)
    voiceover: str = ""
    rationale: str = ""


class RenderPlan(CamelModel):
    """The finished, validated plan consumed by the renderer."""

    title: Optional[str] = None
    fps: int = 30
    format: str = "vertical"
    scenes: list[RenderScene] = Field(default_factory=list)
    total_duration_frames: int = 0
    audio_path: Optional[str] = None
    cache_key: str = ""
    warnings: list[str] = Field(default_factory=list)
