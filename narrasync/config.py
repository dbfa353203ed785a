"""Configuration loading and management."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class VideoConfig(BaseModel):
    """Video output configuration."""

    fps: int = 30
    format: str = "vertical"


class TTSConfig(BaseModel):
    """Text-to-speech configuration."""

    provider: str = "openai"
    voice_id: str = "nova"
    model: str = "tts-1"
    # Neutral speed keeps the duration estimates honest
    speed: float = 1.0
    output_format: str = "mp3"
    timeout_seconds: float = 60.0


class TimingConfig(BaseModel):
    """Speech timing estimation and cache configuration."""

    target_wpm: int = 110
    sentence_pause_ms: int = 200
    syllables_per_second: float = 3.5
    min_word_ms: int = 150
    cache_dir: str = "cache/tts"
    cache_key_length: int = 16


class ScriptConfig(BaseModel):
    """VO script generation configuration."""

    strict_budget: bool = False


class AlignmentConfig(BaseModel):
    """Cue alignment and motion validation configuration."""

    tolerance_sec: float = 0.2
    max_concurrent: int = 3


class GapConfig(BaseModel):
    """Fixed overhead inserted between beats, scenes and acts (seconds)."""

    beat_gap_sec: float = 1.5
    scene_gap_sec: float = 2.0
    act_gap_sec: float = 3.0


class Config(BaseModel):
    """Main application configuration."""

    video: VideoConfig = Field(default_factory=VideoConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    script: ScriptConfig = Field(default_factory=ScriptConfig)
    alignment: AlignmentConfig = Field(default_factory=AlignmentConfig)
    gaps: GapConfig = Field(default_factory=GapConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()

        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump()
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file or use defaults."""
    if config_path is None:
        # Look for config.yaml in current directory or project root
        candidates = [Path("config.yaml"), Path(__file__).parent.parent / "config.yaml"]
        for candidate in candidates:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is not None:
        return Config.from_yaml(config_path)

    return Config()
