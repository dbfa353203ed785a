"""Speech synthesis providers."""

from .tts import (
    ElevenLabsTTSProvider,
    MockTTSProvider,
    OpenAITTSProvider,
    SynthesisCancelled,
    SynthesisError,
    SynthesisResult,
    TTSProvider,
    get_tts_provider,
)

__all__ = [
    "ElevenLabsTTSProvider",
    "MockTTSProvider",
    "OpenAITTSProvider",
    "SynthesisCancelled",
    "SynthesisError",
    "SynthesisResult",
    "TTSProvider",
    "get_tts_provider",
]
