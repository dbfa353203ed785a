"""Speech synthesis providers."""

import base64
import hashlib
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
import openai

from ..config import Config, TTSConfig

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1"


class SynthesisError(Exception):
    """Speech synthesis failed. Nothing is cached for the attempt."""

    pass


class SynthesisCancelled(SynthesisError):
    """Synthesis was cancelled by the caller before its result was kept."""

    pass


@dataclass
class SynthesisResult:
    """Audio bytes plus the duration the provider reported, if any."""

    audio: bytes
    duration_ms: int | None = None


class TTSProvider(ABC):
    """Abstract base class for TTS providers."""

    def __init__(self, config: TTSConfig):
        self.config = config

    @abstractmethod
    def synthesize(
        self,
        text: str,
        voice: str | None = None,
        speed: float = 1.0,
        timeout: float | None = None,
    ) -> SynthesisResult:
        """Synthesize speech for text.

        Args:
            text: Spoken text (no evidence tokens).
            voice: Voice id; defaults to the configured voice.
            speed: Playback speed multiplier.
            timeout: Seconds before the call is abandoned.

        Returns:
            SynthesisResult with the encoded audio.

        Raises:
            SynthesisError: On any provider failure.
        """
        pass


class MockTTSProvider(TTSProvider):
    """Deterministic offline provider for tests and dry runs."""

    def __init__(self, config: TTSConfig | None = None, duration_ms: int | None = None):
        super().__init__(config or TTSConfig(provider="mock"))
        self.duration_ms = duration_ms
        self.calls = 0

    def synthesize(self, text, voice=None, speed=1.0, timeout=None):
        self.calls += 1
        digest = hashlib.sha256(f"{voice or self.config.voice_id}:{speed}:{text}".encode()).digest()
        return SynthesisResult(audio=b"ID3MOCK" + digest, duration_ms=self.duration_ms)


class OpenAITTSProvider(TTSProvider):
    """OpenAI speech endpoint (tts-1 family)."""

    def __init__(self, config: TTSConfig, api_key: str | None = None, client=None):
        super().__init__(config)
        self._client = client
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")

    def _get_client(self, timeout: float | None):
        if self._client is not None:
            return self._client
        if not self._api_key:
            raise SynthesisError("OPENAI_API_KEY is not set")
        return openai.OpenAI(api_key=self._api_key, timeout=timeout or self.config.timeout_seconds)

    def synthesize(self, text, voice=None, speed=1.0, timeout=None):
        client = self._get_client(timeout)
        try:
            response = client.audio.speech.create(
                model=self.config.model,
                voice=voice or self.config.voice_id,
                input=text,
                response_format=self.config.output_format,
                speed=speed,
            )
        except openai.OpenAIError as e:
            raise SynthesisError(f"OpenAI TTS failed: {e}") from e
        # The speech endpoint does not report a duration
        return SynthesisResult(audio=response.content)


class ElevenLabsTTSProvider(TTSProvider):
    """ElevenLabs text-to-speech with character alignment."""

    def __init__(
        self,
        config: TTSConfig,
        api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(config)
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        self._transport = transport

    def synthesize(self, text, voice=None, speed=1.0, timeout=None):
        if not self._api_key:
            raise SynthesisError("ELEVENLABS_API_KEY is not set")

        voice_id = voice or self.config.voice_id
        payload = {
            "text": text,
            "model_id": self.config.model,
            "voice_settings": {"speed": speed},
        }
        headers = {"xi-api-key": self._api_key, "Content-Type": "application/json"}

        try:
            with httpx.Client(
                timeout=timeout or self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = client.post(
                    f"{ELEVENLABS_API_URL}/text-to-speech/{voice_id}/with-timestamps",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise SynthesisError(f"ElevenLabs TTS failed: {e}") from e
        except ValueError as e:
            raise SynthesisError(f"ElevenLabs returned malformed JSON: {e}") from e

        if "audio_base64" not in data:
            raise SynthesisError("ElevenLabs response has no audio")
        audio = base64.b64decode(data["audio_base64"])

        end_times = (data.get("alignment") or {}).get("character_end_times_seconds") or []
        duration_ms = int(round(max(end_times) * 1000)) if end_times else None
        return SynthesisResult(audio=audio, duration_ms=duration_ms)


def get_tts_provider(config: Config | None = None) -> TTSProvider:
    """Get the TTS provider named in configuration.

    Raises:
        ValueError: If provider name is not recognized.
    """
    if config is None:
        from ..config import load_config

        config = load_config()

    provider_name = config.tts.provider.lower()

    if provider_name == "mock":
        return MockTTSProvider(config.tts)
    elif provider_name == "openai":
        return OpenAITTSProvider(config.tts)
    elif provider_name == "elevenlabs":
        return ElevenLabsTTSProvider(config.tts)
    else:
        raise ValueError(f"Unknown TTS provider: {provider_name}")
