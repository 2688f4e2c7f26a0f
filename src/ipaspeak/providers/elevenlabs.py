"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import math
import os
from typing import TYPE_CHECKING

import httpx
from elevenlabs.client import ElevenLabs
from elevenlabs.core.api_error import ApiError

from ..ipa.markup import SSML
from ..tts.errors import (
    FatalProviderError,
    ProviderRejectedError,
    SynthesisError,
    SynthesisTimeoutError,
    TransientProviderError,
    TTSAuthError,
)
from ..tts.models import VoiceSettings
from .base import TTSProvider

if TYPE_CHECKING:
    from ..config import ProviderConfig
    from ..ipa.markup import MarkupPayload

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "mp3_44100_128"


class ElevenLabsProvider(TTSProvider):
    """ElevenLabs TTS provider implementation.

    Sends SSML phoneme tags to the ElevenLabs API. Phoneme tags are honored
    by the eleven_flash_v2, eleven_turbo_v2 and eleven_monolingual_v1 models.
    """

    name = "elevenlabs"
    dialect = SSML
    content_type = "audio/mpeg"

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str = "eleven_flash_v2",
        timeout: float = 5.0,
        voice_settings: VoiceSettings | None = None,
    ) -> None:
        """Initialize ElevenLabs provider.

        Args:
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVENLABS_API_KEY environment variable.
            model_id: ElevenLabs model ID to use
            timeout: HTTP timeout in seconds for a single request
            voice_settings: Voice generation settings

        Raises:
            TTSAuthError: If API key is not provided or invalid.
        """
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        if not self._api_key:
            raise TTSAuthError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                "variable or provide api_key parameter."
            )

        try:
            self._client = ElevenLabs(api_key=self._api_key)
        except Exception as e:
            raise TTSAuthError(f"Failed to initialize ElevenLabs client: {e}", e) from e

        self._model_id = model_id
        self._timeout = timeout
        self._voice_settings = voice_settings or VoiceSettings()

        # Cache for voices to avoid repeated API calls
        self._voices_cache: list[dict] | None = None

    @classmethod
    def from_config(cls, config: "ProviderConfig") -> "ElevenLabsProvider":
        return cls(model_id=config.model, timeout=config.timeout)

    async def synthesize(self, markup: "MarkupPayload", voice: str) -> bytes:
        """Convert SSML phoneme markup to speech audio bytes.

        Args:
            markup: SSML markup
            voice: Voice ID to use for synthesis

        Returns:
            Audio data as bytes (MP3 format)

        Raises:
            SynthesisError: Classified provider failure
        """
        if markup.dialect != self.dialect:
            raise FatalProviderError(
                f"ElevenLabs expects {self.dialect} markup, got {markup.dialect}"
            )
        if not voice:
            raise FatalProviderError("No ElevenLabs voice configured")

        # Run synchronous ElevenLabs client in thread to avoid blocking event loop
        def _sync_convert() -> bytes:
            audio_generator = self._client.text_to_speech.convert(
                text=markup.text,
                voice_id=voice,
                model_id=self._model_id,
                output_format=OUTPUT_FORMAT,
                voice_settings=self._voice_settings.to_dict(),
                request_options={"timeout_in_seconds": math.ceil(self._timeout)},
            )
            # Collect all audio chunks
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            raise classify_error(e) from e

        if not audio_bytes:
            raise TransientProviderError("No audio data received from API")

        return audio_bytes

    async def list_voices(self) -> list[dict]:
        """Get list of available voices.

        Results are cached after first call to avoid repeated API requests.

        Returns:
            List of voice dictionaries with id, name, and provider fields

        Raises:
            SynthesisError: If API call fails
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[dict]:
            response = self._client.voices.get_all()
            return [
                {"id": voice.voice_id, "name": voice.name, "provider": self.name}
                for voice in response.voices
            ]

        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except Exception as e:
            raise classify_error(e) from e

        self._voices_cache = voices
        return voices


def classify_error(error: Exception) -> SynthesisError:
    """Map an ElevenLabs SDK or transport exception onto the synthesis taxonomy.

    Args:
        error: Exception raised by the SDK call

    Returns:
        SynthesisError subclass describing whether the failure is retryable
    """
    if isinstance(error, SynthesisError):
        return error
    if isinstance(error, httpx.TimeoutException):
        return SynthesisTimeoutError(f"ElevenLabs request timed out: {error}", error)
    if isinstance(error, httpx.TransportError):
        return TransientProviderError(f"Network error: {error}", original_error=error)

    if isinstance(error, ApiError) and error.status_code is not None:
        status = error.status_code
        detail = _error_detail(error)
        if status in (401, 403):
            if "quota" in detail.lower():
                return ProviderRejectedError("quota exceeded", status, error)
            return TTSAuthError(f"Authentication failed: {detail}", error)
        if status == 429:
            return TransientProviderError(f"Rate limit exceeded: {detail}", status, error)
        if status >= 500:
            return TransientProviderError(f"Server error: {detail}", status, error)
        return ProviderRejectedError(detail, status, error)

    message = str(error)
    if "unauthorized" in message.lower() or "401" in message:
        return TTSAuthError(f"Authentication failed: {message}", error)
    if "429" in message:
        return TransientProviderError(f"Rate limit exceeded: {message}", 429, error)
    logger.error(f"Unclassified ElevenLabs failure: {error!r}")
    return FatalProviderError(f"API call failed: {message}", error)


def _error_detail(error: ApiError) -> str:
    body = error.body
    if isinstance(body, dict):
        detail = body.get("detail", body)
        if isinstance(detail, dict):
            status = detail.get("status")
            message = detail.get("message")
            return ": ".join(str(part) for part in (status, message) if part) or str(detail)
        return str(detail)
    return str(body) if body else f"HTTP {error.status_code}"
