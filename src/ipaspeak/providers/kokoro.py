"""Kokoro text-to-speech provider implementation."""

import asyncio
import io
import logging
import threading
from typing import TYPE_CHECKING

import numpy as np
import soundfile as sf
import torch
from kokoro import KPipeline

from ..ipa.markup import MISAKI
from ..tts.errors import FatalProviderError, ProviderRejectedError
from .base import TTSProvider

if TYPE_CHECKING:
    from ..config import ProviderConfig
    from ..ipa.markup import MarkupPayload

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
DEFAULT_VOICE = "af_heart"

# Voice prefix -> lang_code mapping
LANG_CODES = {"a": "a", "b": "b"}

VOICES = [
    "af_heart",
    "af_alloy",
    "af_aoede",
    "af_bella",
    "af_jessica",
    "af_kore",
    "af_nicole",
    "af_nova",
    "af_river",
    "af_sarah",
    "af_sky",
    "am_adam",
    "am_echo",
    "am_eric",
    "am_fenrir",
    "am_liam",
    "am_michael",
    "am_onyx",
    "am_puck",
    "am_santa",
    "bf_alice",
    "bf_emma",
    "bf_isabella",
    "bf_lily",
    "bm_daniel",
    "bm_fable",
    "bm_george",
    "bm_lewis",
]


class KokoroProvider(TTSProvider):
    """Kokoro TTS provider using local neural speech synthesis.

    Uses the Kokoro-82M model for GPU-accelerated (MPS/CUDA) or CPU-based
    generation. Phonemes arrive in misaki's inline syntax, ``[word](/IPA/)``,
    so the model speaks the given IPA instead of its own G2P output.

    Automatically selects American or British pipeline based on voice prefix.
    """

    name = "kokoro"
    dialect = MISAKI
    content_type = "audio/wav"
    # Kokoro's context window in phoneme tokens
    max_ipa_length = 510

    def __init__(self, device: str = "auto") -> None:
        """Initialize Kokoro provider with lazy pipeline creation."""
        self._device = self._resolve_device(device)
        self._pipelines: dict[str, KPipeline] = {}
        self._pipeline_lock = threading.Lock()
        # Worker threads outlive a timed-out attempt; one inference runs at a time
        self._inference_lock = threading.Lock()
        logger.info(f"Kokoro using device: {self._device}")

    @classmethod
    def from_config(cls, config: "ProviderConfig") -> "KokoroProvider":
        return cls(device=config.device)

    def _get_pipeline(self, voice: str) -> KPipeline:
        """Get or create a KPipeline for the given voice's language.

        Pipelines are cached by lang_code so switching between American
        and British voices doesn't reload the model unnecessarily.
        """
        lang_code = LANG_CODES.get(voice[0], "a") if voice else "a"
        with self._pipeline_lock:
            if lang_code not in self._pipelines:
                logger.info(f"Creating Kokoro pipeline for lang_code='{lang_code}'")
                self._pipelines[lang_code] = KPipeline(
                    lang_code=lang_code, device=self._device
                )
            return self._pipelines[lang_code]

    @staticmethod
    def _resolve_device(device: str) -> str:
        """Resolve compute device.

        'auto' selects the best available device.
        Explicit values ('mps', 'cuda', 'cpu') are passed through.
        """
        if device == "auto":
            if torch.cuda.is_available():
                return "cuda"
            if torch.backends.mps.is_available():
                return "mps"
            return "cpu"

        return device

    async def synthesize(self, markup: "MarkupPayload", voice: str = DEFAULT_VOICE) -> bytes:
        """Convert misaki phoneme markup to speech using Kokoro neural TTS.

        Args:
            markup: Misaki inline phoneme markup
            voice: Kokoro voice ID (e.g., af_heart, bf_isabella, am_adam)

        Returns:
            Audio data as bytes (WAV format, 24kHz)

        Raises:
            ProviderRejectedError: If the model cannot voice the phonemes
            FatalProviderError: If the model fails to run
        """
        if markup.dialect != self.dialect:
            raise FatalProviderError(
                f"Kokoro expects {self.dialect} markup, got {markup.dialect}"
            )

        if voice not in VOICES:
            logger.debug(f"Unknown Kokoro voice {voice!r}, using {DEFAULT_VOICE}")
            voice = DEFAULT_VOICE

        def _generate() -> bytes:
            pipeline = self._get_pipeline(voice)
            with self._inference_lock:
                chunks = [
                    np.asarray(audio, dtype=np.float32)
                    for _, _, audio in pipeline(markup.text, voice=voice)
                    if audio is not None
                ]
            if not chunks:
                raise ProviderRejectedError("no audio produced for the given phonemes")
            buf = io.BytesIO()
            sf.write(buf, np.concatenate(chunks), SAMPLE_RATE, format="WAV")
            return buf.getvalue()

        try:
            return await asyncio.to_thread(_generate)
        except ProviderRejectedError:
            raise
        except (ValueError, KeyError, IndexError) as e:
            raise ProviderRejectedError(str(e), original_error=e) from e
        except Exception as e:
            raise FatalProviderError(f"Kokoro synthesis failed: {e}", e) from e

    async def list_voices(self) -> list[dict]:
        """List available Kokoro voices.

        Returns:
            List of voice dictionaries with id, name, and provider fields.
        """
        return [{"id": v, "name": v, "provider": self.name} for v in VOICES]
