"""TTS pipeline orchestrator for ipaspeak.

Coordinates the IPA normalizer, markup builder, synthesis client and audio
cache so the HTTP handlers, the CLI and the library API share one workflow.
"""

import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..ipa.languages import DEFAULT_LANGUAGE, language_prefix
from ..ipa.markup import build_markup
from ..ipa.normalizer import DEFAULT_MAX_LENGTH, NormalizedKey, normalize
from .models import AudioClip

if TYPE_CHECKING:
    from ..cache.memory import AudioCache
    from ..config import IpaspeakConfig
    from .client import SynthesisClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechResult:
    """Outcome of one pipeline run.

    Args:
        clip: Audio to return to the caller
        key: Normalized key the audio belongs to
        cached: True if the clip was already cached when the request arrived
    """

    clip: AudioClip
    key: NormalizedKey
    cached: bool


class SpeechPipeline:
    """Orchestrates the IPA-to-audio workflow.

    Example:
        pipeline = SpeechPipeline(client, AudioCache(), voices={"en": ("Rachel",)})
        result = await pipeline.process("/ˈkæt/", language="English")
        # result.clip.audio -> MP3 bytes, result.cached -> False
    """

    def __init__(
        self,
        client: "SynthesisClient",
        cache: "AudioCache",
        max_ipa_length: int = DEFAULT_MAX_LENGTH,
        default_language: str = DEFAULT_LANGUAGE,
        voices: Mapping[str, tuple[str, ...]] | None = None,
        default_voice: str = "",
        rng: random.Random | None = None,
    ) -> None:
        """Initialize speech pipeline.

        Args:
            client: Synthesis client wrapping the configured provider
            cache: Shared audio cache
            max_ipa_length: Longest accepted IPA input after normalization
            default_language: Language used when a request names none
            voices: Voice IDs per two-letter language prefix
            default_voice: Voice used when no voice is listed for a language
            rng: Random source for voice selection
        """
        self.client = client
        self.cache = cache
        self.max_ipa_length = max_ipa_length
        self.default_language = default_language
        self.voices = dict(voices or {})
        self.default_voice = default_voice
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls,
        config: "IpaspeakConfig",
        client: "SynthesisClient",
        cache: "AudioCache",
    ) -> "SpeechPipeline":
        return cls(
            client,
            cache,
            max_ipa_length=config.ipa.max_length,
            default_language=config.ipa.default_language,
            voices=config.provider.voices,
            default_voice=config.provider.voice,
        )

    def choose_voice(self, language: str) -> str:
        """Pick a voice for a language code, at random among the configured ones."""
        candidates = self.voices.get(language_prefix(language))
        if not candidates:
            return self.default_voice
        return self._rng.choice(candidates)

    async def process(self, raw_ipa: str | None, language: str | None = None) -> SpeechResult:
        """Turn raw IPA text into audio.

        Args:
            raw_ipa: IPA text as received, e.g. "/ˈkæt/"
            language: Language name or code (None uses the default language)

        Returns:
            SpeechResult with the clip and whether it came from the cache

        Raises:
            NormalizationError: If the input is invalid; nothing is synthesized
            MarkupError: If the provider cannot express the IPA
            SynthesisError: If synthesis failed
        """
        key = normalize(
            raw_ipa,
            language=language,
            max_length=self.max_ipa_length,
            default_language=self.default_language,
        )
        cached = self.cache.contains(key.cache_key)
        provider = self.client.provider

        async def synthesize() -> AudioClip:
            markup = build_markup(
                key,
                dialect=provider.dialect,
                max_ipa_length=provider.max_ipa_length,
            )
            voice = self.choose_voice(key.language)
            logger.debug(f"Synthesizing '{key.ipa}' ({key.language}) with voice {voice}")
            return await self.client.synthesize(markup, voice)

        clip = await self.cache.get_or_synthesize(key.cache_key, synthesize)
        return SpeechResult(clip=clip, key=key, cached=cached)
