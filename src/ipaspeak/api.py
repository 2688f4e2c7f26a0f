"""High-level API for ipaspeak library usage."""

from dataclasses import replace
from pathlib import Path

from .cache.memory import AudioCache
from .config import IpaspeakConfig
from .providers import ProviderRegistry
from .tts.client import SynthesisClient
from .tts.pipeline import SpeechPipeline


async def pronounce(
    ipa: str,
    language: str | None = None,
    provider: str | None = None,
    voice: str | None = None,
    output: str | Path | None = None,
    config: IpaspeakConfig | None = None,
) -> bytes:
    """Speak an IPA transcription.

    Args:
        ipa: IPA text, e.g. "/ˈkæt/"
        language: Language name or code (None uses the configured default)
        provider: TTS provider name (None uses the configured provider)
        voice: Voice ID; overrides the configured per-language voices
        output: File path to save the audio to
        config: Configuration to use (defaults when omitted)

    Returns:
        Encoded audio bytes

    Raises:
        NormalizationError: If the IPA input is invalid
        SynthesisError: If synthesis fails
        KeyError: If provider not found
        OSError: If file save fails
    """
    config = config or IpaspeakConfig()
    provider_config = config.provider
    if provider:
        provider_config = replace(provider_config, name=provider)
    if voice:
        provider_config = replace(provider_config, voice=voice, voices={})
    config = replace(config, provider=provider_config)

    tts_provider = ProviderRegistry.create(provider_config.name, provider_config)
    client = SynthesisClient.from_config(tts_provider, provider_config)
    pipeline = SpeechPipeline.from_config(config, client, AudioCache.from_config(config.cache))

    result = await pipeline.process(ipa, language)

    if output:
        Path(output).write_bytes(result.clip.audio)

    return result.clip.audio
