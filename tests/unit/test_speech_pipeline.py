"""Unit tests for SpeechPipeline orchestration."""

import asyncio
import random
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from conftest import FakeProvider, no_sleep

from ipaspeak.cache.memory import AudioCache
from ipaspeak.ipa.markup import MISAKI
from ipaspeak.tts.client import SynthesisClient
from ipaspeak.tts.errors import (
    EmptyInputError,
    InvalidSymbolError,
    ProviderConstraintError,
    ProviderRejectedError,
)
from ipaspeak.tts.pipeline import SpeechPipeline


def make_pipeline(provider: FakeProvider, **kwargs) -> SpeechPipeline:
    client = SynthesisClient(provider, timeout=1.0, sleep=no_sleep)
    return SpeechPipeline(client, AudioCache(), **kwargs)


class TestSpeechPipelineProcess:
    """Test the IPA to audio workflow."""

    @pytest.mark.asyncio
    async def test_process_synthesizes_and_reports_miss(self) -> None:
        """Test /kæt/ is normalized, marked up and synthesized."""
        provider = FakeProvider(script=[b"ID3cat"])
        pipeline = make_pipeline(provider, default_voice="v")

        result = await pipeline.process("/kæt/")

        assert result.clip.audio == b"ID3cat"
        assert result.clip.content_type == "audio/mpeg"
        assert result.key.cache_key == "en-US:kæt"
        assert result.cached is False
        markup, voice = provider.calls[0]
        assert markup.text == '<phoneme alphabet="ipa" ph="kæt"></phoneme>'
        assert voice == "v"

    @pytest.mark.asyncio
    async def test_equivalent_inputs_hit_the_cache(self) -> None:
        """Test inputs normalizing to the same key reuse the cached audio."""
        provider = FakeProvider()
        pipeline = make_pipeline(provider)

        first = await pipeline.process("/kæt/")
        second = await pipeline.process("  [KæT] ")

        assert second.cached is True
        assert second.clip is first.clip
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_language_changes_the_key(self) -> None:
        """Test the same IPA in another language is synthesized separately."""
        provider = FakeProvider()
        pipeline = make_pipeline(provider)

        await pipeline.process("/pɛ/", language="English")
        result = await pipeline.process("/pɛ/", language="French")

        assert result.cached is False
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_invalid_input_never_reaches_provider(self) -> None:
        """Test normalization errors are raised before any synthesis."""
        provider = FakeProvider()
        pipeline = make_pipeline(provider)

        with pytest.raises(EmptyInputError):
            await pipeline.process("")
        with pytest.raises(InvalidSymbolError):
            await pipeline.process("/kæ\x07t/")

        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_max_length_is_applied(self) -> None:
        """Test the configured IPA length bound is used."""
        pipeline = make_pipeline(FakeProvider(), max_ipa_length=3)

        await pipeline.process("/kæt/")
        with pytest.raises(Exception, match="at most 3"):
            await pipeline.process("/kæts/")

    @pytest.mark.asyncio
    async def test_provider_limit_is_enforced(self) -> None:
        """Test a provider's own IPA limit raises a constraint error."""
        provider = FakeProvider()
        provider.max_ipa_length = 2
        pipeline = make_pipeline(provider)

        with pytest.raises(ProviderConstraintError):
            await pipeline.process("/kæt/")

        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_markup_follows_provider_dialect(self) -> None:
        """Test misaki providers receive inline phoneme markup."""
        provider = FakeProvider()
        provider.dialect = MISAKI
        pipeline = make_pipeline(provider)

        await pipeline.process("/kæt/")

        assert provider.calls[0][0].text == "[kæt](/kæt/)"

    @pytest.mark.asyncio
    async def test_rejection_is_not_cached(self) -> None:
        """Test a rejected synthesis is retried on the next request."""
        provider = FakeProvider(script=[ProviderRejectedError("nope"), b"audio"])
        pipeline = make_pipeline(provider)

        with pytest.raises(ProviderRejectedError):
            await pipeline.process("/kæt/")
        result = await pipeline.process("/kæt/")

        assert result.clip.audio == b"audio"
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_synthesis(self) -> None:
        """Test concurrent identical requests produce one provider call."""
        gate = asyncio.Event()
        provider = FakeProvider(gate=gate)
        pipeline = make_pipeline(provider)

        tasks = [asyncio.create_task(pipeline.process("/kæt/")) for _ in range(5)]
        await provider.started.wait()
        gate.set()
        results = await asyncio.gather(*tasks)

        assert provider.call_count == 1
        assert len({result.clip.audio for result in results}) == 1


class TestSpeechPipelineVoices:
    """Test voice selection per language."""

    def test_voice_chosen_from_language_prefix(self) -> None:
        """Test voices are picked from the list for the language prefix."""
        pipeline = make_pipeline(
            FakeProvider(),
            voices={"en": ("a", "b"), "fr": ("c",)},
            default_voice="fallback",
            rng=random.Random(0),
        )

        assert pipeline.choose_voice("en-US") in {"a", "b"}
        assert pipeline.choose_voice("fr-CA") == "c"

    def test_default_voice_when_language_has_none(self) -> None:
        """Test languages without configured voices use the default voice."""
        pipeline = make_pipeline(FakeProvider(), voices={"en": ("a",)}, default_voice="fallback")

        assert pipeline.choose_voice("de-AT") == "fallback"

    def test_from_config(self, test_config) -> None:
        """Test pipeline settings come from the config."""
        client = SynthesisClient(FakeProvider())
        pipeline = SpeechPipeline.from_config(test_config, client, AudioCache())

        assert pipeline.max_ipa_length == 50
        assert pipeline.default_language == "English"
        assert pipeline.voices == {"en": ("voice-en",)}
        assert pipeline.default_voice == "default-voice"
