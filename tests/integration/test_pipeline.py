"""Integration tests for SpeechPipeline with real client and cache."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from conftest import FakeProvider, no_sleep

from ipaspeak.cache.memory import AudioCache
from ipaspeak.tts.client import SynthesisClient
from ipaspeak.tts.errors import TransientProviderError
from ipaspeak.tts.pipeline import SpeechPipeline


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestCacheKeyConsistency:
    """Test that equivalent inputs share one cached clip."""

    @pytest.mark.asyncio
    async def test_equivalent_spellings_hit_cache(self) -> None:
        """
        INVARIANT: Inputs differing only in delimiters, case and composition share audio
        BREAKS: Same word synthesized many times, wasting provider quota
        """
        provider = FakeProvider()
        client = SynthesisClient(provider, timeout=1.0, sleep=no_sleep)
        pipeline = SpeechPipeline(client, AudioCache(), default_voice="v")

        first = await pipeline.process("/ˈkæt/")
        second = await pipeline.process("  [ˈKæt]  ")
        third = await pipeline.process("ˈkæt", language="en-US")

        assert first.cached is False
        assert second.cached is True
        assert third.cached is True
        assert first.clip == second.clip == third.clip
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_language_separates_cache_entries(self) -> None:
        """
        INVARIANT: The same IPA in two languages is synthesized separately
        BREAKS: French word spoken with an English voice
        """
        provider = FakeProvider()
        client = SynthesisClient(provider, timeout=1.0, sleep=no_sleep)
        pipeline = SpeechPipeline(client, AudioCache(), default_voice="v")

        english = await pipeline.process("pa")
        french = await pipeline.process("pa", language="French")

        assert english.clip != french.clip
        assert provider.call_count == 2


class TestRetryThroughPipeline:
    """Test retries happen below the cache."""

    @pytest.mark.asyncio
    async def test_transient_failure_retried_once_for_all_waiters(self) -> None:
        """
        INVARIANT: Waiters coalesced on a retrying synthesis all get the final clip
        BREAKS: Concurrent readers see errors the retry already recovered from
        """
        gate = asyncio.Event()
        provider = FakeProvider(script=[TransientProviderError("503"), b"ID3ok"], gate=gate)
        client = SynthesisClient(provider, timeout=1.0, max_retries=2, sleep=no_sleep)
        cache = AudioCache()
        pipeline = SpeechPipeline(client, cache, default_voice="v")

        tasks = [asyncio.create_task(pipeline.process("/dɒɡ/")) for _ in range(5)]
        await provider.started.wait()
        gate.set()
        results = await asyncio.gather(*tasks)

        assert {r.clip.audio for r in results} == {b"ID3ok"}
        assert provider.call_count == 2
        assert cache.stats().misses == 1
        assert cache.stats().coalesced == 4


class TestCacheBoundsThroughPipeline:
    """Test cache bounds while serving real requests."""

    @pytest.mark.asyncio
    async def test_least_recently_used_word_is_evicted(self) -> None:
        """
        INVARIANT: Entry limit evicts the least recently used pronunciation
        BREAKS: Memory grows without bound on a busy server
        """
        provider = FakeProvider()
        client = SynthesisClient(provider, timeout=1.0, sleep=no_sleep)
        cache = AudioCache(max_entries=2)
        pipeline = SpeechPipeline(client, cache, default_voice="v")

        await pipeline.process("kæt")
        await pipeline.process("dɒɡ")
        await pipeline.process("kæt")
        await pipeline.process("fɪʃ")

        assert (await pipeline.process("kæt")).cached is True
        assert (await pipeline.process("dɒɡ")).cached is False
        assert cache.stats().evictions == 2

    @pytest.mark.asyncio
    async def test_expired_entry_is_synthesized_again(self) -> None:
        """
        INVARIANT: Entries older than the TTL are not served
        BREAKS: Voice changes never reach readers
        """
        clock = FakeClock()
        provider = FakeProvider()
        client = SynthesisClient(provider, timeout=1.0, sleep=no_sleep)
        cache = AudioCache(ttl_seconds=60, clock=clock)
        pipeline = SpeechPipeline(client, cache, default_voice="v")

        await pipeline.process("kæt")
        clock.now = 59.0
        assert (await pipeline.process("kæt")).cached is True

        clock.now = 61.0
        result = await pipeline.process("kæt")

        assert result.cached is False
        assert provider.call_count == 2
        assert cache.stats().expirations == 1
