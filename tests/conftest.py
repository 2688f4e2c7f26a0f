"""Pytest configuration and fixtures for ipaspeak tests."""

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ipaspeak.config import HTTPConfig, IpaspeakConfig, ProviderConfig
from ipaspeak.ipa.markup import SSML, MarkupPayload
from ipaspeak.providers.base import TTSProvider


class FakeProvider(TTSProvider):
    """Scripted provider for tests.

    Each call consumes the next script item: bytes are returned, exceptions
    are raised. With an empty script the provider returns audio derived from
    the IPA. ``gate`` (when set) holds every call until the test releases it.
    """

    name = "fake"
    dialect = SSML
    content_type = "audio/mpeg"

    def __init__(
        self,
        script: list[bytes | Exception] | None = None,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.script = list(script or [])
        self.delay = delay
        self.gate = gate
        self.calls: list[tuple[MarkupPayload, str]] = []
        self.started = asyncio.Event()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def synthesize(self, markup: MarkupPayload, voice: str) -> bytes:
        self.calls.append((markup, voice))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.script:
            outcome = self.script.pop(0)
        else:
            outcome = f"audio:{markup.key.cache_key}".encode()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def list_voices(self) -> list[dict]:
        return [{"id": "fake-voice", "name": "Fake", "provider": self.name}]


async def no_sleep(delay: float) -> None:
    """Sleep replacement that only yields to the event loop."""
    await asyncio.sleep(0)


@pytest.fixture
def test_config() -> IpaspeakConfig:
    """Config with fast retries and rate limiting disabled."""
    return IpaspeakConfig(
        provider=ProviderConfig(
            name="fake",
            voice="default-voice",
            timeout=1.0,
            max_retries=2,
            backoff=0.0,
            deadline=5.0,
            voices={"en": ("voice-en",)},
        ),
        http=HTTPConfig(rate_limit_per_hour=0),
    )
