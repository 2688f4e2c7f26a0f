"""Synthesis client: bounded, retrying calls into a TTS provider."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from .errors import (
    FatalProviderError,
    SynthesisError,
    SynthesisTimeoutError,
    TransientProviderError,
)
from .models import AudioClip

if TYPE_CHECKING:
    from ..config import ProviderConfig
    from ..ipa.markup import MarkupPayload
    from ..providers.base import TTSProvider

logger = logging.getLogger(__name__)


class SynthesisClient:
    """Client that turns provider calls into AudioClips or typed failures.

    Each attempt is bounded by ``timeout`` and by the time left until
    ``deadline`` seconds after the first attempt, so the whole call never
    outlasts the deadline. Transient failures and timeouts are retried up to
    ``max_retries`` extra times with exponential backoff. Rejections and
    fatal errors are raised immediately.

    Example:
        client = SynthesisClient(ElevenLabsProvider(), timeout=5.0, max_retries=2)
        clip = await client.synthesize(build_markup(key), voice="21m00Tcm4TlvDq8ikWAM")
    """

    def __init__(
        self,
        provider: "TTSProvider",
        timeout: float = 5.0,
        max_retries: int = 2,
        backoff: float = 0.25,
        deadline: float = 15.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize synthesis client.

        Args:
            provider: Provider performing the actual synthesis
            timeout: Seconds allowed per attempt
            max_retries: Extra attempts for retryable failures
            backoff: Delay before the first retry, doubled for each further retry
            deadline: Seconds after the first attempt past which no retry starts
            sleep: Awaitable sleep used between attempts
            clock: Monotonic clock used for the deadline
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if max_retries < 0:
            raise ValueError(f"max_retries cannot be negative, got {max_retries}")

        self._provider = provider
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff
        self._deadline = deadline
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(
        cls, provider: "TTSProvider", config: "ProviderConfig"
    ) -> "SynthesisClient":
        return cls(
            provider,
            timeout=config.timeout,
            max_retries=config.max_retries,
            backoff=config.backoff,
            deadline=config.deadline,
        )

    @property
    def provider(self) -> "TTSProvider":
        return self._provider

    async def synthesize(self, markup: "MarkupPayload", voice: str) -> AudioClip:
        """Synthesize markup, retrying transient failures.

        Args:
            markup: Markup in the provider's dialect
            voice: Voice ID to synthesize with

        Returns:
            AudioClip with the provider's content type

        Raises:
            SynthesisTimeoutError: If the last attempt timed out
            TransientProviderError: If transient failures exhausted the retries
            ProviderRejectedError: If the provider refused the content
            FatalProviderError: If the provider is misconfigured or failed unexpectedly
        """
        provider_name = self._provider.name
        started = self._clock()
        attempt = 0

        while True:
            attempt += 1
            remaining = self._deadline - (self._clock() - started)
            if remaining <= 0:
                raise SynthesisTimeoutError(
                    f"Deadline of {self._deadline}s reached for '{markup.key.ipa}'"
                )
            attempt_timeout = min(self._timeout, remaining)
            try:
                audio = await asyncio.wait_for(
                    self._provider.synthesize(markup, voice), timeout=attempt_timeout
                )
                if not audio:
                    raise TransientProviderError(f"{provider_name} returned no audio")
                logger.debug(
                    f"Synthesized {len(audio)} bytes for '{markup.key.ipa}' "
                    f"with {provider_name}/{voice} on attempt {attempt}"
                )
                return AudioClip(audio=audio, content_type=self._provider.content_type)
            except TimeoutError as e:
                error: SynthesisError = SynthesisTimeoutError(
                    f"{provider_name} did not respond within {attempt_timeout:.2f}s", e
                )
            except SynthesisError as e:
                error = e
            except Exception as e:
                error = FatalProviderError(f"Unexpected {provider_name} failure: {e}", e)

            if not error.retryable:
                if isinstance(error, FatalProviderError):
                    logger.error(f"Provider misconfigured ({provider_name}): {error}")
                raise error

            if attempt > self._max_retries:
                logger.warning(
                    f"Giving up on '{markup.key.ipa}' after {attempt} attempts: {error}"
                )
                raise error

            delay = self._backoff * 2 ** (attempt - 1)
            if self._clock() - started + delay > self._deadline:
                logger.warning(
                    f"Deadline of {self._deadline}s reached for '{markup.key.ipa}': {error}"
                )
                raise error

            logger.warning(
                f"{provider_name} attempt {attempt}/{self._max_retries + 1} failed "
                f"({error}); retrying in {delay:.2f}s"
            )
            await self._sleep(delay)
