"""Abstract base class for text-to-speech providers.

This module defines the interface that all TTS providers must implement,
ensuring consistent behavior across different TTS backends.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from ..config import ProviderConfig
    from ..ipa.markup import MarkupPayload


class TTSProvider(ABC):
    """Abstract base class for text-to-speech providers.

    A provider is an opaque capability: given phoneme markup in its dialect
    it returns encoded audio bytes or raises a SynthesisError subclass.
    Timeouts and retries are applied by the synthesis client, not here.

    Class attributes:
        name: Registry name of the provider
        dialect: Markup dialect accepted by synthesize()
        content_type: MIME type of the returned audio
        max_ipa_length: Longest IPA string the provider accepts (None for no limit)

    Voice Dictionary Structure:
        Each voice returned by list_voices() should follow this structure:
        {
            "id": str,       # Unique identifier for the voice
            "name": str,     # Human-readable name for the voice
            "provider": str  # Name of the provider (e.g., "elevenlabs", "kokoro")
        }
    """

    name: ClassVar[str]
    dialect: ClassVar[str]
    content_type: ClassVar[str]
    max_ipa_length: ClassVar[int | None] = None

    @classmethod
    def from_config(cls, config: "ProviderConfig") -> "TTSProvider":
        """Create a provider from the process configuration."""
        return cls()

    @abstractmethod
    async def synthesize(self, markup: "MarkupPayload", voice: str) -> bytes:
        """Convert phoneme markup to audio bytes.

        Args:
            markup: Markup in this provider's dialect
            voice: Voice ID or name to use for synthesis

        Returns:
            Complete encoded audio (format given by content_type)

        Raises:
            SynthesisError: If synthesis fails
        """
        pass

    @abstractmethod
    async def list_voices(self) -> list[dict]:
        """Return available voices for this provider.

        Returns:
            List of voice dictionaries, each containing:
            - id: Unique voice identifier
            - name: Human-readable voice name
            - provider: Provider name

        Raises:
            SynthesisError: If voice listing fails
        """
        pass
