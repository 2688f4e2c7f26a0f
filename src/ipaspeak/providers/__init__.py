"""Provider abstraction for text-to-speech services.

This module provides a registry pattern for managing TTS providers,
allowing runtime selection of different TTS backends. Providers may be
registered by class or by an import path, which keeps heavy optional
dependencies (the local Kokoro model) out of the import graph until the
provider is actually selected.
"""

import importlib
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from ..config import ProviderConfig
    from .base import TTSProvider

__all__ = ["ProviderRegistry"]


class ProviderRegistry:
    """Registry for managing TTS providers.

    This class maintains a registry of available TTS providers,
    allowing registration and retrieval by name.
    """

    _providers: ClassVar[dict[str, "type[TTSProvider] | str"]] = {}

    @classmethod
    def register(cls, name: str, provider_class: "type[TTSProvider] | str") -> None:
        """Register a TTS provider.

        Args:
            name: Name to register the provider under
            provider_class: Provider class that implements TTSProvider, or
                a "package.module:ClassName" path imported on first use
        """
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["TTSProvider"]:
        """Get a provider class by name.

        Args:
            name: Name of the provider to retrieve

        Returns:
            Provider class

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        provider_class = cls._providers[name]
        if isinstance(provider_class, str):
            module_path, _, class_name = provider_class.partition(":")
            provider_class = getattr(importlib.import_module(module_path), class_name)
            cls._providers[name] = provider_class
        return provider_class

    @classmethod
    def create(cls, name: str, config: "ProviderConfig") -> "TTSProvider":
        """Create a provider instance configured for this process.

        Args:
            name: Name of the provider
            config: Provider configuration

        Returns:
            New provider instance

        Raises:
            KeyError: If provider name not found
        """
        return cls.get(name).from_config(config)


# Register providers
ProviderRegistry.register("elevenlabs", "ipaspeak.providers.elevenlabs:ElevenLabsProvider")
ProviderRegistry.register("kokoro", "ipaspeak.providers.kokoro:KokoroProvider")
