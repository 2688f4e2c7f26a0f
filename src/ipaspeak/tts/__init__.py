"""TTS (Text-to-Speech) package for ipaspeak.

The synthesis client and pipeline live in ``ipaspeak.tts.client`` and
``ipaspeak.tts.pipeline``; this package exports the shared errors and models.
"""

from .errors import (
    FatalProviderError,
    NormalizationError,
    ProviderRejectedError,
    SynthesisError,
    SynthesisTimeoutError,
    TransientProviderError,
    TTSAuthError,
    TTSError,
)
from .models import AudioClip, VoiceSettings

__all__ = [
    "AudioClip",
    "FatalProviderError",
    "NormalizationError",
    "ProviderRejectedError",
    "SynthesisError",
    "SynthesisTimeoutError",
    "TTSAuthError",
    "TTSError",
    "TransientProviderError",
    "VoiceSettings",
]
