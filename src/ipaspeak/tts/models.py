"""TTS data models with validation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AudioClip:
    """Synthesized audio with the content type it is served as.

    Clips are immutable; the cache and every response share the same bytes.

    Args:
        audio: Complete encoded audio payload
        content_type: MIME type, e.g. "audio/mpeg"
    """

    audio: bytes
    content_type: str

    def __post_init__(self) -> None:
        """Validate clip contents."""
        if not self.audio:
            raise ValueError("audio cannot be empty")
        if not self.content_type.startswith("audio/"):
            raise ValueError(f"content_type must be an audio type, got {self.content_type}")

    @property
    def size(self) -> int:
        return len(self.audio)


@dataclass
class VoiceSettings:
    """Voice generation settings.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        use_speaker_boost: Whether to use speaker boost
        speed: Speaking rate (0.7-1.2)
    """

    stability: float = 0.75
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    speed: float = 0.9

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")
        if not 0.7 <= self.speed <= 1.2:
            raise ValueError("speed must be between 0.7 and 1.2")

    def to_dict(self) -> dict[str, float | bool]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
            "speed": self.speed,
        }
