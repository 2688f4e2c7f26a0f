"""Data models for the audio cache."""

from dataclasses import dataclass, field

from ..tts.models import AudioClip


@dataclass
class CacheEntry:
    """Cache entry holding a complete synthesized clip.

    The clip is immutable; only the access timestamp changes after insertion.

    Attributes:
        clip: Synthesized audio and its content type
        created_at: Monotonic time the entry became visible
        last_access: Monotonic time of the most recent hit
    """

    clip: AudioClip
    created_at: float
    last_access: float = field(default=0.0)

    @property
    def size(self) -> int:
        return self.clip.size


@dataclass
class CacheStats:
    """Counters describing cache activity."""

    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    evictions: int = 0
    expirations: int = 0
    entries: int = 0
    bytes: int = 0
    inflight: int = 0
