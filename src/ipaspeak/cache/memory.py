"""In-memory audio cache with per-key synthesis coalescing.

The cache maps a key to either a complete entry or an in-flight ticket (an
asyncio future). All mutation of that key space happens in synchronous code
between awaits, so on the event loop each mutation is an exclusive critical
section and no reader can observe a half-written entry.
"""

import asyncio
import functools
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..tts.models import AudioClip
from .models import CacheEntry, CacheStats

if TYPE_CHECKING:
    from ..config import CacheConfig

logger = logging.getLogger(__name__)

SynthesizeFn = Callable[[], Awaitable[AudioClip]]


class AudioCache:
    """LRU audio cache that runs at most one synthesis per key at a time.

    Concurrent callers asking for a key that is being synthesized wait on
    the same ticket and receive the same clip, or the same exception. Failed
    syntheses are never stored, so the next caller starts a fresh attempt.

    The synthesis for a ticket runs in its own task: a caller that goes away
    (for example a dropped HTTP connection) stops waiting without cancelling
    the synthesis other callers depend on.

    Example:
        cache = AudioCache(max_entries=512)
        clip = await cache.get_or_synthesize(
            key.cache_key, lambda: client.synthesize(build_markup(key), voice)
        )
    """

    def __init__(
        self,
        max_entries: int = 1024,
        max_bytes: int = 64 * 1024 * 1024,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize audio cache.

        Args:
            max_entries: Maximum number of cached clips
            max_bytes: Maximum total size of cached audio in bytes
            ttl_seconds: Seconds an entry stays valid (None keeps entries until evicted)
            clock: Monotonic clock used for expiry and recency

        Raises:
            ValueError: If a bound is not positive
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if max_bytes < 1:
            raise ValueError(f"max_bytes must be at least 1, got {max_bytes}")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Future[AudioClip]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._bytes = 0
        self._stats = CacheStats()

    @classmethod
    def from_config(cls, config: "CacheConfig") -> "AudioCache":
        return cls(
            max_entries=config.max_entries,
            max_bytes=config.max_bytes,
            ttl_seconds=config.ttl_seconds,
        )

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_bytes(self) -> int:
        return self._bytes

    def contains(self, key: str) -> bool:
        """Return True if a complete, unexpired entry exists for ``key``.

        Does not count as an access for LRU ordering.
        """
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    def is_inflight(self, key: str) -> bool:
        return key in self._inflight

    def get(self, key: str) -> AudioClip | None:
        """Return the cached clip for ``key`` and mark it recently used."""
        return self._lookup(key)

    async def get_or_synthesize(self, key: str, synthesize_fn: SynthesizeFn) -> AudioClip:
        """Return the clip for ``key``, synthesizing it at most once concurrently.

        Args:
            key: Cache identity (a normalized key's cache_key)
            synthesize_fn: Zero-argument coroutine factory producing the clip;
                only called when no entry and no ticket exist for ``key``

        Returns:
            The cached or freshly synthesized clip

        Raises:
            Exception: Whatever ``synthesize_fn`` raised for the current ticket
        """
        clip = self._lookup(key)
        if clip is not None:
            logger.debug(f"Cache hit for '{key}'")
            return clip

        ticket = self._inflight.get(key)
        if ticket is None:
            self._stats.misses += 1
            logger.debug(f"Cache miss for '{key}', starting synthesis")
            ticket = self._open_ticket(key, synthesize_fn)
        else:
            self._stats.coalesced += 1
            logger.debug(f"Joining in-flight synthesis for '{key}'")

        return await asyncio.shield(ticket)

    def stats(self) -> CacheStats:
        """Return a snapshot of cache counters."""
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            coalesced=self._stats.coalesced,
            evictions=self._stats.evictions,
            expirations=self._stats.expirations,
            entries=len(self._entries),
            bytes=self._bytes,
            inflight=len(self._inflight),
        )

    def clear(self) -> None:
        """Drop every complete entry. In-flight tickets are left running."""
        self._entries.clear()
        self._bytes = 0

    async def aclose(self) -> None:
        """Cancel in-flight syntheses; waiters receive CancelledError."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _open_ticket(self, key: str, synthesize_fn: SynthesizeFn) -> "asyncio.Future[AudioClip]":
        loop = asyncio.get_running_loop()
        ticket: asyncio.Future[AudioClip] = loop.create_future()
        # Every waiter may have gone away; mark the outcome as retrieved anyway
        ticket.add_done_callback(_consume_outcome)
        self._inflight[key] = ticket

        task = loop.create_task(self._run_ticket(key, synthesize_fn, ticket))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._finish_ticket, key, ticket))
        return ticket

    async def _run_ticket(
        self,
        key: str,
        synthesize_fn: SynthesizeFn,
        ticket: "asyncio.Future[AudioClip]",
    ) -> None:
        try:
            clip = await synthesize_fn()
        except Exception as e:
            self._retire(key, ticket)
            ticket.set_exception(e)
            logger.debug(f"Synthesis for '{key}' failed, nothing cached: {e!r}")
        else:
            # Publish the entry and retire the ticket in one step
            self._store(key, clip)
            self._retire(key, ticket)
            ticket.set_result(clip)

    def _finish_ticket(
        self, key: str, ticket: "asyncio.Future[AudioClip]", task: "asyncio.Task[None]"
    ) -> None:
        self._tasks.discard(task)
        if not ticket.done():
            # Cancelled, possibly before the synthesis started
            self._retire(key, ticket)
            ticket.cancel()

    def _retire(self, key: str, ticket: "asyncio.Future[AudioClip]") -> None:
        if self._inflight.get(key) is ticket:
            del self._inflight[key]

    def _lookup(self, key: str) -> AudioClip | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            self._remove(key)
            self._stats.expirations += 1
            logger.debug(f"Cache entry for '{key}' expired")
            return None

        entry.last_access = now
        self._entries.move_to_end(key)
        self._stats.hits += 1
        return entry.clip

    def _store(self, key: str, clip: AudioClip) -> None:
        if clip.size > self.max_bytes:
            logger.warning(
                f"Not caching '{key}': {clip.size} bytes exceeds the cache budget "
                f"of {self.max_bytes} bytes"
            )
            return

        now = self._clock()
        self._purge_expired(now)
        if key in self._entries:
            self._remove(key)

        self._entries[key] = CacheEntry(clip=clip, created_at=now, last_access=now)
        self._bytes += clip.size

        while len(self._entries) > self.max_entries or self._bytes > self.max_bytes:
            evicted_key, evicted = self._entries.popitem(last=False)
            self._bytes -= evicted.size
            self._stats.evictions += 1
            logger.debug(f"Evicted least recently used entry '{evicted_key}'")

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._bytes -= entry.size

    def _purge_expired(self, now: float) -> None:
        if self.ttl_seconds is None:
            return
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            self._remove(key)
            self._stats.expirations += 1

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return self.ttl_seconds is not None and now - entry.created_at >= self.ttl_seconds


def _consume_outcome(ticket: "asyncio.Future[AudioClip]") -> None:
    if not ticket.cancelled():
        ticket.exception()
