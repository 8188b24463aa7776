"""Bounded per-client resource cache with LRU and TTL eviction.

Entries are kept in an ``OrderedDict`` ordered from least to most recently
used, so "oldest" is always the first key and both refresh and eviction are
O(1). The cache owns a stored resource until it is evicted, expired, replaced
or deleted; at that point it is handed to the eviction callback, which is
responsible for releasing it.

Eviction callbacks may be sync or async. Async callbacks run as detached tasks
so a slow cleanup never delays ``get``/``set``/``delete``; their failures are
logged.
"""

import asyncio
import functools
import inspect
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..models.permissions import ClientCacheConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

EvictCallback = Callable[[str, T], Awaitable[None] | None]


@dataclass
class CacheEntry(Generic[T]):
    resource: T
    last_accessed: float


class ClientResourceCache(Generic[T]):
    """LRU + TTL cache keyed by client id."""

    def __init__(
        self,
        config: ClientCacheConfig | None = None,
        on_evict: EvictCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config or ClientCacheConfig()
        self._on_evict = on_evict
        self._clock = clock
        self._logger = log or logger
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._prune_task: asyncio.Task | None = None
        self._callback_tasks: set[asyncio.Task] = set()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Created outside an event loop; the owner calls start() once one is running
            pass
        else:
            self.start()

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._config.max_size

    @property
    def ttl(self) -> float:
        return self._config.ttl_seconds

    @property
    def is_pruning(self) -> bool:
        return self._prune_task is not None and not self._prune_task.done()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._entries)

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if now - entry.last_accessed > self._config.ttl_seconds:
            self._logger.debug(f"Cache entry '{key}' expired")
            self.delete(key)
            return None
        entry.last_accessed = now
        self._entries.move_to_end(key)
        return entry.resource

    def set(self, key: str, resource: T) -> None:
        previous = self._entries.pop(key, None)
        if previous is not None and previous.resource is not resource:
            self._call_evict_callback(key, previous.resource)

        while len(self._entries) >= self._config.max_size:
            self._evict_least_recently_used()

        self._entries[key] = CacheEntry(resource=resource, last_accessed=self._clock())

    def delete(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._call_evict_callback(key, entry.resource)

    def clear(self) -> None:
        # Snapshot first so callbacks never see a half-cleared cache
        entries = list(self._entries.items())
        self._entries.clear()
        for key, entry in entries:
            self._call_evict_callback(key, entry.resource)

    def prune_expired(self) -> int:
        """Delete every entry older than the TTL and return how many were removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if now - entry.last_accessed > self._config.ttl_seconds
        ]
        for key in expired:
            self.delete(key)
        if expired:
            self._logger.debug(f"Pruned {len(expired)} expired cache entries")
        return len(expired)

    def start(self) -> None:
        """Start the background pruning loop on the running event loop."""
        if self.is_pruning:
            return
        self._prune_task = asyncio.get_running_loop().create_task(
            self._prune_loop(), name="client_cache_prune"
        )

    def stop(self, clear_entries: bool = False) -> None:
        """Cancel background pruning, optionally evicting every entry."""
        if self._prune_task is not None:
            self._prune_task.cancel()
            self._prune_task = None
        if clear_entries:
            self.clear()

    async def _prune_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.prune_interval_seconds)
            try:
                self.prune_expired()
            except Exception as e:
                self._logger.error(f"Cache prune sweep failed: {e}")

    def _evict_least_recently_used(self) -> None:
        key = next(iter(self._entries))
        self._logger.debug(f"Evicting least recently used cache entry '{key}'")
        self.delete(key)

    def _call_evict_callback(self, key: str, resource: T) -> None:
        if self._on_evict is None:
            return
        try:
            result = self._on_evict(key, resource)
        except Exception as e:
            self._logger.warning(f"Error in cache eviction callback for key '{key}': {e}")
            return
        if not inspect.isawaitable(result):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning(f"No running event loop for async eviction callback of key '{key}', dropped")
            if inspect.iscoroutine(result):
                result.close()
            return
        task = asyncio.ensure_future(result, loop=loop)
        self._callback_tasks.add(task)
        task.add_done_callback(functools.partial(self._callback_finished, key))

    def _callback_finished(self, key: str, task: asyncio.Future) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.warning(f"Error in cache eviction callback for key '{key}': {error}")
