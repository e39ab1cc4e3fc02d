from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    # None = confirmed "no lyrics"
    value: str | None
    inserted_at: float


class LyricsCache:
    """
    In-memory LRU keyed by track id.

    Positive and negative results take a slot each. ``get`` and ``insert``
    both refresh recency; when a new key would exceed ``capacity`` the
    least recently touched key is evicted first.
    """

    def __init__(self, capacity: int = 100, *, clock: Callable[[], float] = time.time):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def insert(self, key: str, value: str | None) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted LRU cache entry: %s", evicted)
            self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())
            self._entries.move_to_end(key)

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
