from __future__ import annotations

import logging

from lyricsify.cache.lru import LyricsCache
from lyricsify.errors import LyricsifyError, LyricsNotFound

from .base import LyricsSource

logger = logging.getLogger(__name__)


class LyricsService:
    """
    Cache-fronted lyrics lookup.

    ``fetch`` always answers: remote failures of any kind are logged and
    cached as a negative entry, never raised to the caller.
    """

    def __init__(self, source: LyricsSource, cache: LyricsCache | None = None):
        self.source = source
        self.cache = cache if cache is not None else LyricsCache()

    def fetch(self, track_id: str, artist: str, title: str) -> str | None:
        cached = self.cache.get(track_id)
        if cached is not None:
            logger.debug("Cache hit for track: %s", track_id)
            return cached.value

        logger.info("Fetching lyrics for: %s - %s", artist, title)
        try:
            text = self.source.query(artist, title)
        except LyricsNotFound:
            logger.info("No lyrics for %s - %s", artist, title)
            self.cache.insert(track_id, None)
            return None
        except LyricsifyError as e:
            logger.warning("Failed to fetch lyrics for %s - %s: %s", artist, title, e)
            # negative cache to avoid hammering
            self.cache.insert(track_id, None)
            return None

        logger.info("Fetched lyrics for: %s - %s (%d chars)", artist, title, len(text))
        self.cache.insert(track_id, text)
        return text
