from __future__ import annotations

import logging

import requests

from lyricsify.errors import LyricsFetchError, LyricsNotFound, NetworkError

from .base import LyricsSource

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.lyrics.ovh"


class LyricsOvhSource(LyricsSource):
    name = "lyrics_ovh"

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def url_for(self, artist: str, title: str) -> str:
        # encode "/" too, "AC/DC" is one path segment
        q = requests.utils.quote
        return f"{self.base_url}/v1/{q(artist, safe='')}/{q(title, safe='')}"

    def query(self, artist: str, title: str) -> str:
        url = self.url_for(artist, title)
        logger.debug("Querying lyrics.ovh: %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise NetworkError(f"lyrics.ovh request failed: {e}") from e

        if r.status_code == 404:
            raise LyricsNotFound("Lyrics not found")
        if r.status_code != 200:
            raise LyricsFetchError(f"API returned status: {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise LyricsFetchError(f"Invalid JSON from lyrics.ovh: {e}") from e

        lyrics = data.get("lyrics") if isinstance(data, dict) else None
        if not lyrics or not str(lyrics).strip():
            raise LyricsNotFound("Empty lyrics in response")
        return str(lyrics)
