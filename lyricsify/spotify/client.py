from __future__ import annotations

import logging

import requests

from lyricsify.auth.manager import AuthManager
from lyricsify.errors import NetworkError, RemoteApiError

from .types import TrackInfo

logger = logging.getLogger(__name__)

SPOTIFY_API_URL = "https://api.spotify.com/v1"


class SpotifyPlaybackClient:
    def __init__(
        self,
        auth: AuthManager,
        *,
        session: requests.Session | None = None,
        base_url: str = SPOTIFY_API_URL,
        timeout_s: float = 10.0,
    ):
        self.auth = auth
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def currently_playing(self) -> TrackInfo | None:
        """
        Currently playing track, or None when nothing is playing or the item
        is not a music track (podcast episode, ad).
        """
        headers = self.auth.authorization_header()
        try:
            r = self.session.get(
                f"{self.base_url}/me/player/currently-playing",
                headers=headers,
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Failed to get currently playing track: {e}") from e

        if r.status_code == 204 or (r.status_code == 200 and not r.content):
            return None
        if r.status_code >= 400:
            raise RemoteApiError(f"Spotify API returned status {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise RemoteApiError(f"Invalid JSON from Spotify: {e}") from e

        item = data.get("item") if isinstance(data, dict) else None
        if not isinstance(item, dict):
            return None
        kind = data.get("currently_playing_type") or item.get("type")
        if kind != "track" or item.get("type", "track") != "track":
            logger.debug("Ignoring non-track item: %s", kind)
            return None
        try:
            return TrackInfo.from_api(item)
        except (TypeError, ValueError, KeyError) as e:
            raise RemoteApiError(f"Malformed track item from Spotify: {e}") from e
