from __future__ import annotations

import logging
import threading
import urllib.parse as urlparse
from datetime import datetime, timedelta, timezone
from typing import Callable

import requests

from lyricsify.config import OAuthSettings
from lyricsify.errors import (
    AuthenticationFailed,
    ConfigError,
    SecureStorageError,
    SerializationError,
)

from .store import TokenStore
from .token import Token

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com"
SCOPES = ("user-read-currently-playing", "user-read-playback-state")
# Clock-skew/latency buffer: a token this close to expiry counts as expired.
REFRESH_BUFFER = timedelta(seconds=60)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthManager:
    """
    OAuth2 authorization-code flow against Spotify accounts.

    States: unauthenticated (no token) or authenticated; "expired" is derived
    from ``expires_at``. The lock guards the token cell only and is never held
    across an HTTP call.
    """

    def __init__(
        self,
        settings: OAuthSettings,
        store: TokenStore,
        *,
        session: requests.Session | None = None,
        clock: Callable[[], datetime] = utcnow,
        timeout_s: float = 10.0,
        accounts_url: str = SPOTIFY_ACCOUNTS_URL,
    ):
        self.settings = settings
        self.store = store
        self.session = session or requests.Session()
        self.clock = clock
        self.timeout_s = timeout_s
        self.accounts_url = accounts_url.rstrip("/")
        self._token: Token | None = None
        self._lock = threading.Lock()

    # ---- state ----

    @property
    def token(self) -> Token | None:
        with self._lock:
            return self._token

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def is_valid(self) -> bool:
        token = self.token
        if token is None:
            return False
        if token.expires_at is None:
            return True
        return token.expires_at > self.clock() + REFRESH_BUFFER

    # ---- authorization-code flow ----

    def get_auth_url(self, *, state: str | None = None, show_dialog: bool = False) -> str:
        if not self.settings.client_id:
            raise ConfigError("SPOTIFY_CLIENT_ID environment variable not set")
        if not self.settings.redirect_uri:
            raise ConfigError("Redirect URI is not configured")
        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": self.settings.redirect_uri,
            "scope": " ".join(SCOPES),
        }
        if state:
            params["state"] = state
        if show_dialog:
            params["show_dialog"] = "true"
        return f"{self.accounts_url}/authorize?{urlparse.urlencode(params)}"

    def exchange_code(self, code: str) -> None:
        if not code:
            raise AuthenticationFailed("Authorization code is empty")
        token = self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
            },
            what="exchange code for token",
        )
        with self._lock:
            self._token = token
        logger.info("Successfully authenticated with Spotify")
        self._persist(token)

    def refresh(self) -> None:
        current = self.token
        if current is None:
            raise AuthenticationFailed("No token available to refresh")

        logger.info("Attempting to refresh token")
        try:
            if not current.refresh_token:
                raise AuthenticationFailed("Token has no refresh token")
            fresh = self._request_token(
                {"grant_type": "refresh_token", "refresh_token": current.refresh_token},
                what="refresh token",
                previous=current,
            )
        except AuthenticationFailed as e:
            logger.error("Token refresh failed: %s", e)
            self._clear()
            raise AuthenticationFailed(f"Token refresh failed, re-authentication required: {e}") from e

        with self._lock:
            if self._token is not None:
                self._token.access_token = fresh.access_token
                self._token.refresh_token = fresh.refresh_token
                self._token.expires_at = fresh.expires_at
                self._token.scopes = fresh.scopes
            else:
                # logged out while the request was in flight
                self._token = fresh
            token = self._token
        logger.info("Token refreshed successfully")
        self._persist(token)

    def ensure_valid(self) -> None:
        if not self.is_authenticated:
            raise AuthenticationFailed("Not authenticated")
        if not self.is_valid():
            logger.info("Token expired or about to expire, refreshing")
            self.refresh()

    def authorization_header(self) -> dict[str, str]:
        self.ensure_valid()
        token = self.token
        if token is None:
            raise AuthenticationFailed("Not authenticated")
        return {"Authorization": f"Bearer {token.access_token}"}

    # ---- lifecycle ----

    def initialize(self) -> bool:
        """
        Load the stored token and make sure it is usable.

        Returns False when the user has to authenticate. Only store I/O
        failures (SecureStorageError) are raised.
        """
        blob = self.store.load()
        if not blob:
            logger.info("No stored token found, authentication required")
            return False

        try:
            token = Token.from_json(blob)
        except SerializationError as e:
            logger.warning("%s; authentication required", e)
            self._clear()
            return False

        with self._lock:
            self._token = token
        logger.info("Token loaded from keyring")

        if self.is_valid():
            logger.info("Stored token is valid")
            return True

        logger.info("Stored token is expired, attempting refresh")
        try:
            self.refresh()
        except AuthenticationFailed:
            logger.warning("Token refresh failed, authentication required")
            return False
        return True

    def logout(self) -> None:
        self._clear()
        logger.info("Logged out")

    # ---- internals ----

    def _request_token(self, data: dict[str, str], *, what: str, previous: Token | None = None) -> Token:
        if not self.settings.client_id or not self.settings.client_secret:
            raise AuthenticationFailed("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are not set")
        try:
            r = self.session.post(
                f"{self.accounts_url}/api/token",
                data=data,
                auth=(self.settings.client_id, self.settings.client_secret),
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise AuthenticationFailed(f"Failed to {what}: {e}") from e

        if r.status_code != 200:
            raise AuthenticationFailed(f"Failed to {what}: HTTP {r.status_code}")
        try:
            payload = r.json()
            if not isinstance(payload, dict):
                raise SerializationError("token response is not an object")
            return Token.from_response(payload, now=self.clock(), previous=previous)
        except (ValueError, SerializationError) as e:
            raise AuthenticationFailed(f"Failed to {what}: invalid response ({e})") from e

    def _persist(self, token: Token | None) -> None:
        if token is None:
            return
        self.store.save(token.to_json())

    def _clear(self) -> None:
        with self._lock:
            self._token = None
        try:
            self.store.delete()
        except SecureStorageError as e:
            logger.warning("Could not clear stored token: %s", e)
