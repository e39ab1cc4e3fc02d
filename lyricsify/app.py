from __future__ import annotations

import logging

from lyricsify.auth.manager import AuthManager
from lyricsify.auth.store import KeyringTokenStore, TokenStore
from lyricsify.cache.lru import LyricsCache
from lyricsify.config import AppConfig, OAuthSettings
from lyricsify.dispatcher import EventDispatcher
from lyricsify.errors import SecureStorageError
from lyricsify.events import EventChannel, start_forwarder
from lyricsify.i18n import set_lang, t
from lyricsify.presentation.keyboard import KeyboardInput
from lyricsify.presentation.terminal import TerminalOverlay
from lyricsify.sources.lyrics_ovh import LyricsOvhSource
from lyricsify.sources.service import LyricsService
from lyricsify.spotify.client import SpotifyPlaybackClient
from lyricsify.sync.poller import TrackPoller

logger = logging.getLogger(__name__)

EVENT_CHANNEL_CAPACITY = 100


class App:
    """Wires the components together around one event channel."""

    def __init__(
        self,
        cfg: AppConfig,
        settings: OAuthSettings,
        *,
        presentation: TerminalOverlay | None = None,
        store: TokenStore | None = None,
    ):
        logger.info("Initializing application components")
        self.cfg = cfg
        self.channel = EventChannel(capacity=EVENT_CHANNEL_CAPACITY)

        self.auth = AuthManager(settings, store or KeyringTokenStore(), timeout_s=cfg.http_timeout_s)
        self.playback = SpotifyPlaybackClient(self.auth, timeout_s=cfg.http_timeout_s)
        self.poller = TrackPoller(
            self.playback.currently_playing,
            self.channel,
            interval_s=cfg.poll_interval_s,
        )
        self.lyrics = LyricsService(
            LyricsOvhSource(base_url=cfg.lyrics_base_url, timeout_s=cfg.http_timeout_s),
            LyricsCache(cfg.cache_capacity),
        )
        self.overlay = presentation or TerminalOverlay(
            use_alt_screen=cfg.use_alt_screen,
            position=cfg.window_position,
        )
        self.dispatcher = EventDispatcher(
            self.channel,
            lyrics=self.lyrics,
            auth=self.auth,
            presentation=self.overlay,
            status=self.overlay,
            config=cfg,
        )

    def initialize(self) -> bool:
        """Load credentials and start background activities. Returns auth state."""
        try:
            authenticated = self.auth.initialize()
        except SecureStorageError as e:
            logger.error("Token storage unavailable, authentication required: %s", e)
            authenticated = False

        self.overlay.update_auth_state(authenticated)
        if authenticated:
            logger.info("Authenticated with Spotify, starting track polling")
            self.poller.start()
        else:
            logger.warning("Not authenticated with Spotify. Please authenticate.")
            self.overlay.update_lyrics(t("auth_required"))

        self.overlay.update_visibility_state(self.cfg.overlay_visible)
        if self.cfg.overlay_visible:
            self.overlay.show()
        else:
            self.overlay.hide()

        start_forwarder(self.overlay.events, self.channel)
        return authenticated

    def run(self) -> None:
        try:
            self.dispatcher.run()
        finally:
            self.channel.close()
            self.overlay.events.close()


def watch(cfg: AppConfig, settings: OAuthSettings) -> int:
    """Run the agent until Quit (or Ctrl+C)."""
    set_lang(cfg.lang)
    app = App(cfg, settings)
    app.overlay.enter()
    KeyboardInput(app.overlay.events).start()
    try:
        app.initialize()
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
        app.dispatcher.shutdown()
        return 130
    finally:
        app.overlay.exit()
    return 0
