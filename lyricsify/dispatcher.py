from __future__ import annotations

import dataclasses
import logging
import threading
import webbrowser
from typing import Callable

from lyricsify.auth.manager import AuthManager
from lyricsify.config import AppConfig, save_config
from lyricsify.errors import ConfigError, LyricsifyError
from lyricsify.events import (
    AppEvent,
    Authenticate,
    ChannelClosed,
    EventChannel,
    LyricsRetrieved,
    Quit,
    ServiceError,
    ToggleOverlay,
    TrackChanged,
    event_to_dict,
)
from lyricsify.i18n import t
from lyricsify.presentation.base import PresentationPort, StatusIndicator
from lyricsify.sources.service import LyricsService
from lyricsify.spotify.types import TrackInfo

logger = logging.getLogger(__name__)


def _spawn_thread(job: Callable[[], None]) -> None:
    threading.Thread(target=job, name="lyrics-fetch", daemon=True).start()


class EventDispatcher:
    """
    Single consumer of the application channel.

    Events are handled one at a time in send order. Lyrics lookups run in
    the background and come back as LyricsRetrieved on the same channel, so
    results for an older track may arrive after a newer TrackChanged.
    """

    def __init__(
        self,
        channel: EventChannel,
        *,
        lyrics: LyricsService,
        auth: AuthManager,
        presentation: PresentationPort,
        status: StatusIndicator,
        config: AppConfig,
        save_config: Callable[[AppConfig], None] = save_config,
        open_url: Callable[[str], bool] = webbrowser.open,
        spawn: Callable[[Callable[[], None]], None] = _spawn_thread,
    ):
        self.channel = channel
        self.lyrics = lyrics
        self.auth = auth
        self.presentation = presentation
        self.status = status
        self.config = config
        self._save_config = save_config
        self._open_url = open_url
        self._spawn = spawn

    def run(self) -> None:
        logger.info("Starting main event loop")
        while True:
            event = self.channel.recv()
            if event is None:
                logger.warning("Event channel closed, exiting")
                return
            try:
                keep_going = self.dispatch(event)
            except LyricsifyError as e:
                logger.error("Failed to handle %s: %s", type(event).__name__, e)
                continue
            if not keep_going:
                return

    def dispatch(self, event: AppEvent) -> bool:
        """Handle one event. Returns False when the loop should stop."""
        logger.debug("Event: %s", event_to_dict(event))
        if isinstance(event, TrackChanged):
            self.on_track_changed(event.track)
        elif isinstance(event, LyricsRetrieved):
            self.on_lyrics_retrieved(event.text)
        elif isinstance(event, ToggleOverlay):
            self.on_toggle_overlay()
        elif isinstance(event, Authenticate):
            self.on_authenticate()
        elif isinstance(event, ServiceError):
            self.on_service_error(event.message)
        elif isinstance(event, Quit):
            logger.info("Quit event received")
            self.shutdown()
            return False
        else:
            logger.warning("Unknown event: %r", event)
        return True

    # ---- handlers ----

    def on_track_changed(self, track: TrackInfo) -> None:
        logger.info("Handling track change: %s by %s", track.name, ", ".join(track.artists))

        def job() -> None:
            text = self.lyrics.fetch(track.id, track.primary_artist, track.name)
            try:
                self.channel.send(LyricsRetrieved(text))
            except ChannelClosed:
                logger.debug("Dropping lyrics for %s, channel closed", track.id)

        self._spawn(job)

    def on_lyrics_retrieved(self, text: str | None) -> None:
        if text is None:
            logger.info("No lyrics available for this track")
            self.presentation.update_lyrics(t("lyrics_not_available"))
            return
        logger.info("Updating overlay with lyrics (%d chars)", len(text))
        self.presentation.update_lyrics(text)

    def on_toggle_overlay(self) -> None:
        if self.presentation.is_visible():
            logger.info("Hiding overlay")
            self.presentation.hide()
        else:
            logger.info("Showing overlay")
            self.presentation.show()
        visible = self.presentation.is_visible()
        self.status.update_visibility_state(visible)
        self.config = dataclasses.replace(self.config, overlay_visible=visible)

    def on_authenticate(self) -> None:
        logger.info("Starting authentication flow")
        try:
            url = self.auth.get_auth_url()
        except ConfigError as e:
            logger.error("Cannot start authentication: %s", e)
            self.presentation.update_lyrics(t("auth_config_missing", error=e))
            return

        logger.info(t("auth_visit_url", url=url))
        try:
            opened = self._open_url(url)
        except webbrowser.Error as e:
            logger.error("Failed to open browser: %s", e)
            opened = False
        if not opened:
            logger.error("Could not open a browser, open the URL manually")
        logger.warning(t("auth_manual_code"))

    def on_service_error(self, message: str) -> None:
        logger.error("Spotify error: %s", message)
        self.presentation.update_lyrics(t("service_error", error=message))
        # a failed refresh during the poll may have signed us out
        self.status.update_auth_state(self.auth.is_authenticated)

    def shutdown(self) -> None:
        logger.info("Shutting down application")
        x, y = self.presentation.get_position()
        self.config = dataclasses.replace(self.config, window_position=(x, y))
        try:
            self._save_config(self.config)
        except LyricsifyError as e:
            logger.error("Failed to save configuration: %s", e)
        # background producers stop on their next send
        self.channel.close()
        logger.info("Shutdown complete")
