from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Sequence

from lyricsify.errors import LyricsifyError, RemoteApiError
from lyricsify.events import ChannelClosed, EventChannel, ServiceError, TrackChanged
from lyricsify.spotify.types import TrackInfo

logger = logging.getLogger(__name__)

RETRY_DELAYS_S = (1.0, 2.0, 4.0)


class TrackPoller:
    """
    Background loop emitting TrackChanged when the playing track differs
    from the last one seen.

    Stops when the output channel is closed. Transitions to "nothing
    playing" update the last-known state but emit nothing.
    """

    def __init__(
        self,
        fetch_current: Callable[[], TrackInfo | None],
        channel: EventChannel,
        *,
        interval_s: float = 5.0,
        retry_delays: Sequence[float] = RETRY_DELAYS_S,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not retry_delays:
            raise ValueError("retry_delays must not be empty")
        self.fetch_current = fetch_current
        self.channel = channel
        self.interval_s = interval_s
        self.retry_delays = tuple(retry_delays)
        self.sleep = sleep
        self._last: TrackInfo | None = None
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def last_track(self) -> TrackInfo | None:
        with self._lock:
            return self._last

    def fetch_with_retry(self) -> TrackInfo | None:
        attempts = len(self.retry_delays)
        last_error: Exception | None = None
        for attempt, delay in enumerate(self.retry_delays, start=1):
            try:
                return self.fetch_current()
            except LyricsifyError as e:
                last_error = e
                logger.warning("Attempt %s/%s failed to get current track: %s", attempt, attempts, e)
                if attempt < attempts:
                    self.sleep(delay)
        raise RemoteApiError(f"Failed to get current track after {attempts} attempts: {last_error}")

    def poll_once(self) -> bool:
        """One loop body. Returns False once the channel rejects a send."""
        try:
            track = self.fetch_with_retry()
        except RemoteApiError as e:
            logger.error("%s", e)
            return self._send(ServiceError(str(e)))

        with self._lock:
            if track == self._last:
                return True
            self._last = track

        if track is None:
            logger.info("Playback stopped or non-track item")
            return True
        logger.info("Track changed: %s", track.display)
        return self._send(TrackChanged(track))

    def run(self) -> None:
        logger.info("Started Spotify track polling (%.1f second interval)", self.interval_s)
        while True:
            try:
                if not self.poll_once():
                    break
            except Exception:
                logger.exception("Unexpected error while polling Spotify")
            if self.channel.wait_closed(self.interval_s):
                break
        logger.warning("Spotify polling loop terminated")

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(target=self.run, name="track-poller", daemon=True)
        self._thread.start()
        return self._thread

    def _send(self, event: TrackChanged | ServiceError) -> bool:
        try:
            self.channel.send(event)
        except ChannelClosed:
            logger.info("Event channel closed, stopping poller")
            return False
        return True
