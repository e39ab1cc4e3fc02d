from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Union

from lyricsify.spotify.types import TrackInfo

logger = logging.getLogger(__name__)

# How often blocked senders/receivers re-check for close().
_WAKE_S = 0.1


@dataclass(frozen=True, slots=True)
class TrackChanged:
    track: TrackInfo


@dataclass(frozen=True, slots=True)
class LyricsRetrieved:
    text: str | None


@dataclass(frozen=True, slots=True)
class ToggleOverlay:
    pass


@dataclass(frozen=True, slots=True)
class Authenticate:
    pass


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class ServiceError:
    message: str


AppEvent = Union[TrackChanged, LyricsRetrieved, ToggleOverlay, Authenticate, Quit, ServiceError]


def event_to_dict(event: AppEvent) -> dict[str, Any]:
    """In-process wire shape of an event, mainly for debug logs."""
    out: dict[str, Any] = {"type": type(event).__name__}
    if isinstance(event, TrackChanged):
        t = event.track
        out.update(id=t.id, name=t.name, artists=list(t.artists), duration_ms=t.duration_ms)
    elif isinstance(event, LyricsRetrieved):
        out["text"] = event.text
    elif isinstance(event, ServiceError):
        out["message"] = event.message
    return out


class ChannelClosed(Exception):
    pass


class EventChannel:
    """
    Ordered multi-producer / single-consumer channel.

    ``capacity`` bounds the queue so a slow consumer blocks producers;
    0 means unbounded. Once closed, ``send`` raises ChannelClosed and
    ``recv`` drains what is left, then returns None.
    """

    def __init__(self, capacity: int = 100):
        self.capacity = capacity
        self._q: queue.Queue[AppEvent] = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    def wait_closed(self, timeout: float | None = None) -> bool:
        return self._closed.wait(timeout)

    def send(self, event: AppEvent) -> None:
        while True:
            if self._closed.is_set():
                raise ChannelClosed(f"channel closed, dropping {type(event).__name__}")
            try:
                self._q.put(event, timeout=_WAKE_S)
                return
            except queue.Full:
                continue

    def recv(self, timeout: float | None = None) -> AppEvent | None:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return self._q.get(timeout=_WAKE_S)
            except queue.Empty:
                pass
            if self._closed.is_set() and self._q.empty():
                return None
            if deadline is not None and time.monotonic() >= deadline:
                return None

    def __len__(self) -> int:
        return self._q.qsize()


def forward(source: EventChannel, target: EventChannel) -> None:
    """Move events from ``source`` to ``target`` until either side is closed."""
    while True:
        event = source.recv(timeout=_WAKE_S)
        if event is None:
            if source.closed or target.closed:
                break
            continue
        try:
            target.send(event)
        except ChannelClosed:
            break
    logger.debug("Event forwarder stopped")


def start_forwarder(source: EventChannel, target: EventChannel) -> threading.Thread:
    th = threading.Thread(target=forward, args=(source, target), name="event-forwarder", daemon=True)
    th.start()
    return th
