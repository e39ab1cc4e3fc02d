from __future__ import annotations

import logging
import sys
import threading
from typing import TextIO

from lyricsify.events import AppEvent, Authenticate, ChannelClosed, EventChannel, Quit, ToggleOverlay

logger = logging.getLogger(__name__)

COMMANDS: dict[str, type] = {
    "t": ToggleOverlay,
    "a": Authenticate,
    "q": Quit,
}


def parse_command(line: str) -> AppEvent | None:
    word = line.strip().lower()
    if not word:
        return None
    factory = COMMANDS.get(word[0])
    return factory() if factory else None


class KeyboardInput:
    """Reads one command per line from a stream and pushes the matching event."""

    def __init__(self, events: EventChannel, stream: TextIO | None = None):
        self.events = events
        self.stream = stream or sys.stdin
        self._thread: threading.Thread | None = None

    def run(self) -> None:
        for line in self.stream:
            event = parse_command(line)
            if event is None:
                logger.debug("Ignoring input %r", line.strip())
                continue
            try:
                self.events.send(event)
            except ChannelClosed:
                break
            if isinstance(event, Quit):
                break
        logger.debug("Keyboard input reader stopped")

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="keyboard-input", daemon=True)
        self._thread.start()
        return self._thread
