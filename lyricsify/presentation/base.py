from __future__ import annotations

from typing import Protocol

from lyricsify.events import EventChannel


class PresentationPort(Protocol):
    """Where lyrics end up. UI actions come back as AppEvents on ``events``."""

    events: EventChannel

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def update_lyrics(self, text: str) -> None: ...

    def is_visible(self) -> bool: ...

    def set_position(self, x: float, y: float) -> None: ...

    def get_position(self) -> tuple[float, float]: ...


class StatusIndicator(Protocol):
    def update_visibility_state(self, visible: bool) -> None: ...

    def update_auth_state(self, authenticated: bool) -> None: ...
