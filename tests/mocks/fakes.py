from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any
from unittest.mock import Mock

from lyricsify.config import AppConfig
from lyricsify.errors import LyricsNotFound, SecureStorageError
from lyricsify.events import EventChannel
from lyricsify.spotify.types import TrackInfo


def make_track(track_id: str = "t1", name: str = "Title", artists: tuple[str, ...] = ("Artist",)) -> TrackInfo:
    return TrackInfo(id=track_id, name=name, artists=artists, duration_ms=180_000)


def fake_response(status_code: int = 200, payload: Any = None, content: bytes | None = None) -> Mock:
    """Stand-in for requests.Response."""
    r = Mock()
    r.status_code = status_code
    if content is None:
        content = b"" if payload is None else b"{}"
    r.content = content
    if isinstance(payload, Exception):
        r.json.side_effect = payload
    else:
        r.json.return_value = payload
    return r


class MemoryTokenStore:
    """In-memory TokenStore that records calls."""

    def __init__(self, blob: str | None = None, *, fail_load: bool = False):
        self.blob = blob
        self.fail_load = fail_load
        self.saved: list[str] = []
        self.deleted = 0

    def load(self) -> str | None:
        if self.fail_load:
            raise SecureStorageError("keychain locked")
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob
        self.saved.append(blob)

    def delete(self) -> None:
        self.blob = None
        self.deleted += 1


class FakeLyricsSource:
    """LyricsSource answering from a dict; missing keys are "not found"."""

    name = "fake"

    def __init__(self, lyrics: dict[tuple[str, str], str] | None = None, error: Exception | None = None):
        self.lyrics = lyrics or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def query(self, artist: str, title: str) -> str:
        self.calls.append((artist, title))
        if self.error is not None:
            raise self.error
        try:
            return self.lyrics[(artist, title)]
        except KeyError:
            raise LyricsNotFound("Lyrics not found") from None


class FakePresentation:
    """Presentation port + status indicator recording what it was told."""

    def __init__(self, visible: bool = True):
        self.events = EventChannel(capacity=0)
        self.visible = visible
        self.position = (100.0, 100.0)
        self.lyrics: list[str] = []
        self.visibility_states: list[bool] = []
        self.auth_states: list[bool] = []

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def is_visible(self) -> bool:
        return self.visible

    def update_lyrics(self, text: str) -> None:
        self.lyrics.append(text)

    def set_position(self, x: float, y: float) -> None:
        self.position = (x, y)

    def get_position(self) -> tuple[float, float]:
        return self.position

    def update_visibility_state(self, visible: bool) -> None:
        self.visibility_states.append(visible)

    def update_auth_state(self, authenticated: bool) -> None:
        self.auth_states.append(authenticated)


def make_config(tmp_path: Path, **overrides: Any) -> AppConfig:
    cfg = AppConfig(
        config_dir=tmp_path / "config",
        data_dir=tmp_path / "data",
        log_path=tmp_path / "data" / "lyricsify.log",
        lang="EN",
        poll_interval_s=5.0,
        http_timeout_s=10.0,
        lyrics_base_url="https://lyrics.test",
        cache_capacity=100,
        overlay_visible=True,
        window_position=(100.0, 100.0),
        use_alt_screen=False,
    )
    return dataclasses.replace(cfg, **overrides)
