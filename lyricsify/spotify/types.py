from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TrackInfo:
    id: str
    name: str
    artists: tuple[str, ...]
    duration_ms: int

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "TrackInfo":
        """Build from a Spotify track object (the ``item`` of currently-playing)."""
        artists = tuple(
            str(a.get("name", ""))
            for a in item.get("artists") or ()
            if isinstance(a, dict) and a.get("name")
        )
        return cls(
            id=str(item.get("id") or item.get("uri") or ""),
            name=str(item.get("name", "")),
            artists=artists,
            duration_ms=int(item.get("duration_ms") or 0),
        )

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def display(self) -> str:
        artist = ", ".join(self.artists)
        if artist and self.name:
            return f"{artist} - {self.name}"
        return self.name or artist or "Unknown track"
