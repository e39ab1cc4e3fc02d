from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from lyricsify.errors import SerializationError


def _parse_ts(raw: str) -> datetime:
    # fromisoformat() before 3.11 does not accept a "Z" suffix
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class Token:
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scopes: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_response(
        cls,
        payload: dict[str, Any],
        *,
        now: datetime,
        previous: "Token | None" = None,
    ) -> "Token":
        """Build from an OAuth token-endpoint payload."""
        access = payload.get("access_token")
        if not access:
            raise SerializationError("token response has no access_token")

        expires_at = None
        if payload.get("expires_in") is not None:
            try:
                expires_at = now + timedelta(seconds=int(payload["expires_in"]))
            except (TypeError, ValueError) as e:
                raise SerializationError(f"bad expires_in: {payload['expires_in']!r}") from e

        refresh = payload.get("refresh_token") or (previous.refresh_token if previous else None)
        if "scope" in payload:
            scopes = frozenset(str(payload.get("scope") or "").split())
        else:
            scopes = previous.scopes if previous else frozenset()
        return cls(access_token=str(access), refresh_token=refresh, expires_at=expires_at, scopes=scopes)

    def to_json(self) -> str:
        return json.dumps(
            {
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "expires_at": self.expires_at.isoformat() if self.expires_at else None,
                "scopes": sorted(self.scopes),
            }
        )

    @classmethod
    def from_json(cls, text: str) -> "Token":
        try:
            data = json.loads(text)
            expires_raw = data.get("expires_at")
            return cls(
                access_token=str(data["access_token"]),
                refresh_token=data.get("refresh_token"),
                expires_at=_parse_ts(expires_raw) if expires_raw else None,
                scopes=frozenset(data.get("scopes") or ()),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SerializationError(f"Stored token is malformed: {e}") from e
