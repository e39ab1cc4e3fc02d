from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lyricsify.errors import ConfigError, IoError

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_URI = "http://localhost:8888/callback"
DEFAULT_LYRICS_URL = "https://api.lyrics.ovh"


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyricsify"
    return Path.home() / ".config" / "lyricsify"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    config_dir: Path
    data_dir: Path
    log_path: Path

    # Locale
    lang: str

    # Polling / network
    poll_interval_s: float
    http_timeout_s: float
    lyrics_base_url: str
    cache_capacity: int

    # Overlay (persisted)
    overlay_visible: bool
    window_position: tuple[float, float]
    use_alt_screen: bool

    # poll interval as read from the file, before env/CLI overrides
    stored_poll_interval_s: float | None = None


@dataclass(frozen=True)
class OAuthSettings:
    client_id: str | None
    client_secret: str | None
    redirect_uri: str

    @classmethod
    def from_env(cls) -> "OAuthSettings":
        return cls(
            client_id=os.getenv("SPOTIFY_CLIENT_ID") or None,
            client_secret=os.getenv("SPOTIFY_CLIENT_SECRET") or None,
            redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
        )


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.info("Config file not found, using defaults")
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ConfigError("top-level value is not an object")
        return data
    except (OSError, ValueError, ConfigError) as e:
        logger.warning("Failed to load config file %s (%s), using defaults", path, e)
        return {}


def _position(raw: Any) -> tuple[float, float]:
    try:
        x, y = raw
        return float(x), float(y)
    except (TypeError, ValueError):
        return 100.0, 100.0


def _float_env(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return fallback
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return fallback


def load_config() -> AppConfig:
    # XDG base dir fallback
    xdg = os.getenv("XDG_CACHE_HOME")
    data_dir = Path(xdg) if xdg else Path.home() / ".cache"
    data_dir = data_dir / "lyricsify"

    config_dir = _config_dir()
    data = _read_file(config_dir / "config.json")

    try:
        poll_interval_s = float(data.get("poll_interval_secs", 5))
    except (TypeError, ValueError):
        poll_interval_s = 5.0
    if poll_interval_s <= 0:
        logger.warning("Poll interval must be positive, using 5s")
        poll_interval_s = 5.0
    stored_poll_interval_s = poll_interval_s
    poll_interval_s = _float_env("LYRICSIFY_POLL_INTERVAL", poll_interval_s)
    if poll_interval_s <= 0:
        logger.warning("Ignoring non-positive LYRICSIFY_POLL_INTERVAL")
        poll_interval_s = stored_poll_interval_s

    use_alt_screen = os.getenv("LYRICSIFY_ALT_SCREEN", "1") not in ("0", "false", "False")

    return AppConfig(
        config_dir=config_dir,
        data_dir=data_dir,
        log_path=data_dir / "lyricsify.log",
        lang=_load_lang(data),
        poll_interval_s=poll_interval_s,
        http_timeout_s=10.0,
        lyrics_base_url=os.getenv("LYRICSIFY_LYRICS_URL") or DEFAULT_LYRICS_URL,
        cache_capacity=100,
        overlay_visible=bool(data.get("overlay_visible", True)),
        window_position=_position(data.get("window_position", (100.0, 100.0))),
        use_alt_screen=use_alt_screen,
        stored_poll_interval_s=stored_poll_interval_s,
    )


def _load_lang(data: dict[str, Any]) -> str:
    # Priority: config.json → LYRICSIFY_LANG → "EN"
    raw = str(data.get("lang") or "").upper()
    if raw in ("RU", "EN"):
        return raw
    env_lang = os.getenv("LYRICSIFY_LANG")
    if env_lang and env_lang.upper() in ("RU", "EN"):
        return env_lang.upper()
    return "EN"


def _write_file(path: Path, data: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise IoError(f"Failed to write config file {path}: {e}") from e


def _whole(value: float) -> float | int:
    return int(value) if float(value).is_integer() else value


def save_config(cfg: AppConfig) -> None:
    """Persist the user-facing settings; other keys already in the file are kept."""
    path = cfg.config_dir / "config.json"
    data = _read_file(path)
    # runtime overrides of the poll interval are not written back
    stored = cfg.stored_poll_interval_s if cfg.stored_poll_interval_s is not None else cfg.poll_interval_s
    data.update(
        lang=cfg.lang,
        poll_interval_secs=_whole(stored),
        overlay_visible=cfg.overlay_visible,
        window_position=list(cfg.window_position),
    )
    _write_file(path, data)
    logger.info("Saved configuration to %s", path)


def save_config_lang(lang: str) -> None:
    path = _config_file()
    data = _read_file(path)
    data["lang"] = lang.upper()
    _write_file(path, data)
