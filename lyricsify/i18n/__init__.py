from __future__ import annotations

import json
import logging
from importlib.resources import files

logger = logging.getLogger(__name__)

LANGS = ("en", "ru")

_current = "en"
_strings: dict[str, str] = {}
_fallback: dict[str, str] = {}


def _read_locale(lang: str) -> dict[str, str]:
    try:
        path = files("lyricsify.i18n") / f"{lang}.json"
        return dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load locale %s: %s", lang, e)
        return {}


def set_lang(lang: str | None) -> None:
    global _current, _strings, _fallback
    lang = (lang or "en").lower()
    _current = lang if lang in LANGS else "en"
    _strings = _read_locale(_current)
    if not _fallback:
        _fallback = _strings if _current == "en" else _read_locale("en")


def current_lang() -> str:
    return _current.upper()


def t(key: str, **kwargs: object) -> str:
    """Localized string for ``key``; English, then the key itself, as fallbacks."""
    if not _strings:
        set_lang(_current)
    s = _strings.get(key) or _fallback.get(key) or key
    if kwargs:
        try:
            return s.format(**kwargs)
        except (KeyError, IndexError):
            return s
    return s


set_lang("en")
