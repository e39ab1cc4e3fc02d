from __future__ import annotations

import shutil
import signal
import sys
from dataclasses import dataclass
from typing import Callable, TextIO

import colorama
from colorama import Fore, Style

from lyricsify.events import EventChannel
from lyricsify.i18n import t

CSI = "\x1b["


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = Fore.CYAN + Style.BRIGHT
    text: str = Style.NORMAL
    dim: str = Style.DIM
    status: str = Fore.YELLOW
    reset: str = Style.RESET_ALL


class TerminalOverlay:
    """
    Lyrics "overlay" drawn on a terminal (alt screen, full redraw).

    Also acts as the status indicator: overlay visibility and auth state are
    shown on the bottom line, which stays on screen while the overlay is
    hidden. Position is only stored, a terminal has nowhere to move to.
    """

    def __init__(
        self,
        *,
        use_alt_screen: bool = True,
        theme: Theme | None = None,
        stream: TextIO | None = None,
        position: tuple[float, float] = (100.0, 100.0),
    ):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self.stream = stream or sys.stdout
        self.events = EventChannel(capacity=0)
        self._entered = False
        self._visible = False
        self._text = t("waiting_for_track")
        self._position = position
        self._status_visible = False
        self._authenticated = False
        self._resize_handler: Callable[..., None] | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        colorama.just_fix_windows_console()
        if self.use_alt_screen:
            self.stream.write(CSI + "?1049h")  # alt screen
        self.stream.write(CSI + "?25l")  # hide cursor
        self.stream.flush()
        self._entered = True

        def _on_resize(signum=None, frame=None):
            self.redraw()

        self._resize_handler = _on_resize
        if hasattr(signal, "SIGWINCH"):
            try:
                signal.signal(signal.SIGWINCH, _on_resize)
            except ValueError:
                # not on the main thread
                pass
        self.redraw()

    def exit(self) -> None:
        if not self._entered:
            return
        if self._resize_handler and hasattr(signal, "SIGWINCH"):
            try:
                signal.signal(signal.SIGWINCH, signal.SIG_DFL)
            except ValueError:
                pass
        self._resize_handler = None
        self.stream.write(self.theme.reset)
        self.stream.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            self.stream.write(CSI + "?1049l")  # normal screen
        self.stream.flush()
        self._entered = False

    # ---- presentation port ----

    def show(self) -> None:
        self._visible = True
        self.redraw()

    def hide(self) -> None:
        self._visible = False
        self.redraw()

    def is_visible(self) -> bool:
        return self._visible

    def update_lyrics(self, text: str) -> None:
        self._text = text
        if self._visible:
            self.redraw()

    def set_position(self, x: float, y: float) -> None:
        self._position = (float(x), float(y))

    def get_position(self) -> tuple[float, float]:
        return self._position

    # ---- status indicator ----

    def update_visibility_state(self, visible: bool) -> None:
        self._status_visible = visible
        self.redraw()

    def update_auth_state(self, authenticated: bool) -> None:
        self._authenticated = authenticated
        self.redraw()

    # ---- drawing ----

    @property
    def lyrics_text(self) -> str:
        return self._text

    def status_text(self) -> str:
        return t(
            "status_line",
            visibility=t("status_visible") if self._status_visible else t("status_hidden"),
            auth=t("status_authenticated") if self._authenticated else t("status_unauthenticated"),
        )

    def redraw(self) -> None:
        if not self._entered:
            return
        cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        # title + status line
        body_rows = max(rows - 2, 1)

        out: list[str] = []
        if self._visible:
            out.append(f"{self.theme.title}♫ {t('app_title')} ♫{self.theme.reset}")
            lines = [ln.rstrip() for ln in self._text.splitlines()]
            for ln in lines[:body_rows]:
                out.append(f"{self.theme.text}{ln[:cols]}{self.theme.reset}")
            out.extend([""] * (body_rows - min(len(lines), body_rows)))
        else:
            out.extend([""] * (body_rows + 1))
        out.append(f"{self.theme.status}{self.status_text()[:cols]}{self.theme.reset}")

        # move home + clear, then print full frame
        self.stream.write(CSI + "H" + CSI + "2J")
        self.stream.write("\n".join(out))
        self.stream.write(self.theme.reset)
        self.stream.flush()
