from __future__ import annotations

import dataclasses
import webbrowser
from typing import NoReturn

import typer

from lyricsify.app import watch as watch_loop
from lyricsify.auth.manager import AuthManager
from lyricsify.auth.store import KeyringTokenStore
from lyricsify.cache.lru import LyricsCache
from lyricsify.config import OAuthSettings, load_config, save_config_lang
from lyricsify.errors import LyricsifyError
from lyricsify.i18n import set_lang, t
from lyricsify.logging_setup import setup_logging
from lyricsify.sources.lyrics_ovh import LyricsOvhSource
from lyricsify.sources.service import LyricsService


app = typer.Typer(no_args_is_help=True, add_completion=False)


def _auth_manager() -> AuthManager:
    cfg = load_config()
    set_lang(cfg.lang)
    return AuthManager(OAuthSettings.from_env(), KeyringTokenStore(), timeout_s=cfg.http_timeout_s)


def _fail(e: Exception) -> NoReturn:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(code=1)


@app.command()
def run(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between Spotify polls"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """
    Watch Spotify and show lyrics for the current track.
    """
    cfg = load_config()
    if poll_interval is not None:
        if poll_interval <= 0:
            raise typer.BadParameter("--poll-interval must be positive")
        cfg = dataclasses.replace(cfg, poll_interval_s=poll_interval)
    if no_alt_screen:
        cfg = dataclasses.replace(cfg, use_alt_screen=False)

    # the overlay owns the terminal, so logs go to a file
    setup_logging(debug, log_file=cfg.log_path)
    raise typer.Exit(code=watch_loop(cfg, OAuthSettings.from_env()))


@app.command("auth-url")
def auth_url(
    open_browser: bool = typer.Option(False, "--open", help="Open the URL in the default browser"),
):
    """Print the Spotify authorization URL."""
    try:
        url = _auth_manager().get_auth_url()
    except LyricsifyError as e:
        _fail(e)
    typer.echo(url)
    if open_browser:
        webbrowser.open(url)
    typer.echo(t("auth_manual_code"), err=True)


@app.command()
def login(code: str = typer.Argument(..., help="`code` query parameter from the redirect URL")):
    """Exchange an authorization code for a token and store it."""
    try:
        _auth_manager().exchange_code(code)
    except LyricsifyError as e:
        _fail(e)
    typer.echo(t("login_ok"))


@app.command()
def logout():
    """Remove the stored token."""
    try:
        _auth_manager().logout()
    except LyricsifyError as e:
        _fail(e)
    typer.echo(t("logout_ok"))


@app.command()
def status():
    """Check the stored token (refreshing it if needed)."""
    auth = _auth_manager()
    try:
        had_token = auth.store.load() is not None
        ok = auth.initialize()
    except LyricsifyError as e:
        _fail(e)
    token = auth.token
    if ok and token is not None:
        expires = token.expires_at.isoformat() if token.expires_at else "-"
        typer.echo(t("token_valid", expires=expires))
    elif not had_token:
        typer.echo(t("token_none"))
        raise typer.Exit(code=1)
    else:
        typer.echo(t("token_expired"))
        raise typer.Exit(code=1)


@app.command()
def lyrics(artist: str, title: str):
    """Look up lyrics for one track and print them."""
    cfg = load_config()
    set_lang(cfg.lang)
    svc = LyricsService(
        LyricsOvhSource(base_url=cfg.lyrics_base_url, timeout_s=cfg.http_timeout_s),
        LyricsCache(1),
    )
    text = svc.fetch(f"{artist}\x00{title}", artist, title)
    if text is None:
        typer.echo(t("lyrics_not_available"), err=True)
        raise typer.Exit(code=1)
    typer.echo(text)


@app.command()
def config(
    lang: str | None = typer.Option(None, "--lang", help="UI language: EN or RU"),
):
    """Show or change persisted settings."""
    if lang is not None:
        if lang.upper() not in ("EN", "RU"):
            raise typer.BadParameter("lang must be EN or RU")
        try:
            save_config_lang(lang)
        except LyricsifyError as e:
            _fail(e)
        set_lang(lang)
        typer.echo(t("lang_saved", lang=lang.upper()))
        return

    cfg = load_config()
    typer.echo(f"config_dir={cfg.config_dir}")
    typer.echo(f"lang={cfg.lang}")
    typer.echo(f"poll_interval_secs={cfg.poll_interval_s}")
    typer.echo(f"overlay_visible={cfg.overlay_visible}")
    typer.echo(f"window_position={cfg.window_position}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
