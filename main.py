"""
Compatibility entrypoint.

Prefer running:
  - `lyricsify run`
or:
  - `python -m lyricsify`
"""

from lyricsify.cli import main as cli_main


def cli() -> None:
    cli_main()


if __name__ == "__main__":
    cli()
