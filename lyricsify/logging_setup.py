from __future__ import annotations

import logging
import os
from pathlib import Path


def setup_logging(debug: bool, log_file: Path | None = None) -> None:
    level = logging.DEBUG if debug else logging.INFO
    # Allow env override for e.g. systemd service runs
    level_name = os.getenv("LYRICSIFY_LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    handlers: list[logging.Handler] = []
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError:
            # read-only location, keep console logging
            pass
    if not handlers:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
