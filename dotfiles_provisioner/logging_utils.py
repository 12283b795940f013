from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

FALLBACK_LOG_NAME = "dotfiles-provision.log"


def configure_logging(
    log_path: str,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging.

    Every directive logs a status line; the file keeps the full run for
    diagnosing a partially applied workspace.

    Notes:
    - If the requested log file cannot be created, we fall back to a file in
      the current working directory.
    - Calling this again only adjusts the level.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_dotfiles_configured", False):
        for h in logger.handlers:
            h.setLevel(level)
        return getattr(logger, "_dotfiles_log_path", log_path)

    chosen_path = log_path
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        file_handler = logging.FileHandler(fallback)
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        h.setLevel(level)
        logger.addHandler(h)

    setattr(logger, "_dotfiles_configured", True)
    setattr(logger, "_dotfiles_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
