from __future__ import annotations

import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def is_link_to(dest: Path, src: Path) -> bool:
    if not dest.is_symlink():
        return False
    target = Path(os.readlink(dest))
    if not target.is_absolute():
        target = dest.parent / target
    return os.path.abspath(target) == os.path.abspath(src)


def backup_path(dest: Path, *, stamp: str | None = None) -> Path:
    stamp = stamp or time.strftime("%Y%m%d-%H%M%S")
    candidate = dest.with_name(f"{dest.name}.backup-{stamp}")
    n = 1
    while candidate.exists() or candidate.is_symlink():
        candidate = dest.with_name(f"{dest.name}.backup-{stamp}-{n}")
        n += 1
    return candidate


def link_file(src: str, dst: str, *, dry_run: bool = False) -> str:
    """Symlink dst -> src, moving anything already at dst aside first.

    Returns a short description of what happened (for the run log).
    """

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)

    if is_link_to(d, s):
        logger.debug("%s already links to %s", d, s)
        return "unchanged"

    backup = None
    if d.exists() or d.is_symlink():
        backup = backup_path(d)
        logger.warning("%s already exists, backing up to %s", d, backup.name)
        if not dry_run:
            d.rename(backup)

    logger.info("Linking %s -> %s", s, d)
    if dry_run:
        return "would link"

    d.parent.mkdir(parents=True, exist_ok=True)
    d.symlink_to(s)
    if backup is not None:
        return f"linked (backup: {backup.name})"
    return "linked"
