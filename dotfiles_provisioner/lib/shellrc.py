from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def has_line(rc_path: str, line: str) -> bool:
    p = Path(rc_path)
    if not p.exists():
        return False
    wanted = line.strip()
    return any(existing.strip() == wanted for existing in p.read_text(encoding="utf-8").splitlines())


def append_line(rc_path: str, line: str, *, dry_run: bool = False) -> bool:
    """Append line to the shell startup file unless it is already there.

    Returns True if the file was (or would be) changed.
    """

    if has_line(rc_path, line):
        logger.debug("%s already contains: %s", rc_path, line)
        return False

    logger.info("Appending to %s: %s", rc_path, line)
    if dry_run:
        return True

    p = Path(rc_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    prefix = ""
    if p.exists():
        current = p.read_text(encoding="utf-8")
        if current and not current.endswith("\n"):
            prefix = "\n"
    with p.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    return True


def export_line(key: str, value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'export {key}="{escaped}"'


def source_line(path: str) -> str:
    return f"source {path}"
