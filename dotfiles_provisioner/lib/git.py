from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from .command import run_cmd

logger = logging.getLogger(__name__)


def clone_or_pull(
    git: str,
    url: str,
    dest: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> str:
    """Clone url into dest, or pull latest if dest already exists."""

    d = Path(dest)
    if d.is_dir():
        logger.warning("Repository exists at %s, pulling latest", d)
        run_cmd([git, "-C", str(d), "pull"], env=env, dry_run=dry_run)
        return "pulled"

    run_cmd([git, "clone", url, str(d)], env=env, dry_run=dry_run)
    return "cloned"


def repo_dir_name(url: str) -> str:
    """`https://host/owner/repo.git` -> `repo`."""

    name = url.rstrip("/").rsplit("/", 1)[-1]
    name = name.rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name
