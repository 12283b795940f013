from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Dict, Mapping

from ..errors import DirectiveError
from .command import run_cmd

logger = logging.getLogger(__name__)


def run_local_script(
    bash: str,
    path: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    p = Path(path)
    if not p.is_file():
        raise DirectiveError(f"Script not found: {path}")

    if not dry_run:
        p.chmod(p.stat().st_mode | stat.S_IXUSR)
    run_cmd([bash, str(p)], env=env, dry_run=dry_run)


def run_remote_script(
    bash: str,
    curl: str,
    url: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    """Download url to a temp file, run it with bash, then remove it."""

    fd, tmp = tempfile.mkstemp(prefix="dotfiles-script-", suffix=".sh")
    os.close(fd)
    try:
        run_cmd([curl, "-fsSL", url, "-o", tmp], env=env, dry_run=dry_run)
        run_cmd([bash, tmp], env=env, dry_run=dry_run)
    finally:
        os.unlink(tmp)


def source_env_file(
    bash: str,
    path: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> Dict[str, str]:
    """Source an env file in bash and return the resulting environment.

    `set -a` exports every assignment, so plain `KEY=value` lines count too.
    """

    p = Path(path)
    if not p.is_file():
        raise DirectiveError(f"Env file not found: {path}")

    r = run_cmd(
        [bash, "-c", 'set -a; . "$1" >/dev/null; env -0', "source-env", str(p)],
        env=env,
        dry_run=dry_run,
    )
    if dry_run:
        return dict(env)

    out: Dict[str, str] = {}
    for entry in r.stdout.split("\0"):
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        out[key] = value
    # Drop bash bookkeeping variables unless the caller already had them.
    return {k: v for k, v in out.items() if k not in {"_", "SHLVL", "PWD", "OLDPWD"} or k in env}
