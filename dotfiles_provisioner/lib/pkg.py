from __future__ import annotations

import logging
from typing import Mapping, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


PIP_FLAGS = ["--user", "--upgrade", "--break-system-packages"]


def pip_install(
    pip: str,
    requirement: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    run_cmd([pip, "install", *PIP_FLAGS, requirement], env=env, dry_run=dry_run)


def pip_install_requirements(
    pip: str,
    requirements_file: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    run_cmd([pip, "install", *PIP_FLAGS, "-r", requirements_file], env=env, dry_run=dry_run)


def apt_update(
    apt: str,
    *,
    sudo: Sequence[str] = (),
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    run_cmd([*sudo, apt, "update", "-qq"], env=env, dry_run=dry_run)


def apt_install(
    apt: str,
    packages: Sequence[str],
    *,
    sudo: Sequence[str] = (),
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    if not packages:
        return
    run_cmd([*sudo, apt, "install", "-y", "-qq", *packages], env=env, dry_run=dry_run)


def npm_install(
    npm: str,
    package: str,
    *,
    env: Mapping[str, str],
    dry_run: bool = False,
) -> None:
    run_cmd([npm, "install", "-g", package], env=env, dry_run=dry_run)
