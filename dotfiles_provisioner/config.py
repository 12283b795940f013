from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

# Dotfiles shipped at the repository root and linked into $HOME.
DOTFILES = (".bashrc", ".gitconfig")

ENV_EXTRA_PIP = "DOTFILES_EXTRA_PIP"
ENV_EXTRA_APT = "DOTFILES_EXTRA_APT"
ENV_EXTRA_NPM = "DOTFILES_EXTRA_NPM"
ENV_CUSTOM_REPO = "DOTFILES_CUSTOM_REPO"
ENV_CUSTOM_SCRIPT = "DOTFILES_CUSTOM_SCRIPT"
ENV_SKIP_DEFAULT = "DOTFILES_SKIP_DEFAULT"
ENV_VERBOSE = "DOTFILES_VERBOSE"

OVERRIDE_DIR_NAME = ".dotfiles-extra"
SHELL_RC_NAME = ".bashrc"
DEFAULT_LOG_NAME = ".dotfiles-provision.log"

_TRUE = {"true", "1", "yes", "on"}


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE


def expand_home(path: str, home: Path) -> Path:
    if path == "~":
        return home
    if path.startswith("~/"):
        return home / path[2:]
    return Path(path)


def repo_root() -> Path:
    # dotfiles_provisioner/config.py -> repo root (where the dotfiles live)
    return Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Settings:
    """Everything a run needs, assembled once at entry.

    Precedence (lowest first): built-in defaults, environment, CLI flags.
    Phases and handlers read only this record, never os.environ.
    """

    home: Path
    dotfiles_dir: Path
    override_dir: Path
    shell_rc: Path
    log_path: Path
    env: Mapping[str, str] = field(default_factory=dict)

    skip_defaults: bool = False
    verbose: bool = False
    dry_run: bool = False

    # environment extensions
    extra_pip: str = ""
    extra_apt: str = ""
    extra_npm: str = ""
    custom_repo: str = ""
    custom_script: str = ""

    # command-line extensions
    pip_requirements: Optional[Path] = None
    apt_packages: str = ""
    npm_packages: str = ""
    post_script: Optional[Path] = None

    @property
    def mode(self) -> str:
        if self.skip_defaults:
            return "Custom only (skipping defaults)"
        return "Defaults + Custom extensions"


def resolve_settings(
    env: Mapping[str, str],
    options: argparse.Namespace,
    *,
    override_dir: Optional[Path] = None,
    dotfiles_dir: Optional[Path] = None,
) -> Settings:
    home = Path(env.get("HOME") or Path.home())

    skip_defaults = parse_bool(env.get(ENV_SKIP_DEFAULT))
    verbose = parse_bool(env.get(ENV_VERBOSE))
    if options.skip_defaults:
        skip_defaults = True
    if options.verbose:
        verbose = True

    if override_dir is None:
        if options.override_dir:
            override_dir = expand_home(options.override_dir, home)
        else:
            override_dir = home / OVERRIDE_DIR_NAME

    log_path = expand_home(options.log, home) if options.log else home / DEFAULT_LOG_NAME

    return Settings(
        home=home,
        dotfiles_dir=dotfiles_dir or repo_root(),
        override_dir=Path(override_dir),
        shell_rc=home / SHELL_RC_NAME,
        log_path=log_path,
        env=dict(env),
        skip_defaults=skip_defaults,
        verbose=verbose,
        dry_run=bool(options.dry_run),
        extra_pip=env.get(ENV_EXTRA_PIP, "").strip(),
        extra_apt=env.get(ENV_EXTRA_APT, "").strip(),
        extra_npm=env.get(ENV_EXTRA_NPM, "").strip(),
        custom_repo=env.get(ENV_CUSTOM_REPO, "").strip(),
        custom_script=env.get(ENV_CUSTOM_SCRIPT, "").strip(),
        pip_requirements=Path(options.pip_requirements) if options.pip_requirements else None,
        apt_packages=(options.apt_packages or "").strip(),
        npm_packages=(options.npm_packages or "").strip(),
        post_script=Path(options.post_script) if options.post_script else None,
    )
