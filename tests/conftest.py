"""
Shared test fixtures: an isolated HOME, a dotfiles checkout and fake tools.
"""

import os
import shutil
import stat
import textwrap
from pathlib import Path

import pytest

from dotfiles_provisioner.config import resolve_settings
from dotfiles_provisioner.main import parse_cli_args


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Return an empty HOME directory."""
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def dotfiles_dir(tmp_path: Path) -> Path:
    """Return a dotfiles checkout containing .bashrc and .gitconfig."""
    d = tmp_path / "dotfiles"
    d.mkdir()
    (d / ".bashrc").write_text("# repo bashrc\n")
    (d / ".gitconfig").write_text("[core]\n\teditor = vim\n")
    return d


@pytest.fixture
def fake_bin(tmp_path: Path) -> Path:
    """Return an empty directory used as the run's only PATH entry."""
    b = tmp_path / "bin"
    b.mkdir()
    return b


@pytest.fixture
def calls_file(tmp_path: Path) -> Path:
    return tmp_path / "calls.log"


@pytest.fixture
def make_tool(fake_bin: Path):
    """Create a fake executable that records its argv and fails on a marker."""

    def _make(name: str, *, fail_on: str = "broken") -> Path:
        path = fake_bin / name
        path.write_text(textwrap.dedent(f"""\
            #!/bin/sh
            echo "{name} $*" >> "$CALLS"
            case "$*" in
              *{fail_on}*) echo "cannot install" >&2; exit 1 ;;
            esac
            exit 0
        """))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def link_real_tool(fake_bin: Path):
    """Expose a real binary (bash, env, ...) on the fake PATH, or skip."""

    def _link(name: str) -> Path:
        real = shutil.which(name)
        if real is None:
            pytest.skip(f"{name} not available")
        target = fake_bin / name
        if not target.exists():
            os.symlink(real, target)
        return target

    return _link


@pytest.fixture
def base_env(home: Path, fake_bin: Path, calls_file: Path) -> dict:
    return {"HOME": str(home), "PATH": str(fake_bin), "CALLS": str(calls_file), "USER": "tester"}


@pytest.fixture
def make_settings(base_env: dict, dotfiles_dir: Path):
    """Build Settings from extra env vars and CLI args."""

    def _make(env=None, argv=(), **kwargs):
        merged = dict(base_env)
        merged.update(env or {})
        kwargs.setdefault("dotfiles_dir", dotfiles_dir)
        return resolve_settings(merged, parse_cli_args(list(argv)), **kwargs)

    return _make


@pytest.fixture
def recorded_calls(calls_file: Path):
    """Return a function listing the fake tool invocations so far."""

    def _read() -> list:
        if not calls_file.exists():
            return []
        return calls_file.read_text().splitlines()

    return _read
