from __future__ import annotations

import argparse
import logging
import os
import platform
import sys
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .config import Settings, resolve_settings
from .errors import UsageError
from .logging_utils import configure_logging
from .phases import (
    CliExtensionsPhase,
    DefaultsPhase,
    EnvExtensionsPhase,
    OverrideFilesPhase,
    SymlinkPhase,
)
from .pipeline import RunReport, execute_plan
from .plan import build_plan

logger = logging.getLogger(__name__)

PROG = "dotfiles-provision"


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits 2 on bad input; a bad invocation here is a UsageError (exit 1).
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=PROG,
        description="Personalize a workspace: link dotfiles, install defaults, apply extensions.",
        allow_abbrev=False,
    )
    p.add_argument("--pip-requirements", metavar="FILE", default=None, help="Install Python packages from FILE")
    p.add_argument("--apt-packages", metavar="PKGS", default=None, help='Install system packages ("pkg1 pkg2")')
    p.add_argument("--npm-packages", metavar="PKGS", default=None, help='Install Node.js packages ("pkg1 pkg2")')
    p.add_argument("--post-script", metavar="FILE", default=None, help="Run FILE after everything else")
    p.add_argument("--skip-defaults", action="store_true", help="Skip the default installations")
    p.add_argument("--verbose", action="store_true", help="Enable debug output")
    p.add_argument("--dry-run", action="store_true", help="Log every action without executing it")
    p.add_argument("--override-dir", metavar="DIR", default=None, help="Override directory (default ~/.dotfiles-extra)")
    p.add_argument("--log", metavar="FILE", default=None, help="Log file (default ~/.dotfiles-provision.log)")
    return p


def parse_cli_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    return build_parser().parse_args(list(argv) if argv is not None else None)


def build_phases():
    return [
        SymlinkPhase(),
        DefaultsPhase(),
        EnvExtensionsPhase(),
        OverrideFilesPhase(),
        CliExtensionsPhase(),
    ]


def _log_banner(settings: Settings) -> None:
    logger.info("=== Dotfiles setup ===")
    logger.info("Timestamp: %s", time.strftime("%Y-%m-%d %H:%M:%S %Z"))
    logger.info("User: %s", settings.env.get("USER") or settings.env.get("LOGNAME") or "unknown")
    logger.info("Hostname: %s", platform.node())
    logger.info("Dotfiles: %s", settings.dotfiles_dir)
    logger.info("Mode: %s%s", settings.mode, " [dry-run]" if settings.dry_run else "")


def _log_summary(report: RunReport, settings: Settings) -> None:
    logger.info("=== Summary ===")
    for p in report.phases:
        logger.info("  %s", p.line())
    if report.fatal:
        logger.error("Aborted: %s", report.fatal)
        return
    logger.info("Next steps:")
    logger.info("  1. Restart your shell: source %s", settings.shell_rc)
    logger.info("  2. Override directory: %s", settings.override_dir)


def run(settings: Settings) -> RunReport:
    """Build the plan for settings, execute it and log the summary."""

    _log_banner(settings)
    try:
        plan = build_plan(settings, build_phases())
        report = execute_plan(plan, settings)
    except Exception:
        logger.exception("Provisioning failed")
        raise
    _log_summary(report, settings)
    return report


def resolve_and_run(
    env: Mapping[str, str],
    cli_args: Sequence[str],
    override_dir: Optional[Path] = None,
    *,
    dotfiles_dir: Optional[Path] = None,
) -> RunReport:
    """Parse cli_args, layer them over env and run the resulting plan.

    Raises UsageError before anything is planned if cli_args are malformed.
    """

    options = parse_cli_args(cli_args)
    settings = resolve_settings(env, options, override_dir=override_dir, dotfiles_dir=dotfiles_dir)
    return run(settings)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        options = parse_cli_args(argv)
    except UsageError as e:
        sys.stderr.write(f"{PROG}: {e}\nRun with --help for usage\n")
        return 1

    settings = resolve_settings(os.environ, options)
    configure_logging(
        log_path=str(settings.log_path),
        level=logging.DEBUG if settings.verbose else logging.INFO,
    )

    report = run(settings)
    return report.exit_code
