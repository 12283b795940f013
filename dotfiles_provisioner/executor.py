from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from string import Template
from typing import Callable, Dict, List, Set

from .config import Settings
from .errors import DirectiveError
from .lib.command import run_cmd
from .lib.git import clone_or_pull
from .lib.links import link_file
from .lib.pkg import apt_install, apt_update, npm_install, pip_install, pip_install_requirements
from .lib.scripts import run_local_script, run_remote_script, source_env_file
from .lib.shellrc import append_line, export_line, source_line
from .lib.tools import INSTALLERS, Toolbox
from .plan import Directive, DirectiveKind

logger = logging.getLogger(__name__)


class Status(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED_RECOVERABLE = "failed-recoverable"
    FAILED_FATAL = "failed-fatal"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ExecutionResult:
    directive: Directive
    status: Status
    message: str = ""


class SkipDirective(Exception):
    """Raised by a handler when an optional directive cannot apply here."""


@dataclass
class ExecContext:
    settings: Settings
    env: Dict[str, str]
    tools: Toolbox
    apt_updated: bool = False
    applied: Set[tuple] = field(default_factory=set)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExecContext":
        env = dict(settings.env)
        return cls(settings=settings, env=env, tools=Toolbox(env, dry_run=settings.dry_run))

    @property
    def dry_run(self) -> bool:
        return self.settings.dry_run


def required_installers(directives: List[Directive]) -> List[str]:
    """Ecosystems whose installer must exist for these directives to run."""
    out: List[str] = []
    for d in directives:
        if d.kind is not DirectiveKind.INSTALL_PACKAGE or d.optional:
            continue
        # A missing requirements file fails on its own; it needs no installer.
        if d.get("requirements") and not Path(d.get("requirements")).is_file():
            continue
        eco = str(d.get("ecosystem"))
        if eco not in out:
            out.append(eco)
    return out


def _need_tool(d: Directive, ctx: ExecContext, name: str) -> str:
    path = ctx.tools.find(name)
    if path:
        return path
    if d.optional:
        raise SkipDirective(f"{name} not available")
    if ctx.dry_run:
        return name
    raise DirectiveError(f"{name} not found on PATH")


def _install_package(d: Directive, ctx: ExecContext) -> str:
    eco = str(d.get("ecosystem"))
    if eco not in INSTALLERS:
        raise DirectiveError(f"Unknown package ecosystem: {eco}")

    requirements = d.get("requirements")
    if requirements and not Path(requirements).is_file():
        raise DirectiveError(f"Requirements file not found: {requirements}")

    installer = ctx.tools.installer(eco)
    if installer is None:
        if d.optional:
            raise SkipDirective(f"{INSTALLERS[eco][0]} not available")
        installer = ctx.tools.require_installer(eco)

    name = d.get("name")
    logger.debug("Installing %s package: %s", eco, name or requirements)

    if eco == "pip":
        if requirements:
            pip_install_requirements(installer, requirements, env=ctx.env, dry_run=ctx.dry_run)
        else:
            pip_install(installer, name, env=ctx.env, dry_run=ctx.dry_run)
    elif eco == "apt":
        sudo = ctx.tools.sudo_prefix()
        if not ctx.apt_updated:
            apt_update(installer, sudo=sudo, env=ctx.env, dry_run=ctx.dry_run)
            ctx.apt_updated = True
        apt_install(installer, [name], sudo=sudo, env=ctx.env, dry_run=ctx.dry_run)
    else:
        npm_install(installer, name, env=ctx.env, dry_run=ctx.dry_run)
    return "installed"


def _clone_repo(d: Directive, ctx: ExecContext) -> str:
    git = _need_tool(d, ctx, "git")
    return clone_or_pull(git, d.get("url"), d.get("dest"), env=ctx.env, dry_run=ctx.dry_run)


def _run_script(d: Directive, ctx: ExecContext) -> str:
    bash = _need_tool(d, ctx, "bash")
    if d.get("url"):
        curl = _need_tool(d, ctx, "curl")
        run_remote_script(bash, curl, d.get("url"), env=ctx.env, dry_run=ctx.dry_run)
    else:
        run_local_script(bash, d.get("path"), env=ctx.env, dry_run=ctx.dry_run)
    return "executed"


def _symlink(d: Directive, ctx: ExecContext) -> str:
    return link_file(d.get("src"), d.get("dest"), dry_run=ctx.dry_run)


def _set_env(d: Directive, ctx: ExecContext) -> str:
    rc = str(ctx.settings.shell_rc)

    if d.get("file"):
        bash = _need_tool(d, ctx, "bash")
        ctx.env.update(source_env_file(bash, d.get("file"), env=ctx.env, dry_run=ctx.dry_run))
        ctx.tools.forget()
        append_line(rc, source_line(d.get("file")), dry_run=ctx.dry_run)
        return "sourced"

    key = d.get("key")
    value = str(d.get("value", ""))
    ctx.env[key] = Template(value).safe_substitute(ctx.env)
    if key == "PATH":
        ctx.tools.forget()
    append_line(rc, export_line(key, value), dry_run=ctx.dry_run)
    return "exported"


def _run_command(d: Directive, ctx: ExecContext) -> str:
    argv = list(d.get("argv"))
    exe = _need_tool(d, ctx, argv[0])
    run_cmd([exe, *argv[1:]], env=ctx.env, dry_run=ctx.dry_run)
    return "ran"


_HANDLERS: Dict[DirectiveKind, Callable[[Directive, ExecContext], str]] = {
    DirectiveKind.INSTALL_PACKAGE: _install_package,
    DirectiveKind.CLONE_REPO: _clone_repo,
    DirectiveKind.RUN_SCRIPT: _run_script,
    DirectiveKind.SYMLINK: _symlink,
    DirectiveKind.SET_ENV: _set_env,
    DirectiveKind.RUN_COMMAND: _run_command,
}


def execute_directive(d: Directive, ctx: ExecContext) -> ExecutionResult:
    """Apply one directive.

    Recoverable failures become a result; FatalProvisioningError propagates.
    """

    key = d.key()
    if key in ctx.applied:
        logger.info("Skipping %s (already applied in this run)", d.describe())
        return ExecutionResult(d, Status.SKIPPED, "duplicate")

    logger.info("[%s] %s", d.phase, d.describe())
    try:
        message = _HANDLERS[d.kind](d, ctx)
    except SkipDirective as e:
        logger.warning("Skipped %s: %s", d.describe(), e)
        return ExecutionResult(d, Status.SKIPPED, str(e))
    except (DirectiveError, RuntimeError, OSError) as e:
        logger.error("Failed %s (from %s): %s", d.describe(), d.source or d.phase, str(e).strip())
        return ExecutionResult(d, Status.FAILED_RECOVERABLE, str(e).strip())

    ctx.applied.add(key)
    logger.debug("Done %s: %s", d.describe(), message)
    return ExecutionResult(d, Status.SUCCEEDED, message)
