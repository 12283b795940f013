from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from .config import Settings, expand_home
from .lib.command import fmt_argv

logger = logging.getLogger(__name__)


PHASE_SYMLINK = "symlink"
PHASE_DEFAULTS = "defaults"
PHASE_ENV = "env-extensions"
PHASE_OVERRIDE = "override-file-extensions"
PHASE_CLI = "cli-extensions"

# Execution order across phases is fixed.
PHASE_ORDER = (PHASE_SYMLINK, PHASE_DEFAULTS, PHASE_ENV, PHASE_OVERRIDE, PHASE_CLI)


class DirectiveKind(str, Enum):
    INSTALL_PACKAGE = "install-package"
    CLONE_REPO = "clone-repo"
    RUN_SCRIPT = "run-script"
    SYMLINK = "symlink"
    SET_ENV = "set-env"
    RUN_COMMAND = "run-command"


@dataclass(frozen=True)
class Directive:
    """One atomic action derived from one extension source."""

    kind: DirectiveKind
    payload: Mapping[str, Any] = field(default_factory=dict)
    source: str = ""
    optional: bool = False
    phase: str = ""

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def is_empty(self) -> bool:
        p = self.payload
        if self.kind is DirectiveKind.INSTALL_PACKAGE:
            return not p.get("ecosystem") or not (p.get("name") or p.get("requirements"))
        if self.kind is DirectiveKind.CLONE_REPO:
            return not p.get("url") or not p.get("dest")
        if self.kind is DirectiveKind.RUN_SCRIPT:
            return not (p.get("path") or p.get("url"))
        if self.kind is DirectiveKind.SYMLINK:
            return not p.get("src") or not p.get("dest")
        if self.kind is DirectiveKind.SET_ENV:
            return not (p.get("key") or p.get("file"))
        if self.kind is DirectiveKind.RUN_COMMAND:
            return not p.get("argv")
        return True

    def key(self) -> Tuple[str, Tuple[Tuple[str, Any], ...]]:
        """Identity used to recognize the same action requested twice."""
        return (self.kind.value, tuple(sorted(self.payload.items())))

    def describe(self) -> str:
        p = self.payload
        if self.kind is DirectiveKind.INSTALL_PACKAGE:
            if p.get("requirements"):
                return f"{p['ecosystem']} requirements {p['requirements']}"
            return f"{p['ecosystem']} package {p['name']}"
        if self.kind is DirectiveKind.CLONE_REPO:
            return f"repository {p['url']} -> {p['dest']}"
        if self.kind is DirectiveKind.RUN_SCRIPT:
            return f"script {p.get('path') or p.get('url')}"
        if self.kind is DirectiveKind.SYMLINK:
            return f"link {p['dest']} -> {p['src']}"
        if self.kind is DirectiveKind.SET_ENV:
            if p.get("file"):
                return f"env file {p['file']}"
            return f"export {p['key']}"
        if self.kind is DirectiveKind.RUN_COMMAND:
            return f"command {fmt_argv(p['argv'])}"
        return self.kind.value


def _clean(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v not in (None, "")}


def install_package(ecosystem: str, name: str, *, source: str, optional: bool = False) -> Directive:
    return Directive(
        DirectiveKind.INSTALL_PACKAGE,
        _clean({"ecosystem": ecosystem, "name": (name or "").strip()}),
        source=source,
        optional=optional,
    )


def install_requirements(ecosystem: str, requirements: str, *, source: str) -> Directive:
    return Directive(
        DirectiveKind.INSTALL_PACKAGE,
        _clean({"ecosystem": ecosystem, "requirements": requirements}),
        source=source,
    )


def clone_repo(url: str, dest: str, *, source: str, optional: bool = False) -> Directive:
    return Directive(DirectiveKind.CLONE_REPO, _clean({"url": url, "dest": dest}), source=source, optional=optional)


def run_script(*, path: Optional[str] = None, url: Optional[str] = None, source: str) -> Directive:
    return Directive(DirectiveKind.RUN_SCRIPT, _clean({"path": path, "url": url}), source=source)


def symlink(src: str, dest: str, *, source: str) -> Directive:
    return Directive(DirectiveKind.SYMLINK, _clean({"src": src, "dest": dest}), source=source)


def set_env(
    *,
    key: Optional[str] = None,
    value: Optional[str] = None,
    file: Optional[str] = None,
    source: str,
) -> Directive:
    payload: Dict[str, Any] = _clean({"key": key, "file": file})
    if key:
        payload["value"] = value or ""
    return Directive(DirectiveKind.SET_ENV, payload, source=source)


def run_command(argv: Sequence[str], *, source: str, optional: bool = False) -> Directive:
    return Directive(
        DirectiveKind.RUN_COMMAND,
        _clean({"argv": tuple(str(a) for a in argv)}) if argv else {},
        source=source,
        optional=optional,
    )


def split_tokens(value: Optional[str]) -> List[str]:
    """Space separated package list -> tokens, in order."""
    return (value or "").split()


def package_directives(ecosystem: str, packages: Iterable[str], *, source: str) -> List[Directive]:
    return [install_package(ecosystem, p, source=source) for p in packages if p.strip()]


# `#` at the start of a line or after whitespace starts a comment, as in pip.
_COMMENT_RE = re.compile(r"(^|\s)#.*$")


def read_list_file(path: Path) -> List[str]:
    """One entry per line; blank lines and `#` comments are skipped."""
    out: List[str] = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = _COMMENT_RE.sub("", raw).strip()
        if not line:
            continue
        out.append(line)
    return out


def requirements_directives(path: Path, *, source: str) -> List[Directive]:
    """pip requirements file -> one install per requirement.

    A file that uses pip options (`-r`, `-e`, `--index-url`, ...) is handed to
    `pip install -r` as a whole.
    """
    entries = read_list_file(path)
    if any(e.startswith("-") for e in entries):
        logger.debug("%s uses pip options; installing it with -r", path)
        return [install_requirements("pip", str(path), source=source)]
    return package_directives("pip", entries, source=source)


def directive_from_manifest(action: Mapping[str, Any], *, home: Path, source: str) -> Directive:
    """Translate one `<kind>: <payload>` manifest entry into a Directive."""

    (kind_name, body), = action.items()
    body = dict(body or {})
    optional = bool(body.pop("optional", False))
    try:
        kind = DirectiveKind(kind_name)
    except ValueError as e:
        raise ValueError(f"Unknown directive kind in manifest: {kind_name}") from e

    if kind is DirectiveKind.INSTALL_PACKAGE:
        return install_package(
            str(body.get("ecosystem") or ""), str(body.get("name") or ""), source=source, optional=optional
        )
    if kind is DirectiveKind.CLONE_REPO:
        dest = str(expand_home(str(body.get("dest", "")), home)) if body.get("dest") else ""
        return clone_repo(str(body.get("url") or ""), dest, source=source, optional=optional)
    if kind is DirectiveKind.RUN_COMMAND:
        return run_command(body.get("argv") or [], source=source, optional=optional)
    if kind is DirectiveKind.SET_ENV:
        return set_env(key=body.get("key"), value=body.get("value"), file=body.get("file"), source=source)
    if kind is DirectiveKind.RUN_SCRIPT:
        return run_script(path=body.get("path"), url=body.get("url"), source=source)
    return symlink(
        str(expand_home(str(body.get("src", "")), home)) if body.get("src") else "",
        str(expand_home(str(body.get("dest", "")), home)) if body.get("dest") else "",
        source=source,
    )


@dataclass
class PhasePlan:
    phase_id: str
    directives: List[Directive] = field(default_factory=list)
    skip_reason: Optional[str] = None

    def add(self, directive: Optional[Directive]) -> None:
        if directive is None or directive.is_empty():
            return
        self.directives.append(replace(directive, phase=self.phase_id))


@dataclass
class Plan:
    phases: List[PhasePlan]

    def phase(self, phase_id: str) -> PhasePlan:
        for p in self.phases:
            if p.phase_id == phase_id:
                return p
        raise KeyError(phase_id)

    def directives(self) -> Iterator[Directive]:
        for p in self.phases:
            yield from p.directives


class Phase(Protocol):
    """Collects the directives contributed by one kind of extension source."""

    phase_id: str

    def skip_reason(self, settings: Settings) -> Optional[str]:
        ...

    def collect(self, settings: Settings) -> List[Directive]:
        ...


def build_plan(settings: Settings, phases: Sequence[Phase]) -> Plan:
    """Collect every phase, in the fixed phase order."""

    unknown = [p.phase_id for p in phases if p.phase_id not in PHASE_ORDER]
    if unknown:
        raise ValueError(f"Unknown phase(s): {', '.join(unknown)}")

    ordered = sorted(phases, key=lambda p: PHASE_ORDER.index(p.phase_id))
    plans: List[PhasePlan] = []
    for phase in ordered:
        reason = phase.skip_reason(settings)
        pp = PhasePlan(phase_id=phase.phase_id, skip_reason=reason)
        if reason is None:
            for d in phase.collect(settings):
                pp.add(d)
        logger.debug("Planned %s: %d directive(s)%s", phase.phase_id, len(pp.directives), f" ({reason})" if reason else "")
        plans.append(pp)
    return Plan(phases=plans)
