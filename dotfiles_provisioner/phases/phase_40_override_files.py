from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..config import Settings
from ..plan import (
    PHASE_OVERRIDE,
    Directive,
    package_directives,
    read_list_file,
    requirements_directives,
    run_script,
    set_env,
)

logger = logging.getLogger(__name__)


# Enumeration order within the phase.
LIST_FILES = (
    ("requirements.txt", "pip"),
    ("packages.txt", "apt"),
    ("npm-packages.txt", "npm"),
)
ENV_FILE = "env.sh"
# Always the last directive of the phase.
FINAL_SCRIPT = "custom.sh"

RECOGNIZED = tuple(name for name, _ in LIST_FILES) + (ENV_FILE, FINAL_SCRIPT)


class OverrideFilesPhase:
    phase_id = PHASE_OVERRIDE

    def skip_reason(self, settings: Settings) -> Optional[str]:
        if not settings.override_dir.is_dir():
            return f"no override directory at {settings.override_dir}"
        return None

    def _from_list_file(self, path: Path, ecosystem: str) -> List[Directive]:
        source = f"override:{path.name}"
        try:
            if ecosystem == "pip":
                found = requirements_directives(path, source=source)
            else:
                found = package_directives(ecosystem, read_list_file(path), source=source)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read %s: %s", path, e)
            return []
        logger.info("Found %s (%d %s directive(s))", path.name, len(found), ecosystem)
        return found

    def _log_ignored(self, root: Path) -> None:
        try:
            ignored = sorted(c.name for c in root.iterdir() if c.name not in RECOGNIZED)
        except OSError as e:
            logger.warning("Cannot list %s: %s", root, e)
            return
        if ignored:
            logger.debug("Ignoring unrecognized override files: %s", ", ".join(ignored))

    def collect(self, settings: Settings) -> List[Directive]:
        root = settings.override_dir
        out: List[Directive] = []

        for name, ecosystem in LIST_FILES:
            p = root / name
            if p.is_file():
                out.extend(self._from_list_file(p, ecosystem))

        env_file = root / ENV_FILE
        if env_file.is_file():
            logger.info("Found %s", ENV_FILE)
            out.append(set_env(file=str(env_file), source=f"override:{ENV_FILE}"))

        self._log_ignored(root)

        final = root / FINAL_SCRIPT
        if final.is_file():
            logger.info("Found %s (runs last)", FINAL_SCRIPT)
            out.append(run_script(path=str(final), source=f"override:{FINAL_SCRIPT}"))

        return out
