from __future__ import annotations

import logging
from typing import List, Optional

from ..config import Settings
from ..plan import (
    PHASE_CLI,
    Directive,
    install_requirements,
    package_directives,
    requirements_directives,
    run_script,
    split_tokens,
)

logger = logging.getLogger(__name__)


class CliExtensionsPhase:
    phase_id = PHASE_CLI

    def skip_reason(self, settings: Settings) -> Optional[str]:
        return None

    def collect(self, settings: Settings) -> List[Directive]:
        out: List[Directive] = []

        req = settings.pip_requirements
        if req is not None:
            found = None
            if req.is_file():
                try:
                    found = requirements_directives(req, source="--pip-requirements")
                except (OSError, UnicodeDecodeError) as e:
                    logger.error("Cannot read %s: %s", req, e)
            if found is not None:
                out.extend(found)
            else:
                # Kept as a single directive so the problem is reported when it runs.
                out.append(install_requirements("pip", str(req), source="--pip-requirements"))

        out.extend(package_directives("apt", split_tokens(settings.apt_packages), source="--apt-packages"))
        out.extend(package_directives("npm", split_tokens(settings.npm_packages), source="--npm-packages"))

        if settings.post_script is not None:
            out.append(run_script(path=str(settings.post_script), source="--post-script"))

        return out
