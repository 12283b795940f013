from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlparse

from ..config import (
    ENV_CUSTOM_REPO,
    ENV_CUSTOM_SCRIPT,
    ENV_EXTRA_APT,
    ENV_EXTRA_NPM,
    ENV_EXTRA_PIP,
    Settings,
)
from ..lib.git import repo_dir_name
from ..plan import PHASE_ENV, Directive, clone_repo, package_directives, run_script, split_tokens

logger = logging.getLogger(__name__)


def is_url(value: str) -> bool:
    """True for anything curl should fetch; other values are local script paths."""
    return urlparse(value).scheme in {"http", "https", "ftp", "file"}


class EnvExtensionsPhase:
    phase_id = PHASE_ENV

    def skip_reason(self, settings: Settings) -> Optional[str]:
        return None

    def collect(self, settings: Settings) -> List[Directive]:
        out: List[Directive] = []

        for var, ecosystem, value in (
            (ENV_EXTRA_PIP, "pip", settings.extra_pip),
            (ENV_EXTRA_APT, "apt", settings.extra_apt),
            (ENV_EXTRA_NPM, "npm", settings.extra_npm),
        ):
            if value:
                logger.info("Found %s: %s", var, value)
                out.extend(package_directives(ecosystem, split_tokens(value), source=var))

        if settings.custom_repo:
            logger.info("Found %s: %s", ENV_CUSTOM_REPO, settings.custom_repo)
            dest = settings.home / repo_dir_name(settings.custom_repo)
            out.append(clone_repo(settings.custom_repo, str(dest), source=ENV_CUSTOM_REPO))

        if settings.custom_script:
            logger.info("Found %s: %s", ENV_CUSTOM_SCRIPT, settings.custom_script)
            if is_url(settings.custom_script):
                out.append(run_script(url=settings.custom_script, source=ENV_CUSTOM_SCRIPT))
            else:
                out.append(run_script(path=settings.custom_script, source=ENV_CUSTOM_SCRIPT))

        return out
