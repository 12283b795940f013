from __future__ import annotations

import logging
from typing import List, Optional

from ..config import ENV_SKIP_DEFAULT, Settings
from ..lib.manifests import load_defaults_manifest
from ..plan import PHASE_DEFAULTS, Directive, directive_from_manifest

logger = logging.getLogger(__name__)


class DefaultsPhase:
    """Built-in packages and repositories from manifests/defaults.yaml."""

    phase_id = PHASE_DEFAULTS

    def skip_reason(self, settings: Settings) -> Optional[str]:
        if settings.skip_defaults:
            return f"skipped (--skip-defaults / {ENV_SKIP_DEFAULT})"
        return None

    def collect(self, settings: Settings) -> List[Directive]:
        return [
            directive_from_manifest(action, home=settings.home, source="defaults")
            for action in load_defaults_manifest()
        ]
