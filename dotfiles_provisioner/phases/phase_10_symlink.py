from __future__ import annotations

import logging
from typing import List, Optional

from ..config import DOTFILES, Settings
from ..plan import PHASE_SYMLINK, Directive, symlink

logger = logging.getLogger(__name__)


class SymlinkPhase:
    phase_id = PHASE_SYMLINK

    def skip_reason(self, settings: Settings) -> Optional[str]:
        return None

    def collect(self, settings: Settings) -> List[Directive]:
        out: List[Directive] = []
        for name in DOTFILES:
            src = settings.dotfiles_dir / name
            if not src.is_file():
                logger.debug("No %s in %s, not linking", name, settings.dotfiles_dir)
                continue
            out.append(symlink(str(src), str(settings.home / name), source="dotfiles"))
        return out
