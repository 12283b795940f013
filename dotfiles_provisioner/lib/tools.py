from __future__ import annotations

import logging
import os
import shutil
from typing import Dict, Mapping, Optional

from ..errors import FatalProvisioningError
from .command import run_cmd

logger = logging.getLogger(__name__)


# Binary names tried, in order, for each package ecosystem.
INSTALLERS: Dict[str, tuple[str, ...]] = {
    "pip": ("pip3", "pip"),
    "apt": ("apt-get",),
    "npm": ("npm",),
}


class Toolbox:
    """Locate external binaries on the run's PATH (not the process PATH)."""

    def __init__(self, env: Mapping[str, str], *, dry_run: bool = False) -> None:
        self.env = env
        self.dry_run = dry_run
        self._cache: Dict[str, Optional[str]] = {}

    def find(self, name: str) -> Optional[str]:
        if name not in self._cache:
            self._cache[name] = shutil.which(name, path=self.env.get("PATH", os.defpath))
        return self._cache[name]

    def forget(self, name: Optional[str] = None) -> None:
        if name is None:
            self._cache.clear()
        else:
            self._cache.pop(name, None)

    def sudo_prefix(self) -> list[str]:
        if os.geteuid() == 0:
            return []
        sudo = self.find("sudo")
        return [sudo] if sudo else []

    def installer(self, ecosystem: str) -> Optional[str]:
        for name in INSTALLERS.get(ecosystem, ()):
            path = self.find(name)
            if path:
                return path
        return None

    def require_installer(self, ecosystem: str) -> str:
        """Return the installer binary for an ecosystem or raise FatalProvisioningError.

        pip has one fallback: install python3 + python3-pip through apt-get.
        In dry-run a missing installer is reported but never fatal.
        """

        if ecosystem not in INSTALLERS:
            raise FatalProvisioningError(f"Unknown package ecosystem: {ecosystem}", tool=ecosystem)

        found = self.installer(ecosystem)
        if found:
            return found

        wanted = INSTALLERS[ecosystem][0]
        if self.dry_run:
            logger.warning("%s not found (dry-run, continuing)", wanted)
            return wanted

        if ecosystem == "pip":
            apt = self.find("apt-get")
            if apt:
                logger.info("pip not found, installing python3 via apt-get")
                sudo = self.sudo_prefix()
                run_cmd([*sudo, apt, "update"], env=self.env, check=False)
                r = run_cmd([*sudo, apt, "install", "-y", "python3", "python3-pip"], env=self.env, check=False)
                if r.returncode != 0:
                    logger.error("apt-get could not install python3-pip (%s)", r.returncode)
                for name in INSTALLERS["pip"]:
                    self.forget(name)
                found = self.installer("pip")
                if found:
                    return found

        raise FatalProvisioningError(
            f"Required package installer not found: {wanted}",
            tool=wanted,
        )
