"""Error classes for provisioning runs.

Two tiers:
- DirectiveError: recoverable. One directive failed; the run continues.
- FatalProvisioningError: the rest of the plan cannot run (a required
  package installer is missing with no fallback).

UsageError is raised before any plan exists, for malformed invocations.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base exception for dotfiles_provisioner."""


class UsageError(ProvisioningError):
    """Malformed command line (unknown flag, missing value, stray argument)."""


class DirectiveError(ProvisioningError):
    """A single directive could not be applied.

    Examples:
    - requirements file or post-script not found
    - script downloaded but not runnable
    """


class FatalProvisioningError(ProvisioningError):
    """A whole phase cannot run; the remaining plan is aborted."""

    def __init__(self, message: str, *, tool: str | None = None) -> None:
        super().__init__(message)
        self.tool = tool
