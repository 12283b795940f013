"""Dotfiles provisioner for remote development workspaces.

Core design goals:
- One resolved plan per run, built from layered sources
  (defaults < environment < override files < command line)
- Fixed phase order
- Idempotent directives (relink only when needed, clone becomes pull)
- Per-directive failures are recorded, never fatal
- Centralized logging
"""

__all__ = []
