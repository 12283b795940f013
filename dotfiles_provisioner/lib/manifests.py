from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List


def _package_root() -> Path:
    # dotfiles_provisioner/lib/manifests.py -> dotfiles_provisioner
    return Path(__file__).resolve().parents[1]


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML file relative to the package root (manifests/...)."""
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML required to load manifests") from e

    p = _package_root() / rel_path.lstrip("/")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def load_defaults_manifest() -> List[Dict[str, Any]]:
    data = load_yaml_rel("manifests/defaults.yaml")
    actions = data.get("actions") or []
    if not isinstance(actions, list):
        raise ValueError("manifests/defaults.yaml: actions must be a list")
    for a in actions:
        if not isinstance(a, dict) or len(a) != 1:
            raise ValueError(f"manifests/defaults.yaml: each action must be a single-key mapping, got {a!r}")
    return actions
