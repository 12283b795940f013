from .phase_10_symlink import SymlinkPhase
from .phase_20_defaults import DefaultsPhase
from .phase_30_env_extensions import EnvExtensionsPhase
from .phase_40_override_files import OverrideFilesPhase
from .phase_50_cli_extensions import CliExtensionsPhase

__all__ = [
    "SymlinkPhase",
    "DefaultsPhase",
    "EnvExtensionsPhase",
    "OverrideFilesPhase",
    "CliExtensionsPhase",
]
