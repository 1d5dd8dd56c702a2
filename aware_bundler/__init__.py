"""Release bundler for versioned module archives."""

__version__ = "0.1.0"
from .bundle.builder import BundleBuilder, build, build_sync
from .errors import (
    BootConflictError,
    BuildError,
    BundlerError,
    InvalidArchiveError,
    MissingArchiveError,
    MissingAssetError,
    ModuleConflictError,
    ScriptError,
    VersionConstraintError,
)
from .models import BundleConfig
from .settings import BuildSettings, load_settings

__all__ = [
    "__version__",
    "BootConflictError",
    "BuildError",
    "BuildSettings",
    "BundleBuilder",
    "BundleConfig",
    "BundlerError",
    "InvalidArchiveError",
    "MissingArchiveError",
    "MissingAssetError",
    "ModuleConflictError",
    "ScriptError",
    "VersionConstraintError",
    "build",
    "build_sync",
    "load_settings",
]
