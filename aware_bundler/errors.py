"""Exceptions raised while resolving, composing and publishing bundles."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional


class BundlerError(RuntimeError):
    """Base class for fatal bundling failures."""


class InvalidArchiveError(BundlerError):
    """Raised when an archive path does not name a valid versioned archive."""

    def __init__(self, path: Path | str, reason: Optional[str] = None) -> None:
        self.path = str(path)
        message = f"Invalid archive: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MissingArchiveError(BundlerError):
    """Raised when no archive satisfies a version constraint of a bundle."""

    def __init__(self, bundle: str, archive_name: str, constraint: str) -> None:
        self.bundle = bundle
        self.archive_name = archive_name
        self.constraint = constraint
        super().__init__(f"{bundle}: Missing archive {archive_name} {constraint}")


class ModuleConflictError(BundlerError):
    """Raised when two archives supply the same bundled module."""

    def __init__(self, module: str, first: str, second: str) -> None:
        self.module = module
        self.archives = (first, second)
        super().__init__(f"{module} in archives {first} and {second}")


class BootConflictError(BundlerError):
    """Raised when more than one bundled module carries a boot script."""

    def __init__(self, first: str, second: str) -> None:
        self.modules = (first, second)
        super().__init__(f"Boot conflict between {first} and {second}")


class MissingAssetError(BundlerError):
    """Raised when a mandatory script is absent from an archive."""


class ScriptError(BundlerError):
    """Raised when a configuration or class script cannot be parsed."""

    def __init__(self, message: str, *, source: Optional[str] = None, offset: Optional[int] = None) -> None:
        self.source = source
        self.offset = offset
        if source is not None and offset is not None:
            line = source.count("\n", 0, offset) + 1
            message = f"{message} (line {line})"
        super().__init__(message)


class VersionConstraintError(ValueError):
    """Raised when a version constraint cannot be parsed."""


class BuildError(BundlerError):
    """Raised after all bundle pipelines settled and at least one failed."""

    def __init__(self, failures: Dict[str, BaseException], releases: List[Path]) -> None:
        self.failures = dict(failures)
        self.releases = list(releases)
        details = "; ".join(f"{name}: {exc}" for name, exc in sorted(self.failures.items()))
        super().__init__(f"{len(self.failures)} bundle(s) failed: {details}")
