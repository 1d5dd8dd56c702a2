"""Data shared by the composer, the asset pipeline and the loader generator."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from .archive.model import Archive
from .errors import ScriptError
from .schemas.bundle import BundleDeclaration
from .specs.script import Closure, parse_closure


@dataclass(slots=True)
class BundleConfig:
    """Configuration of one bundle, evaluated from ``<bundle_scripts>/<name>.js``.

    ``boot`` and ``release`` are filled in while the bundle is composed.
    """

    name: str
    source: str
    closure: Closure
    versions: Dict[str, str] = field(default_factory=dict)
    includes: List[str] = field(default_factory=lambda: [""])
    excludes: List[str] = field(default_factory=list)
    boot: Optional[str] = None
    release: Optional[str] = None

    @classmethod
    def from_script(cls, name: str, source: str) -> "BundleConfig":
        try:
            closure = parse_closure(source)
        except ScriptError as exc:
            raise ScriptError(f"Bundle script {name}: {exc}") from exc
        try:
            declaration = BundleDeclaration.model_validate(closure.apply({}))
        except ValidationError as exc:
            raise ScriptError(f"Bundle script {name}: {exc}") from exc
        return cls(
            name=name,
            source=source,
            closure=closure,
            versions=dict(declaration.versions),
            includes=list(declaration.includes),
            excludes=list(declaration.excludes),
        )

    def selects(self, module_name: str) -> bool:
        included = any(module_name.startswith(prefix) for prefix in self.includes)
        return included and not any(module_name.startswith(prefix) for prefix in self.excludes)


@dataclass(frozen=True, slots=True)
class Inlined:
    """Public asset embedded in the metadata as a data URI."""

    data: str


@dataclass(frozen=True, slots=True)
class Dimensions:
    """Pixel size of a public graphics asset too large to inline."""

    width: int
    height: int


Annotation = Union[Inlined, Dimensions, None]


@dataclass(slots=True)
class PublicAsset:
    path: str
    entry: zipfile.ZipInfo
    annotation: Annotation = None
    minified_size: Optional[int] = None

    @property
    def size(self) -> int:
        return self.entry.file_size

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix[1:].lower()

    @property
    def minifiable(self) -> bool:
        return self.path.endswith(".js") and not self.path.endswith(".min.js")

    @property
    def minified_path(self) -> str:
        return self.path[: -len("js")] + "min.js"


@dataclass(slots=True)
class BundledModule:
    """Module selected for a bundle; ``archive`` is a lookup reference only."""

    name: str
    archive: Archive
    assets: Dict[str, zipfile.ZipInfo]
    ordinal: int = 0
    configs: List[str] = field(default_factory=list)
    classes: Dict[str, str] = field(default_factory=dict)
    public: Dict[str, PublicAsset] = field(default_factory=dict)


def release_modules(release: str) -> Dict[str, str]:
    """Map every provenance key to ``archive/version``; the main archive has key ``''``."""

    modules: Dict[str, str] = {}
    for origin in release.split(","):
        name, _, archive = origin.partition("=")
        modules[name] = archive
    return modules


def release_archives(release: str) -> Dict[str, str]:
    """Map archive names of a provenance string to their versions."""

    archives: Dict[str, str] = {}
    for archive in release_modules(release).values():
        name, _, version = archive.partition("/")
        archives[name] = version
    return dict(sorted(archives.items()))
