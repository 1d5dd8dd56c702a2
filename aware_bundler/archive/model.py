"""Versioned module archives and their module index."""

from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, Mapping, Optional

from ..errors import InvalidArchiveError
from ..settings import BuildSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ArchivedModule:
    """Module found in an archive: assets keyed by path below the module directory."""

    name: str
    archive: "Archive"
    assets: Dict[str, zipfile.ZipInfo] = field(default_factory=dict)


class Archive:
    """Opened archive ``<home>/<name>/<version>/<archive_file>``.

    The zip handle is opened once and shared by concurrent readers. ``modules``
    is derived when the archive is opened and never changes afterwards.
    """

    def __init__(self, path: Path, name: str, version: str, handle: zipfile.ZipFile) -> None:
        self.path = path
        self.name = name
        self.version = version
        self.home = path.parent.parent.parent
        self._handle = handle
        self.entries: Dict[str, zipfile.ZipInfo] = {
            info.filename: info for info in handle.infolist() if not info.is_dir()
        }
        self.modules: Dict[str, ArchivedModule] = _index_modules(self)

    def __repr__(self) -> str:
        return f"Archive({self.name}/{self.version})"

    def __enter__(self) -> "Archive":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def label(self) -> str:
        return f"{self.name}/{self.version}"

    def read_bytes(self, entry: zipfile.ZipInfo) -> bytes:
        return self._handle.read(entry)

    def read_text(self, entry: zipfile.ZipInfo) -> str:
        return self.read_bytes(entry).decode("utf-8")

    def open_entry(self, entry: zipfile.ZipInfo) -> IO[bytes]:
        return self._handle.open(entry)

    def close(self) -> None:
        self._handle.close()


def select_entries(
    entries: Mapping[str, zipfile.ZipInfo],
    home: str,
    suffix: str = "",
) -> Dict[str, zipfile.ZipInfo]:
    """Select entries below directory ``home`` that end with ``suffix``.

    Keys are relative to ``home`` with ``suffix`` stripped, in ascending order.
    """

    prefix = home.rstrip("/") + "/"
    selected: Dict[str, zipfile.ZipInfo] = {}
    for entry_path in sorted(entries):
        if not entry_path.startswith(prefix) or not entry_path.endswith(suffix):
            continue
        relative = entry_path[len(prefix) :]
        if suffix:
            relative = relative[: -len(suffix)]
        if relative:
            selected[relative] = entries[entry_path]
    return selected


def parse_archive_path(path: Path, settings: BuildSettings) -> tuple[str, str]:
    """Return ``(name, version)`` encoded in an archive path or raise."""

    layout = settings.archive
    if path.name != layout.archive_file:
        raise InvalidArchiveError(path, f"expected file name {layout.archive_file}")
    version = path.parent.name
    name = path.parent.parent.name
    if not re.match(layout.name_pattern, name):
        raise InvalidArchiveError(path, f"archive name '{name}'")
    if not re.match(layout.version_pattern, version):
        raise InvalidArchiveError(path, f"archive version '{version}'")
    return name, version


def open_archive(path: Path | str, settings: Optional[BuildSettings] = None) -> Archive:
    """Open the versioned archive at ``path`` and index its modules."""

    settings = settings or BuildSettings()
    archive_path = Path(path)
    name, version = parse_archive_path(archive_path, settings)
    try:
        handle = zipfile.ZipFile(archive_path)
    except (FileNotFoundError, zipfile.BadZipFile) as exc:
        raise InvalidArchiveError(archive_path, str(exc)) from exc
    archive = Archive(archive_path, name, version, handle)
    logger.debug("Opened archive %s with %d module(s)", archive.label, len(archive.modules))
    return archive


def _index_modules(archive: Archive) -> Dict[str, ArchivedModule]:
    modules: Dict[str, ArchivedModule] = {}
    for entry_path, info in archive.entries.items():
        module_name, separator, asset_path = entry_path.partition("/")
        if not separator or module_name.find(".") <= 0 or not asset_path:
            continue
        module = modules.get(module_name)
        if module is None:
            module = modules[module_name] = ArchivedModule(name=module_name, archive=archive)
        module.assets[asset_path] = info
    return modules
