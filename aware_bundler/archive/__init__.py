"""Archive discovery and version resolution."""

from .model import Archive, ArchivedModule, open_archive, parse_archive_path, select_entries
from .resolver import find_best_archive, list_versions
from .versions import VersionConstraint, best_version, parse_constraint

__all__ = [
    "Archive",
    "ArchivedModule",
    "VersionConstraint",
    "best_version",
    "find_best_archive",
    "list_versions",
    "open_archive",
    "parse_archive_path",
    "parse_constraint",
    "select_entries",
]
