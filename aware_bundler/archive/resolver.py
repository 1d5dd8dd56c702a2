"""Locate external archives next to the main archive."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Optional

from ..settings import BuildSettings
from .model import Archive, open_archive
from .versions import best_version

logger = logging.getLogger(__name__)


def list_versions(home: Path, archive_name: str, settings: BuildSettings) -> Dict[str, Path]:
    """Map candidate versions of ``archive_name`` below ``home`` to archive paths."""

    layout = settings.archive
    versions: Dict[str, Path] = {}
    for candidate in sorted((home / archive_name).glob(f"*/{layout.archive_file}")):
        version = candidate.parent.name
        if re.match(layout.version_pattern, version) and candidate.is_file():
            versions[version] = candidate
    return versions


def find_best_archive(
    home: Path,
    archive_name: str,
    constraint: Optional[str],
    settings: Optional[BuildSettings] = None,
) -> Optional[Archive]:
    """Open the highest version of ``archive_name`` that satisfies ``constraint``."""

    settings = settings or BuildSettings()
    versions = list_versions(home, archive_name, settings)
    version = best_version(versions, constraint)
    if version is None:
        logger.debug(
            "No version of %s satisfies '%s' (candidates: %s)",
            archive_name,
            constraint,
            ", ".join(versions) or "none",
        )
        return None
    logger.info("Resolved %s '%s' to %s", archive_name, constraint or "*", version)
    return open_archive(versions[version], settings)
