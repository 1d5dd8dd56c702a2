"""Release identity: provenance strings and the ids derived from them."""

from __future__ import annotations

import base64
import hashlib
from typing import Dict, Mapping, Tuple

from ..archive.model import Archive
from ..models import BundleConfig, BundledModule, release_archives, release_modules


def release_bundle(main: Archive, config: BundleConfig, modules: Mapping[str, BundledModule]) -> str:
    """Assign module ordinals, record the provenance on ``config`` and return the release id.

    Provenance is ``=<main>/<version>`` followed by ``,<module>=<archive>/<version>``
    for each bundled module in ascending name order.
    """

    origins = [f"={main.label}"]
    for ordinal, name in enumerate(sorted(modules), start=1):
        module = modules[name]
        module.ordinal = ordinal
        origins.append(f"{name}={module.archive.label}")
    config.release = ",".join(origins)
    return release_id(config.release)


def release_id(release: str) -> str:
    """URL-safe, unpadded base64 of the MD5 digest of a provenance string."""

    digest = hashlib.md5(release.encode("utf-8"), usedforsecurity=False).digest()
    encoded = base64.b64encode(digest).decode("ascii").rstrip("=")
    return encoded.replace("/", "-").replace("+", "_")


def parse_release(release: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return ``(module -> archive/version, archive -> version)`` of a provenance string."""

    return release_modules(release), release_archives(release)
