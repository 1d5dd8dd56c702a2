"""Bundle composition, asset processing and release publication."""

from .assets import AssetPipeline
from .builder import BundleBuilder, ReleasePlan, build, build_sync
from .composer import Composition, compose_bundle
from .release import parse_release, release_bundle, release_id

__all__ = [
    "AssetPipeline",
    "BundleBuilder",
    "Composition",
    "ReleasePlan",
    "build",
    "build_sync",
    "compose_bundle",
    "parse_release",
    "release_bundle",
    "release_id",
]
