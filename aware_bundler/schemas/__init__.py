"""Pydantic schemas for bundle declarations and release metadata."""

from .bundle import BundleDeclaration
from .meta import ArchiveRef, BundleMeta, ModuleMeta

__all__ = ["ArchiveRef", "BundleDeclaration", "BundleMeta", "ModuleMeta"]
