"""Build settings shared by the archive model, asset pipeline and generator."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

SETTINGS_ENV = "AWARE_BUNDLER_SETTINGS"


class ArchiveLayout(BaseModel):
    name_pattern: str = Field(
        default=r"^[a-z][0-9a-z]*(?:[-_][0-9a-z]+)*$",
        description="Pattern that archive directory names must match.",
    )
    version_pattern: str = Field(
        default=r"^\d+(?:\.\d+)*(?:[-.]?[0-9A-Za-z]+)*$",
        description="Pattern that archive version directory names must match.",
    )
    archive_file: str = Field(default="archive.zip", description="Fixed filename of every versioned archive.")
    bundle_scripts: str = Field(default="bundles", description="Archive directory holding bundle scripts.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("name_pattern", "version_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid pattern '{value}': {exc}") from exc
        return value


class ModuleLayout(BaseModel):
    config_script: str = "Configure.js"
    config_scripts: str = "Configure"
    class_scripts: str = "Classes"
    public_assets: str = "Public"
    boot_script: str = "Boot.js"

    model_config = ConfigDict(extra="forbid")


class LoaderSettings(BaseModel):
    basename: str = Field(default="bundle", description="Base filename of the generated loader files.")

    model_config = ConfigDict(extra="forbid")

    @property
    def script(self) -> str:
        return f"{self.basename}.js"

    @property
    def mini(self) -> str:
        return f"{self.basename}.min.js"

    @property
    def meta(self) -> str:
        return f"{self.basename}.json"


class AssetSettings(BaseModel):
    datafy_limit: int = Field(default=4096, ge=0, description="Largest asset size (bytes) that may be inlined.")
    datafy_extensions: List[str] = Field(
        default_factory=lambda: ["eot", "gif", "ico", "jpeg", "jpg", "otf", "png", "svg", "ttf", "woff", "woff2"],
    )
    graphics_extensions: List[str] = Field(
        default_factory=lambda: ["bmp", "gif", "jpeg", "jpg", "png", "tiff", "webp"],
    )
    minify: bool = Field(default=True, description="Write minified siblings of scripts and of the loader.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("datafy_extensions", "graphics_extensions")
    @classmethod
    def _normalise_extensions(cls, values: List[str]) -> List[str]:
        return sorted({value.lower().lstrip(".") for value in values if value.strip()})

    def datafies(self, extension: str, size: int) -> bool:
        return extension.lower() in self.datafy_extensions and size <= self.datafy_limit

    def probes(self, extension: str, size: int) -> bool:
        return extension.lower() in self.graphics_extensions and size > self.datafy_limit


class BuildSettings(BaseModel):
    archive: ArchiveLayout = Field(default_factory=ArchiveLayout)
    module: ModuleLayout = Field(default_factory=ModuleLayout)
    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    assets: AssetSettings = Field(default_factory=AssetSettings)

    model_config = ConfigDict(extra="forbid")


def load_settings(path: Optional[Path] = None) -> BuildSettings:
    """Load settings from YAML or JSON, falling back to ``AWARE_BUNDLER_SETTINGS``."""

    if path is None:
        env_value = os.getenv(SETTINGS_ENV)
        if not env_value:
            return BuildSettings()
        path = Path(env_value)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        payload = json.loads(text)
    else:
        try:
            payload = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid settings file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return BuildSettings.model_validate(payload)
