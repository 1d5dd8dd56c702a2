from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from aware_bundler.settings import SETTINGS_ENV, BuildSettings, load_settings


def test_defaults() -> None:
    settings = BuildSettings()

    assert settings.archive.archive_file == "archive.zip"
    assert settings.archive.bundle_scripts == "bundles"
    assert settings.module.boot_script == "Boot.js"
    assert (settings.loader.script, settings.loader.mini, settings.loader.meta) == (
        "bundle.js",
        "bundle.min.js",
        "bundle.json",
    )
    assert settings.assets.datafy_limit == 4096
    assert settings.assets.minify is True


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("loader:\n  basename: loader\nassets:\n  minify: false\n  datafy_limit: 10\n", encoding="utf-8")

    settings = load_settings(path)

    assert settings.loader.script == "loader.js"
    assert settings.assets.minify is False
    assert settings.assets.datafy_limit == 10


def test_load_settings_from_json_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"archive": {"bundle_scripts": "packs"}}), encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV, str(path))

    assert load_settings().archive.bundle_scripts == "packs"

    monkeypatch.delenv(SETTINGS_ENV)
    assert load_settings() == BuildSettings()


def test_load_settings_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(listing)

    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("archive:\n  colour: blue\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(unknown)

    pattern = tmp_path / "pattern.yaml"
    pattern.write_text("archive:\n  name_pattern: '('\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(pattern)
