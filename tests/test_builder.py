from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from aware_bundler.archive.model import open_archive
from aware_bundler.bundle.builder import BundleBuilder, build, build_sync
from aware_bundler.bundle.release import release_id
from aware_bundler.errors import BuildError, InvalidArchiveError, MissingAssetError
from aware_bundler.settings import AssetSettings, BuildSettings
from aware_bundler.specs.generator import parse_specs

from .test_archive import _module_files, _write_archive
from .test_assets import SCRIPT, _png

CORE_CONFIG = """function (module) {
  'use strict';
  module.description = 'Core';
  module.depends = ['lib.util'];
  module.provides = ['Core'];
  module.test = function () { return true; };
  module.datatypes = {Point: {x: 'number', y: 'number'}};
}
"""
BOOT = "(function (bundleName, moduleName) {\n  return window.loader;\n});\n"
WEB_BUNDLE = "function (bundle) {\n  bundle.versions = {lib: '^2.0.0'};\n  bundle.excludes = ['app.test'];\n}\n"


def _scenario(home: Path, bundles: dict | None = None) -> Path:
    for version in ("1.0.0", "2.1.0", "3.0.0"):
        _write_archive(home, "lib", version, _module_files("lib.util"))
    files = {
        **_module_files(
            "app.core",
            {
                "Classes/Main.js": "'Object'.subclass(['lib.util'], function (I) {\n  I.am({});\n});\n",
                "Public/logo.png": _png(4, 4),
                "Public/app.js": SCRIPT,
            },
            configure=CORE_CONFIG,
        ),
        **_module_files("app.boot", {"Boot.js": BOOT}),
        **_module_files("app.test"),
    }
    for name, script in (bundles or {"web": WEB_BUNDLE}).items():
        files[f"bundles/{name}.js"] = script
    return _write_archive(home, "app", "1.0.0", files)


def test_build_publishes_release(tmp_path: Path) -> None:
    archive = _scenario(tmp_path / "home")
    output = tmp_path / "out"

    releases = build_sync(archive, output)

    provenance = "=app/1.0.0,app.boot=app/1.0.0,app.core=app/1.0.0,lib.util=lib/2.1.0"
    release_home = output / "web" / release_id(provenance)
    assert releases == [release_home]
    assert sorted(path.name for path in release_home.iterdir()) == ["0", "2"]
    assert (release_home / "2" / "logo.png").exists()
    assert (release_home / "2" / "app.js").read_text(encoding="utf-8") == SCRIPT
    assert (release_home / "2" / "app.min.js").exists()
    assert not list((output / "web").glob(".*"))

    loader = (release_home / "0" / "bundle.js").read_text(encoding="utf-8")
    prologue = "((function (bundleName, moduleName) {\n  return window.loader;\n})('web','app.boot'))"
    assert loader.startswith(prologue + ".bundle({")
    assert loader.endswith("});")
    assert (release_home / "0" / "bundle.min.js").exists()

    specs = parse_specs(loader[len(prologue) + len(".bundle(") : -len(");")])
    assert list(specs) == ["", "app.boot", "app.core", "lib.util"]
    bundle = specs[""][""][0].apply({})
    assert bundle["modules"][""] == "app/1.0.0"
    assert bundle["archives"] == {"app": "1.0.0", "lib": "2.1.0"}
    assert specs["app.core"]["Main"] == ["lib.util"]
    publishes = specs["app.core"][""][-1].apply({})["publishes"]
    assert publishes["logo.png"]["data64"].startswith("data:image/png;base64,")
    assert publishes["app.js"] == len(SCRIPT)
    assert publishes["app.min.js"] == (release_home / "2" / "app.min.js").stat().st_size

    meta = json.loads((release_home / "0" / "bundle.json").read_text(encoding="utf-8"))
    assert sorted(meta["_"]) == ["app.boot", "app.core", "lib.util"]
    assert meta["_"]["app.core"] == {
        "description": "Core",
        "archive": {"name": "app", "version": "1.0.0"},
        "depends": ["lib.util"],
        "provides": ["Core"],
        "ordinal": 2,
        "optional": "y",
        "datatypes": {"_": {"Point": "{x:number,y:number}"}},
    }
    assert meta["_"]["lib.util"]["archive"] == {"name": "lib", "version": "2.1.0"}
    assert meta["_"]["app.boot"]["ordinal"] == 1


def test_build_is_idempotent(tmp_path: Path) -> None:
    archive = _scenario(tmp_path / "home")
    output = tmp_path / "out"

    first = build_sync(archive, output)
    marker = first[0] / "0" / "marker.txt"
    marker.write_text("kept", encoding="utf-8")
    loader = (first[0] / "0" / "bundle.js").read_bytes()

    second = build_sync(archive, output)

    assert second == first
    assert marker.read_text(encoding="utf-8") == "kept"
    assert (first[0] / "0" / "bundle.js").read_bytes() == loader
    assert [path.name for path in (output / "web").iterdir()] == [first[0].name]


def test_new_provenance_gives_new_release(tmp_path: Path) -> None:
    home = tmp_path / "home"
    archive = _scenario(home)
    output = tmp_path / "out"
    first = build_sync(archive, output)

    _write_archive(home, "lib", "2.2.0", _module_files("lib.util"))
    second = build_sync(archive, output)

    assert second != first
    assert second[0].name == release_id(
        "=app/1.0.0,app.boot=app/1.0.0,app.core=app/1.0.0,lib.util=lib/2.2.0"
    )


def test_build_without_boot_or_minify(tmp_path: Path) -> None:
    archive = _scenario(
        tmp_path / "home",
        {"plain": "function (bundle) { bundle.includes = ['app.core']; bundle.versions = {lib: '2'}; }"},
    )
    settings = BuildSettings(assets=AssetSettings(minify=False))

    [release_home] = asyncio.run(build(archive, tmp_path / "out", settings))

    loader = (release_home / "0" / "bundle.js").read_text(encoding="utf-8")
    assert loader.startswith("'plain'.bundle({")
    assert not (release_home / "0" / "bundle.min.js").exists()
    assert not (release_home / "1" / "app.min.js").exists()


def test_failed_bundle_is_cleaned_up_and_others_publish(tmp_path: Path) -> None:
    home = tmp_path / "home"
    _write_archive(home, "lib", "2.1.0", _module_files("lib.util"))
    archive = _write_archive(
        home,
        "app",
        "1.0.0",
        {
            **_module_files("app.core"),
            **_module_files("bad.mod", {"Classes/Thing.js": "'Object'.subclass(function (I) {})"}, configure=None),
            "bundles/good.js": "function (bundle) { bundle.includes = ['app.']; }",
            "bundles/broken.js": "function (bundle) { bundle.includes = ['bad.']; }",
            "bundles/missing.js": "function (bundle) { bundle.versions = {lib: '^5'}; }",
        },
    )
    output = tmp_path / "out"

    with pytest.raises(BuildError) as excinfo:
        build_sync(archive, output)

    error = excinfo.value
    assert sorted(error.failures) == ["broken", "missing"]
    assert isinstance(error.failures["broken"], MissingAssetError)
    assert [path.parent.name for path in error.releases] == ["good"]
    assert not list(output.rglob("*.staging"))
    assert not (output / "broken").exists() or not any((output / "broken").iterdir())


def test_build_rejects_invalid_archive_path(tmp_path: Path) -> None:
    with pytest.raises(InvalidArchiveError):
        build_sync(tmp_path / "nowhere.zip", tmp_path / "out")


def test_plan_release_does_not_publish(tmp_path: Path) -> None:
    archive_path = _scenario(tmp_path / "home")
    builder = BundleBuilder()

    async def plan():
        with open_archive(archive_path) as main:
            planned = await builder.plan_release(main, "web")
            planned.composition.close()
            return planned

    planned = asyncio.run(plan())

    assert planned.config.boot == "app.boot"
    assert planned.release_id == release_id(planned.config.release)
    assert not (tmp_path / "out").exists()

    async def missing():
        with open_archive(archive_path) as main:
            await builder.plan_release(main, "nope")

    with pytest.raises(MissingAssetError):
        asyncio.run(missing())
