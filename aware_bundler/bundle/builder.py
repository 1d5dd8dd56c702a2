"""Release build orchestration."""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..archive.model import Archive, open_archive, select_entries
from ..errors import BuildError, MissingAssetError
from ..models import BundleConfig, BundledModule
from ..settings import BuildSettings
from ..specs.generator import build_bundle_spec, render_loader, render_prologue, render_specs
from ..specs.meta import create_bundle_meta
from .assets import AssetPipeline
from .composer import Composition, compose_bundle
from .release import release_bundle
from .transforms import minify
from .utils import settle, write_text

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReleasePlan:
    """Composed bundle with its release identity, before anything is published."""

    config: BundleConfig
    release_id: str
    composition: Composition


class BundleBuilder:
    """Coordinates bundle composition, staging and release publication."""

    def __init__(self, *, settings: Optional[BuildSettings] = None) -> None:
        self.settings = settings or BuildSettings()
        self.pipeline = AssetPipeline(self.settings)

    async def build(self, archive_path: Path, output_dir: Path) -> List[Path]:
        """Publish every bundle of the archive and return the release paths.

        Bundles run concurrently. A failing bundle does not cancel the others;
        once all settled, failures are raised together as :class:`BuildError`.
        """

        main = await asyncio.to_thread(open_archive, archive_path, self.settings)
        try:
            scripts = bundle_scripts(main, self.settings)
            if not scripts:
                logger.warning("Archive %s has no bundle scripts", main.label)
            names = list(scripts)
            outcomes = await asyncio.gather(
                *(self.publish_bundle(main, name, output_dir) for name in names),
                return_exceptions=True,
            )
        finally:
            main.close()

        releases: List[Path] = []
        failures: Dict[str, BaseException] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error("Bundle %s failed: %s", name, outcome)
                failures[name] = outcome
            else:
                releases.append(outcome)
        if failures:
            raise BuildError(failures, releases)
        return releases

    async def plan_release(self, main: Archive, bundle_name: str) -> ReleasePlan:
        """Compose ``bundle_name`` and derive its release id.

        The caller owns the returned composition and must close it.
        """

        config = await asyncio.to_thread(load_bundle_config, main, bundle_name, self.settings)
        composition = await compose_bundle(main, config, self.settings)
        identifier = release_bundle(main, config, composition.modules)
        return ReleasePlan(config=config, release_id=identifier, composition=composition)

    async def publish_bundle(self, main: Archive, bundle_name: str, output_dir: Path) -> Path:
        plan = await self.plan_release(main, bundle_name)
        try:
            release_home = Path(output_dir) / bundle_name / plan.release_id
            if release_home.exists():
                logger.info("Release %s of %s already published", plan.release_id, bundle_name)
                return release_home
            return await self._stage_release(plan, release_home)
        finally:
            plan.composition.close()

    async def _stage_release(self, plan: ReleasePlan, release_home: Path) -> Path:
        staging = release_home.parent / f".{plan.release_id}.{uuid.uuid4().hex[:8]}.staging"
        staging.mkdir(parents=True)
        try:
            modules = plan.composition.modules
            await settle(
                *(self.pipeline.process(module, staging / str(module.ordinal)) for module in modules.values())
            )
            await asyncio.to_thread(self._write_loader, plan.config, modules, staging / "0")
            try:
                staging.rename(release_home)
            except OSError:
                if not release_home.exists():
                    raise
                logger.info("Release %s was published concurrently; discarding staged copy", release_home)
                shutil.rmtree(staging, ignore_errors=True)
                return release_home
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        logger.info("Published %s", release_home)
        return release_home

    def _write_loader(self, config: BundleConfig, modules: Dict[str, BundledModule], loader_home: Path) -> None:
        loader = self.settings.loader
        boot_name, boot_source = boot_script(config, modules, self.settings)
        spec = build_bundle_spec(config, modules, self.settings)
        text = render_loader(render_prologue(config.name, boot_name, boot_source), render_specs(spec))
        write_text(loader_home / loader.script, text)
        if self.settings.assets.minify:
            write_text(loader_home / loader.mini, minify(text))
        write_text(loader_home / loader.meta, create_bundle_meta(spec).to_json())


def bundle_scripts(main: Archive, settings: BuildSettings) -> Dict[str, str]:
    """Map bundle names to archive paths of their scripts."""

    home = settings.archive.bundle_scripts
    return {name: f"{home}/{name}.js" for name in select_entries(main.entries, home, ".js")}


def load_bundle_config(main: Archive, bundle_name: str, settings: BuildSettings) -> BundleConfig:
    path = f"{settings.archive.bundle_scripts}/{bundle_name}.js"
    entry = main.entries.get(path)
    if entry is None:
        raise MissingAssetError(f"Missing bundle script {path} in archive {main.label}")
    return BundleConfig.from_script(bundle_name, main.read_text(entry))


def boot_script(
    config: BundleConfig, modules: Dict[str, BundledModule], settings: BuildSettings
) -> Tuple[Optional[str], Optional[str]]:
    if config.boot is None:
        return None, None
    module = modules[config.boot]
    return config.boot, module.archive.read_text(module.assets[settings.module.boot_script])


async def build(archive_path: Path | str, output_dir: Path | str, settings: Optional[BuildSettings] = None) -> List[Path]:
    """Build every bundle of the archive at ``archive_path`` into ``output_dir``."""

    return await BundleBuilder(settings=settings).build(Path(archive_path), Path(output_dir))


def build_sync(archive_path: Path | str, output_dir: Path | str, settings: Optional[BuildSettings] = None) -> List[Path]:
    return asyncio.run(build(archive_path, output_dir, settings))
