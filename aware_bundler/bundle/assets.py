"""Collect scripts of a bundled module and publish its public assets."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from ..archive.model import select_entries
from ..errors import BundlerError, MissingAssetError
from ..models import BundledModule, Dimensions, Inlined, PublicAsset
from ..settings import BuildSettings
from .transforms import image_dimensions, minify, to_data_uri
from .utils import release_path, settle, write_stream, write_text

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[/\\]")


class AssetPipeline:
    """Runs the per-module asset work of one release.

    Reads go through the shared archive handle on worker threads; every
    independent read, copy and transform of a module runs concurrently.
    """

    def __init__(self, settings: BuildSettings) -> None:
        self.settings = settings

    async def process(self, module: BundledModule, module_home: Path) -> BundledModule:
        """Fill ``configs``, ``classes`` and ``public`` of ``module``.

        Public assets are copied below ``module_home``. Any failure is fatal
        for the module; it is raised after all of its operations settled.
        """

        layout = self.settings.module
        archive = module.archive
        primary = module.assets.get(layout.config_script)
        if primary is None:
            raise MissingAssetError(
                f"{module.name}: missing {layout.config_script} in archive {archive.label}"
            )
        secondary = select_entries(module.assets, layout.config_scripts, ".js")
        classes = select_entries(module.assets, layout.class_scripts, ".js")
        module.public = {
            path: PublicAsset(path, entry)
            for path, entry in select_entries(module.assets, layout.public_assets).items()
        }

        config_sources, class_sources, _ = await settle(
            settle(*(asyncio.to_thread(archive.read_text, entry) for entry in [primary, *secondary.values()])),
            settle(*(asyncio.to_thread(archive.read_text, entry) for entry in classes.values())),
            settle(*(self.publish(module, asset, module_home) for asset in module.public.values())),
        )
        module.configs = list(config_sources)
        module.classes = {
            _SEPARATORS.sub(".", class_path): source for class_path, source in zip(classes, class_sources)
        }
        logger.debug(
            "Module %s: %d config(s), %d class(es), %d public asset(s)",
            module.name,
            len(module.configs),
            len(module.classes),
            len(module.public),
        )
        return module

    async def publish(self, module: BundledModule, asset: PublicAsset, module_home: Path) -> PublicAsset:
        target = release_path(module_home, asset.path)
        tasks = [asyncio.to_thread(self._copy, module, asset, target), self._annotate(module, asset)]
        if self.settings.assets.minify and asset.minifiable:
            if asset.minified_path in module.public:
                logger.debug("%s: keeping shipped %s", module.name, asset.minified_path)
            else:
                tasks.append(self._minify(module, asset, release_path(module_home, asset.minified_path)))
        await settle(*tasks)
        return asset

    @staticmethod
    def _copy(module: BundledModule, asset: PublicAsset, target: Path) -> None:
        with module.archive.open_entry(asset.entry) as source:
            write_stream(target, source)

    async def _minify(self, module: BundledModule, asset: PublicAsset, target: Path) -> None:
        source = await asyncio.to_thread(module.archive.read_text, asset.entry)
        minified = await asyncio.to_thread(minify, source)
        await asyncio.to_thread(write_text, target, minified)
        asset.minified_size = len(minified.encode("utf-8"))

    async def _annotate(self, module: BundledModule, asset: PublicAsset) -> None:
        settings = self.settings.assets
        extension = asset.extension
        if settings.datafies(extension, asset.size):
            data = await asyncio.to_thread(module.archive.read_bytes, asset.entry)
            asset.annotation = Inlined(to_data_uri(extension, data))
        elif settings.probes(extension, asset.size):
            data = await asyncio.to_thread(module.archive.read_bytes, asset.entry)
            try:
                width, height = image_dimensions(data)
            except (OSError, ValueError) as exc:
                raise BundlerError(f"{module.name}: cannot read dimensions of {asset.path}: {exc}") from exc
            asset.annotation = Dimensions(width=width, height=height)

