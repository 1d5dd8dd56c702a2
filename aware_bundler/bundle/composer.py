"""Resolve the archives of a bundle and select its modules."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..archive.model import Archive
from ..archive.resolver import find_best_archive
from ..errors import BootConflictError, MissingArchiveError, ModuleConflictError
from ..models import BundleConfig, BundledModule
from ..settings import BuildSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Composition:
    """Modules of one bundle and the archives they come from.

    External archives are opened for this bundle only; :meth:`close` releases
    them and leaves the main archive to its owner.
    """

    main: Archive
    archives: Dict[str, Archive]
    modules: Dict[str, BundledModule] = field(default_factory=dict)

    def close(self) -> None:
        for archive in self.archives.values():
            if archive is not self.main:
                archive.close()


async def compose_bundle(main: Archive, config: BundleConfig, settings: BuildSettings) -> Composition:
    archives = await resolve_archives(main, config, settings)
    composition = Composition(main=main, archives=archives)
    try:
        composition.modules = select_modules(archives, config)
        config.boot = find_boot(composition.modules, settings)
    except BaseException:
        composition.close()
        raise
    logger.info(
        "Bundle %s: %d module(s) from %d archive(s)%s",
        config.name,
        len(composition.modules),
        len(archives),
        f", boot {config.boot}" if config.boot else "",
    )
    return composition


async def resolve_archives(main: Archive, config: BundleConfig, settings: BuildSettings) -> Dict[str, Archive]:
    """Resolve every versioned dependency of ``config`` concurrently."""

    names = sorted(name for name in config.versions if name != main.name)
    outcomes = await asyncio.gather(
        *(
            asyncio.to_thread(find_best_archive, main.home, name, config.versions[name], settings)
            for name in names
        ),
        return_exceptions=True,
    )
    archives: Dict[str, Archive] = {main.name: main}
    failure: Optional[BaseException] = None
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            failure = failure or outcome
        elif outcome is None:
            failure = failure or MissingArchiveError(
                f"{settings.archive.bundle_scripts}/{config.name}", name, config.versions[name]
            )
        else:
            archives[name] = outcome
    if failure is not None:
        for archive in archives.values():
            if archive is not main:
                archive.close()
        raise failure
    return archives


def select_modules(archives: Dict[str, Archive], config: BundleConfig) -> Dict[str, BundledModule]:
    """Select modules by prefix; a module offered by two archives is a conflict."""

    modules: Dict[str, BundledModule] = {}
    for archive_name in sorted(archives):
        archive = archives[archive_name]
        for module_name in sorted(archive.modules):
            if not config.selects(module_name):
                continue
            existing = modules.get(module_name)
            if existing is not None:
                raise ModuleConflictError(module_name, existing.archive.name, archive.name)
            modules[module_name] = BundledModule(
                name=module_name,
                archive=archive,
                assets=dict(archive.modules[module_name].assets),
            )
    return modules


def find_boot(modules: Dict[str, BundledModule], settings: BuildSettings) -> Optional[str]:
    boot_script = settings.module.boot_script
    boots: List[str] = [name for name in sorted(modules) if boot_script in modules[name].assets]
    if len(boots) > 1:
        raise BootConflictError(boots[0], boots[1])
    return boots[0] if boots else None
