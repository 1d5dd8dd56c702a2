"""Command-line helpers for building bundle releases."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from aware_bundler.archive.model import open_archive
from aware_bundler.archive.resolver import find_best_archive
from aware_bundler.bundle.builder import BundleBuilder
from aware_bundler.errors import BuildError, BundlerError, VersionConstraintError
from aware_bundler.settings import BuildSettings, load_settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose - args.quiet)

    if args.command == "build":
        return _handle_build(args)
    if args.command == "resolve":
        return _handle_resolve(args)
    if args.command == "release-id":
        return _handle_release_id(args)

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aware-bundler", description="Bundle release tooling.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeatable).")
    parser.add_argument("-q", "--quiet", action="count", default=0, help="Less log output (repeatable).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Publish every bundle of an archive.")
    build.add_argument("--archive", required=True, help="Path to <home>/<name>/<version>/archive.zip.")
    build.add_argument("--output-dir", required=True)
    build.add_argument("--settings", help="YAML or JSON settings file.")
    build.add_argument("--no-minify", action="store_true", help="Skip minified scripts and loader.")

    resolve = subparsers.add_parser("resolve", help="Resolve the best archive version for a constraint.")
    resolve.add_argument("--home", required=True)
    resolve.add_argument("--name", required=True)
    resolve.add_argument("--constraint", default="")
    resolve.add_argument("--settings")

    release_id = subparsers.add_parser("release-id", help="Compose a bundle and print its release id.")
    release_id.add_argument("--archive", required=True)
    release_id.add_argument("--bundle", required=True)
    release_id.add_argument("--settings")

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING - 10 * verbosity
    logging.basicConfig(
        level=max(logging.DEBUG, min(level, logging.CRITICAL)),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_settings(args: argparse.Namespace) -> BuildSettings:
    settings = load_settings(Path(args.settings) if args.settings else None)
    if getattr(args, "no_minify", False):
        settings = settings.model_copy(
            update={"assets": settings.assets.model_copy(update={"minify": False})}
        )
    return settings


def _handle_build(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    archive_path = Path(args.archive).expanduser().resolve()
    output_dir = Path(args.output_dir).expanduser().resolve()
    builder = BundleBuilder(settings=settings)
    try:
        releases = asyncio.run(builder.build(archive_path, output_dir))
    except BuildError as exc:
        _print_json(
            {
                "archive_path": str(archive_path),
                "releases": [str(path) for path in exc.releases],
                "errors": {name: str(error) for name, error in sorted(exc.failures.items())},
            }
        )
        return 1
    except BundlerError as exc:
        _print_json({"archive_path": str(archive_path), "releases": [], "errors": {"": str(exc)}})
        return 1
    _print_json({"archive_path": str(archive_path), "releases": [str(path) for path in releases]})
    return 0


def _handle_resolve(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    home = Path(args.home).expanduser().resolve()
    try:
        archive = find_best_archive(home, args.name, args.constraint, settings)
    except (BundlerError, VersionConstraintError) as exc:
        _print_json({"name": args.name, "constraint": args.constraint, "error": str(exc)})
        return 1
    if archive is None:
        _print_json({"name": args.name, "constraint": args.constraint, "version": None, "path": None})
        return 1
    with archive:
        payload = {
            "name": args.name,
            "constraint": args.constraint,
            "version": archive.version,
            "path": str(archive.path),
        }
    _print_json(payload)
    return 0


def _handle_release_id(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    archive_path = Path(args.archive).expanduser().resolve()
    builder = BundleBuilder(settings=settings)

    async def plan() -> Mapping[str, object]:
        with open_archive(archive_path, settings) as main:
            release = await builder.plan_release(main, args.bundle)
            release.composition.close()
            return {
                "bundle": args.bundle,
                "release": release.config.release,
                "release_id": release.release_id,
                "boot": release.config.boot,
            }

    try:
        payload = asyncio.run(plan())
    except (BundlerError, VersionConstraintError) as exc:
        _print_json({"bundle": args.bundle, "error": str(exc)})
        return 1
    _print_json(payload)
    return 0


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))
