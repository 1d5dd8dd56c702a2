"""Shared helpers used by the bundle pipeline."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path, PurePosixPath
from typing import IO, Any, Awaitable, List, Optional

from ..errors import BundlerError


def release_path(home: Path, relative: str) -> Path:
    """Resolve an archive-relative path below ``home``, refusing escapes."""

    parts = PurePosixPath(relative).parts
    if not parts or PurePosixPath(relative).is_absolute() or ".." in parts:
        raise BundlerError(f"Refusing to publish {relative!r} outside {home}")
    return home.joinpath(*parts)


def write_text(path: Path, content: str, *, newline: Optional[str] = None) -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline=newline)


def write_stream(path: Path, source: IO[bytes]) -> None:
    """Copy a binary stream to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as target:
        shutil.copyfileobj(source, target, 1024 * 1024)


async def settle(*aws: Awaitable[Any]) -> List[Any]:
    """Await every awaitable, then raise the first failure if any occurred."""

    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results
