"""Best-match version selection for archive dependencies.

Constraints are whitespace separated clauses that must all hold:

- blank, ``*`` or ``x``: any version
- ``1``, ``1.x``, ``1.2.*``: release segments start with the given prefix
- ``^1.2.0``: compatible with 1.2.0 (same major, or same minor for ``0.`` versions)
- ``~1.2.0``: at least 1.2.0 with the same major.minor; ``~1`` keeps the major only
- anything with a comparison operator: a PEP 440 specifier set, e.g. ``>=1.0,<2``
- a full version such as ``1.2.3``: exactly that version

Pre-releases only match clauses that name a pre-release themselves.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from ..errors import VersionConstraintError

logger = logging.getLogger(__name__)

_ANY = {"", "*", "x", "X"}
_OPERATOR_RE = re.compile(r"[<>=!]")

Predicate = Callable[[Version], bool]


@dataclass(frozen=True)
class VersionConstraint:
    text: str
    predicates: Tuple[Predicate, ...]
    prereleases: bool = False

    def allows(self, version: Version) -> bool:
        if version.is_prerelease and not self.prereleases:
            return False
        return all(predicate(version) for predicate in self.predicates)


def parse_constraint(text: Optional[str]) -> VersionConstraint:
    """Parse a constraint string into a :class:`VersionConstraint`."""

    raw = (text or "").strip()
    predicates: List[Predicate] = []
    prereleases = False
    for clause in raw.split():
        predicate, names_prerelease = _parse_clause(clause)
        predicates.append(predicate)
        prereleases = prereleases or names_prerelease
    return VersionConstraint(text=raw, predicates=tuple(predicates), prereleases=prereleases)


def best_version(candidates: Iterable[str], constraint: Optional[str]) -> Optional[str]:
    """Return the highest candidate satisfying ``constraint``, or ``None``."""

    parsed = parse_constraint(constraint)
    best: Optional[Tuple[Version, str]] = None
    for candidate in candidates:
        try:
            version = Version(candidate)
        except InvalidVersion:
            logger.warning("Ignoring archive with unsortable version '%s'", candidate)
            continue
        if not parsed.allows(version):
            continue
        key = (version, candidate)
        if best is None or key > best:
            best = key
    return best[1] if best else None


def _parse_clause(clause: str) -> Tuple[Predicate, bool]:
    if clause in _ANY:
        return (lambda version: True), False
    if clause[0] in "^~":
        base = _parse_version(clause[1:], clause)
        upper = _caret_upper(base) if clause[0] == "^" else _tilde_upper(base)
        return (lambda version: base <= version < upper), base.is_prerelease
    if _OPERATOR_RE.search(clause):
        try:
            specifiers = SpecifierSet(clause)
        except InvalidSpecifier as exc:
            raise VersionConstraintError(f"Invalid version constraint '{clause}'") from exc
        return (lambda version: specifiers.contains(version, prereleases=True)), bool(specifiers.prereleases)

    segments = clause.split(".")
    wildcard = False
    while segments and segments[-1] in _ANY:
        segments.pop()
        wildcard = True
    if not segments:
        return (lambda version: True), False
    if not wildcard and len(segments) >= 3 or not all(segment.isdigit() for segment in segments):
        exact = _parse_version(clause, clause)
        return (lambda version: version == exact), exact.is_prerelease
    prefix = tuple(int(segment) for segment in segments)
    return (lambda version: version.release[: len(prefix)] == prefix), False


def _parse_version(text: str, clause: str) -> Version:
    try:
        return Version(text)
    except InvalidVersion as exc:
        raise VersionConstraintError(f"Invalid version constraint '{clause}'") from exc


def _caret_upper(base: Version) -> Version:
    if base.major > 0:
        return Version(f"{base.major + 1}")
    if base.minor > 0:
        return Version(f"0.{base.minor + 1}")
    return Version(f"0.0.{base.micro + 1}")


def _tilde_upper(base: Version) -> Version:
    if len(base.release) == 1:
        return Version(f"{base.major + 1}")
    return Version(f"{base.major}.{base.minor + 1}")
