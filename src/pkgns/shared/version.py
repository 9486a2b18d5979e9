"""
Versions and Version Constraints

Value types only: a totally ordered ``Version`` triple, a single-comparator
``VersionConstraint`` and the ``VersionRange`` produced by intersecting
constraints. Textual constraints (``">= 1.2, < 2"``) are parsed by
``pkgns.frontend.parser``.

Exact pinning is deliberately unsupported: a requirement is always a lower
and/or upper bound.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from .errors import ConstraintError
from ..utils.config import ANY_CONSTRAINT, VERSION_COMPONENTS

_VERSION_SPLIT = re.compile(r"[.-]")


@dataclass(frozen=True, order=True)
class Version:
    """Semantic version triple with total order."""
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``1``, ``1.2``, ``1.2.3`` or R-style ``1.2-3``."""
        raw = str(text).strip()
        parts = _VERSION_SPLIT.split(raw) if raw else []
        if not parts or len(parts) > VERSION_COMPONENTS or not all(p.isdigit() for p in parts):
            raise ConstraintError(
                f"invalid version '{text}'",
                help="versions are one to three dot-separated integers, e.g. 1.2.3",
            )
        numbers = [int(p) for p in parts] + [0] * (VERSION_COMPONENTS - len(parts))
        return cls(*numbers)

    def next_patch(self) -> Version:
        """Smallest version strictly greater than this one."""
        return Version(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class Comparator(Enum):
    GE = ">="
    GT = ">"
    LE = "<="
    LT = "<"

    @property
    def is_lower_bound(self) -> bool:
        return self in (Comparator.GE, Comparator.GT)

    @property
    def is_inclusive(self) -> bool:
        return self in (Comparator.GE, Comparator.LE)


@dataclass(frozen=True)
class VersionConstraint:
    """A comparator applied to a version, e.g. ``>= 2.0.0``."""
    comparator: Comparator
    version: Version

    @classmethod
    def of(cls, operator: str, version: str) -> VersionConstraint:
        if operator.strip() in ("==", "="):
            raise ConstraintError(
                f"exact version pin '{operator} {version}' is not supported",
                help="declare a minimum version with '>=' instead",
            )
        try:
            comparator = Comparator(operator.strip())
        except ValueError:
            raise ConstraintError(f"unknown comparator '{operator}'") from None
        return cls(comparator, Version.parse(version))

    def satisfied_by(self, version: Version) -> bool:
        op = self.comparator
        if op is Comparator.GE:
            return version >= self.version
        if op is Comparator.GT:
            return version > self.version
        if op is Comparator.LE:
            return version <= self.version
        return version < self.version

    def as_range(self) -> VersionRange:
        if self.comparator.is_lower_bound:
            return VersionRange(lower=self.version, lower_inclusive=self.comparator.is_inclusive)
        return VersionRange(upper=self.version, upper_inclusive=self.comparator.is_inclusive)

    def __str__(self) -> str:
        return f"{self.comparator.value} {self.version}"


@dataclass(frozen=True)
class VersionRange:
    """
    Intersection of constraints: an optional lower and an optional upper bound.

    ``VersionRange()`` is the "any" constraint.
    """
    lower: Optional[Version] = None
    lower_inclusive: bool = True
    upper: Optional[Version] = None
    upper_inclusive: bool = False

    @classmethod
    def any(cls) -> VersionRange:
        return cls()

    @classmethod
    def from_constraints(cls, constraints: Iterable[VersionConstraint]) -> VersionRange:
        result = cls()
        for constraint in constraints:
            result = result.intersect(constraint.as_range())
        return result

    @property
    def is_any(self) -> bool:
        return self.lower is None and self.upper is None

    def intersect(self, other: VersionRange) -> VersionRange:
        lower, lower_inclusive = _tighter_lower(
            (self.lower, self.lower_inclusive), (other.lower, other.lower_inclusive))
        upper, upper_inclusive = _tighter_upper(
            (self.upper, self.upper_inclusive), (other.upper, other.upper_inclusive))
        return VersionRange(lower, lower_inclusive, upper, upper_inclusive)

    def is_empty(self) -> bool:
        """True when no version triple lies within both bounds."""
        if self.lower is None or self.upper is None:
            return False
        least = self.lower if self.lower_inclusive else self.lower.next_patch()
        return not self.satisfied_by(least)

    def satisfied_by(self, version: Version) -> bool:
        if self.lower is not None:
            if version < self.lower or (version == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if version > self.upper or (version == self.upper and not self.upper_inclusive):
                return False
        return True

    @property
    def constraints(self) -> Tuple[VersionConstraint, ...]:
        out = []
        if self.lower is not None:
            out.append(VersionConstraint(Comparator.GE if self.lower_inclusive else Comparator.GT, self.lower))
        if self.upper is not None:
            out.append(VersionConstraint(Comparator.LE if self.upper_inclusive else Comparator.LT, self.upper))
        return tuple(out)

    def __str__(self) -> str:
        if self.is_any:
            return ANY_CONSTRAINT
        return ", ".join(str(c) for c in self.constraints)


def _tighter_lower(a, b):
    (va, ia), (vb, ib) = a, b
    if va is None:
        return vb, ib
    if vb is None or va > vb:
        return va, ia
    if vb > va:
        return vb, ib
    return va, ia and ib


def _tighter_upper(a, b):
    (va, ia), (vb, ib) = a, b
    if va is None:
        return vb, ib
    if vb is None or va < vb:
        return va, ia
    if vb < va:
        return vb, ib
    return va, ia and ib
