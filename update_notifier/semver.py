"""
Dotted numeric versions and their comparison.

A version is an arbitrary-length sequence of non-negative integers. Two
versions are compared component-wise after padding the shorter one with
zeros, so ``1.2`` and ``1.2.0`` are equal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from itertools import zip_longest
from typing import Iterable, Tuple

from packaging import version as pkg_version

from .errors import InvalidFormat
from .models import VersionDelta


_COMPONENT_RE = re.compile(r"\d+", re.ASCII)

# Index of the first differing component -> tier. Anything past PATCH is a revision.
_TIERS = (VersionDelta.MAJOR, VersionDelta.MINOR, VersionDelta.PATCH)


class Ordering(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


@total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """Immutable dotted version such as ``1.2.0`` or ``4.0.1.17``."""

    components: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.components:
            raise InvalidFormat(self.components, "no components")
        if any(not isinstance(c, int) or c < 0 for c in self.components):
            raise InvalidFormat(self.components, "components must be non-negative integers")

    @classmethod
    def parse(cls, value: str) -> "SemanticVersion":
        """Parse ``"1.2.3"`` into a version; fails on empty or non-numeric segments."""
        if not isinstance(value, str):
            raise InvalidFormat(value, "not a string")
        if not value:
            raise InvalidFormat(value, "empty string")

        components = []
        for segment in value.split("."):
            if not _COMPONENT_RE.fullmatch(segment):
                raise InvalidFormat(value, f"bad segment {segment!r}")
            components.append(int(segment))
        return cls(tuple(components))

    @classmethod
    def coerce(cls, value: str) -> "SemanticVersion":
        """Build a version from a PEP 440 string, keeping only its release part.

        Installed Python distributions report versions like ``2.1.0rc1`` or
        ``1.4.post2``; the notifier only compares the numeric release.
        """
        try:
            parsed = pkg_version.Version(value)
        except (pkg_version.InvalidVersion, TypeError) as e:
            raise InvalidFormat(value, str(e)) from e
        return cls(tuple(parsed.release))

    def compare(self, other: "SemanticVersion") -> Ordering:
        return compare(self, other)

    def normalized(self) -> "SemanticVersion":
        """Drop trailing zero components, keeping at least one."""
        components = list(self.components)
        while len(components) > 1 and components[-1] == 0:
            components.pop()
        return SemanticVersion(tuple(components))

    def render(self) -> str:
        return ".".join(str(c) for c in self.components)

    def __str__(self) -> str:
        return self.render()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) is Ordering.EQUAL

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) is Ordering.LESS

    def __hash__(self) -> int:
        return hash(self.normalized().components)


def _padded(a: SemanticVersion, b: SemanticVersion) -> Iterable[Tuple[int, int]]:
    return zip_longest(a.components, b.components, fillvalue=0)


def compare(a: SemanticVersion, b: SemanticVersion) -> Ordering:
    """Compare two versions, treating missing trailing components as 0."""
    for left, right in _padded(a, b):
        if left < right:
            return Ordering.LESS
        if left > right:
            return Ordering.GREATER
    return Ordering.EQUAL


def classify(installed: SemanticVersion, remote: SemanticVersion) -> VersionDelta:
    """Classify how far ``remote`` is ahead of ``installed``.

    The most significant differing component decides the tier. A remote
    version that is not strictly newer is ``OLDER``.
    """
    if compare(remote, installed) is not Ordering.GREATER:
        return VersionDelta.OLDER

    for index, (left, right) in enumerate(_padded(installed, remote)):
        if left != right:
            return _TIERS[index] if index < len(_TIERS) else VersionDelta.REVISION

    # compare() reported GREATER, so some component differs
    raise AssertionError("unreachable")
