"""
Semantic version domain object for tagflow.

Versions are immutable value objects with a total order:
- major, minor and patch compare numerically
- a release is greater than any prerelease of the same triple
- two prereleases compare as plain strings

Examples:
    Semver.parse("v1.2.3")        -> Semver(1, 2, 3)
    Semver.parse("2.0.0-rc.1")    -> Semver(2, 0, 0, prerelease="rc.1")
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from typing import Optional

from .errors import InvalidSemver

SEMVER_REGEX = re.compile(
    r'^v?(?P<major>[0-9]+)\.(?P<minor>[0-9]+)\.(?P<patch>[0-9]+)'
    r'(?:-(?P<prerelease>[A-Za-z0-9.-]+))?\Z'
)

BUMP_PARTS = ('major', 'minor', 'patch')


class Ordering(IntEnum):
    """Result of comparing two versions."""
    LESS = -1
    EQUAL = 0
    GREATER = 1


@total_ordering
@dataclass(frozen=True)
class Semver:
    """
    A MAJOR.MINOR.PATCH[-prerelease] version.

    Attributes:
        major: Major version number
        minor: Minor version number
        patch: Patch version number
        prerelease: Prerelease label without the leading dash, or None
    """

    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> 'Semver':
        """
        Parse a version string, with or without a leading ``v``.

        Raises:
            InvalidSemver: If text is not a valid version
        """
        if not isinstance(text, str):
            raise InvalidSemver(repr(text))
        match = SEMVER_REGEX.match(text)
        if not match:
            raise InvalidSemver(text)
        return cls(
            major=int(match.group('major')),
            minor=int(match.group('minor')),
            patch=int(match.group('patch')),
            prerelease=match.group('prerelease'),
        )

    def format(self) -> str:
        """Format without the ``v`` prefix: ``1.2.3`` or ``1.2.3-rc.1``."""
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{self.prerelease}"
        return core

    @property
    def tag(self) -> str:
        """Version as it appears in tag names (``v1.2.3``)."""
        return f"v{self.format()}"

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def bump(self, part: str) -> 'Semver':
        """
        Return the next version, resetting lower parts and dropping the
        prerelease label.

        Args:
            part: One of "major", "minor", "patch"
        """
        if part == 'major':
            return Semver(self.major + 1, 0, 0)
        if part == 'minor':
            return Semver(self.major, self.minor + 1, 0)
        if part == 'patch':
            return Semver(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Invalid increment type: {part} (use major, minor or patch)")

    def compare(self, other: 'Semver') -> Ordering:
        """Compare with another version."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return Ordering.LESS if mine < theirs else Ordering.GREATER

        if self.prerelease == other.prerelease:
            return Ordering.EQUAL
        # Release > prerelease
        if self.prerelease is None:
            return Ordering.GREATER
        if other.prerelease is None:
            return Ordering.LESS
        return Ordering.LESS if self.prerelease < other.prerelease else Ordering.GREATER

    def __lt__(self, other):
        if not isinstance(other, Semver):
            return NotImplemented
        return self.compare(other) is Ordering.LESS

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'version': self.format(),
            'major': self.major,
            'minor': self.minor,
            'patch': self.patch,
            'prerelease': self.prerelease,
        }

    def __str__(self) -> str:
        return self.format()


def parse_semver(text: str) -> Semver:
    """Parse a version string. See Semver.parse."""
    return Semver.parse(text)


def compare_versions(a: Semver, b: Semver) -> Ordering:
    """Compare two versions: LESS, EQUAL or GREATER."""
    return a.compare(b)


def normalize_version(text: str) -> str:
    """Canonical text for a version string, without a leading ``v``."""
    return Semver.parse(text).format()
