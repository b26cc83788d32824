"""Semantic version parsing and arithmetic.

Versions follow https://semver.org: ``MAJOR.MINOR.PATCH`` with an optional
``-prerelease`` and ``+build`` suffix. Bumping drops both suffixes and
follows the semver increment rules for pre-releases.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from release_pilot.exceptions import InvalidVersionError

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class BumpType(str, Enum):
    """Magnitude of a version change."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


BUMP_PRECEDENCE: dict[BumpType, int] = {
    BumpType.NONE: 0,
    BumpType.PATCH: 1,
    BumpType.MINOR: 2,
    BumpType.MAJOR: 3,
}


def max_bump(*bumps: BumpType) -> BumpType:
    """Return the most significant bump, or NONE when nothing is given."""
    return max(bumps, key=BUMP_PRECEDENCE.__getitem__, default=BumpType.NONE)


@dataclass(frozen=True)
class Version:
    """An immutable semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, value: str) -> Version:
        """Parse a version string.

        A single leading ``v`` is tolerated, so tag names can be passed
        through after prefix stripping without extra care.

        Args:
            value: Version string such as ``"1.2.3"`` or ``"0.1.0-beta.1"``

        Returns:
            Parsed version

        Raises:
            InvalidVersionError: If the string is not a semantic version
        """
        text = value.strip()
        if text.startswith("v"):
            text = text[1:]
        match = _SEMVER_RE.match(text)
        if match is None:
            raise InvalidVersionError(f"Invalid semantic version: {value!r}")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    @property
    def is_stable(self) -> bool:
        """Whether the public API is considered stable (major >= 1)."""
        return self.major >= 1

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next version for ``bump_type``.

        ``BumpType.NONE`` returns the version unchanged. A pre-release is
        released by the smallest bump that reaches it, so ``1.0.0-rc.1``
        becomes ``1.0.0`` on a major, minor or patch bump and
        ``1.2.0-rc.1`` becomes ``1.2.0`` on a minor or patch bump.
        """
        pre = self.prerelease is not None
        if bump_type == BumpType.MAJOR:
            if pre and self.minor == 0 and self.patch == 0:
                return Version(self.major, 0, 0)
            return Version(self.major + 1, 0, 0)
        if bump_type == BumpType.MINOR:
            if pre and self.patch == 0:
                return Version(self.major, self.minor, 0)
            return Version(self.major, self.minor + 1, 0)
        if bump_type == BumpType.PATCH:
            if pre:
                return Version(self.major, self.minor, self.patch)
            return Version(self.major, self.minor, self.patch + 1)
        return self

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(value: str) -> Version:
    """Shorthand for :meth:`Version.parse`."""
    return Version.parse(value)
