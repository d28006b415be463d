# =============================================================================
# AGENT-OS TOOLKIT - SEMANTIC VERSIONS
# =============================================================================
"""
Semantic Version Module

Parsing, precedence and bumping of ``MAJOR.MINOR.PATCH[-pre][+build]``
versions. Prerelease bumps behave like standard-version:

    1.0.0        minor, beta  -> 1.1.0-beta.0
    1.1.0-beta.0 minor, beta  -> 1.1.0-beta.1
    1.1.0-beta.1 minor, rc    -> 1.1.0-rc.0
    1.1.0-rc.0   minor        -> 1.1.0
    1.1.0-rc.0   major, beta  -> 2.0.0-beta.0
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

BUMP_TYPES = ("major", "minor", "patch")

_VERSION_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_LEVELS = {"major": 3, "minor": 2, "patch": 1}


def _identifier_key(identifier: Union[int, str]) -> Tuple[int, Union[int, str]]:
    # Numeric identifiers sort before alphanumeric ones
    if isinstance(identifier, int):
        return (0, identifier)
    return (1, identifier)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """An immutable semantic version."""
    major: int
    minor: int
    patch: int
    prerelease: Tuple[Union[int, str], ...] = ()
    build: str = ""

    @classmethod
    def parse(cls, text: str) -> "Version":
        """
        Parse a version string, with or without a leading ``v``.

        Raises:
            ValueError: If the text is not a semantic version
        """
        match = _VERSION_PATTERN.match(text.strip()) if text else None
        if not match:
            raise ValueError(f"Invalid semantic version: {text!r}")

        prerelease: Tuple[Union[int, str], ...] = ()
        if match.group("pre"):
            prerelease = tuple(
                int(part) if part.isdigit() else part
                for part in match.group("pre").split(".")
            )
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=prerelease,
            build=match.group("build") or "",
        )

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += "+" + self.build
        return text

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def base(self) -> "Version":
        """The release this prerelease leads to."""
        return Version(self.major, self.minor, self.patch)

    def _precedence(self):
        release = (self.major, self.minor, self.patch)
        if not self.prerelease:
            # A release outranks all of its prereleases
            return release + ((1,),)
        return release + ((0,) + tuple(_identifier_key(p) for p in self.prerelease),)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() == other._precedence()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __hash__(self) -> int:
        return hash(self._precedence())

    # -----------------------------------------------------------------
    # Bumping
    # -----------------------------------------------------------------

    def _active_level(self) -> str:
        """The bump level a prerelease is working towards."""
        if self.patch == 0 and self.minor == 0:
            return "major"
        if self.patch == 0:
            return "minor"
        return "patch"

    def _release_bump(self, kind: str) -> "Version":
        if self.prerelease and _LEVELS[self._active_level()] >= _LEVELS[kind]:
            return self.base
        if kind == "major":
            return Version(self.major + 1, 0, 0)
        if kind == "minor":
            return Version(self.major, self.minor + 1, 0)
        return Version(self.major, self.minor, self.patch + 1)

    def bump(self, kind: str, prerelease: Optional[str] = None) -> "Version":
        """
        Next version for a bump kind.

        Args:
            kind: major, minor or patch
            prerelease: Optional prerelease id (alpha, beta, rc, ...)

        Raises:
            ValueError: Unknown bump kind
        """
        if kind not in BUMP_TYPES:
            raise ValueError(f"Unknown bump type: {kind!r}")

        if not prerelease:
            return self._release_bump(kind)

        continuing = (
            self.prerelease
            and _LEVELS[self._active_level()] >= _LEVELS[kind]
        )
        if not continuing:
            # Bump from the release line, not the prerelease base
            target = self.base._release_bump(kind)
            return Version(target.major, target.minor, target.patch, (prerelease, 0))

        if self.prerelease[0] == prerelease:
            last = self.prerelease[-1]
            if isinstance(last, int) and len(self.prerelease) > 1:
                parts = self.prerelease[:-1] + (last + 1,)
            else:
                parts = self.prerelease + (0,)
            return Version(self.major, self.minor, self.patch, parts)

        return Version(self.major, self.minor, self.patch, (prerelease, 0))
