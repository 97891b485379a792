# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Semantic version parsing and ordering for tsupdater.

This module is format-agnostic: it does NOT touch the network or the
filesystem. It parses version strings strictly (SemVer 2.0) and orders them
by SemVer precedence, so that the version read from the active release
directory and the versions scraped from the mirror listing compare
consistently.

Precedence rules:

- major, minor and patch compare numerically, in that order
- a pre-release version is lower than the same version without one
- pre-release identifiers compare left to right: numeric identifiers
  numerically, alphanumeric ones in ASCII order, numeric before
  alphanumeric, and a shorter list before a longer one sharing its prefix
- build metadata is ignored for ordering and equality
"""

from __future__ import annotations

from dataclasses import dataclass
import functools
import re

__all__ = ["InvalidVersion", "Version", "parse_version", "compare_versions"]

_NUMERIC = r"0|[1-9][0-9]*"
_PRE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_IDENT = r"[0-9A-Za-z-]+"

_SEMVER_RE = re.compile(
    rf"(?P<major>{_NUMERIC})\.(?P<minor>{_NUMERIC})\.(?P<patch>{_NUMERIC})"
    rf"(?:-(?P<pre>{_PRE_IDENT}(?:\.{_PRE_IDENT})*))?"
    rf"(?:\+(?P<build>{_BUILD_IDENT}(?:\.{_BUILD_IDENT})*))?",
    re.ASCII,
)


class InvalidVersion(ValueError):
    """Raised when a string is not a valid semantic version."""


def _pre_tokens(pre: tuple[str, ...]) -> tuple[tuple[int, int | str], ...]:
    """Encode pre-release identifiers for tuple comparison.

    Numeric identifiers become (0, int) and sort before alphanumeric
    identifiers, which become (1, str).
    """
    return tuple((0, int(p)) if p.isdigit() else (1, p) for p in pre)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """An immutable semantic version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated pre-release identifiers (may be empty).
        build: Dot-separated build metadata identifiers (may be empty).

    Example:
        ```python
        from tsupdater.versioning import parse_version

        assert parse_version("3.13.7") < parse_version("3.13.8")
        assert parse_version("1.0.0-rc.1") < parse_version("1.0.0")
        assert str(parse_version("3.13.7")) == "3.13.7"
        ```
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @property
    def precedence_key(self) -> tuple:
        """Key that orders versions by SemVer precedence."""
        if self.prerelease:
            return (self.major, self.minor, self.patch, 0, _pre_tokens(self.prerelease))
        return (self.major, self.minor, self.patch, 1, ())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.precedence_key == other.precedence_key

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.precedence_key < other.precedence_key

    def __hash__(self) -> int:
        return hash(self.precedence_key)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def parse_version(text: str) -> Version:
    """Parse a strict semantic version string.

    Args:
        text: Version text such as "3.13.7" or "1.0.0-rc.1+build.5". No
            leading "v" and no surrounding whitespace are accepted.

    Returns:
        The parsed Version.

    Raises:
        InvalidVersion: If text is not a valid semantic version.
    """
    if not isinstance(text, str):
        raise InvalidVersion(f"version must be a string, got {type(text).__name__}")
    m = _SEMVER_RE.fullmatch(text)
    if m is None:
        raise InvalidVersion(f"not a semantic version: {text!r}")
    pre = m.group("pre")
    build = m.group("build")
    return Version(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=tuple(pre.split(".")) if pre else (),
        build=tuple(build.split(".")) if build else (),
    )


def compare_versions(a: Version, b: Version) -> int:
    """Compare two versions.

    Returns:
        -1 if a < b, 0 if a and b have equal precedence, 1 if a > b.
    """
    ka, kb = a.precedence_key, b.precedence_key
    return (ka > kb) - (ka < kb)
