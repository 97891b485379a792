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

"""Platform target profiles for tsupdater.

The TeamSpeak mirror publishes one archive per platform. A TargetProfile
names the platform, decides the archive format, and builds the archive
filename expected by the mirror:

    teamspeak3-server_<identifier>-<version>.<ext>

Windows and macOS builds ship as .zip, every other platform as .tar.bz2.

The set of profiles is closed. Lookups go through module-level tables that
cover every member; adding a profile means adding a row to each table.

Example:
    ```python
    from tsupdater.target import archive_filename, resolve_target
    from tsupdater.versioning import parse_version

    profile = resolve_target("linux_amd64")
    archive_filename(profile, parse_version("3.13.7"))
    # 'teamspeak3-server_linux_amd64-3.13.7.tar.bz2'
    ```
"""

from __future__ import annotations

from enum import Enum
import platform

from tsupdater.exceptions import UnrecognizedTarget
from tsupdater.versioning import Version

PRODUCT_NAME = "teamspeak3-server"


class ArchiveFormat(Enum):
    """Archive container used by a target's release download."""

    COMPRESSED_TARBALL = "tar.bz2"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        return self.value


class TargetProfile(Enum):
    """Supported platform/architecture combinations.

    The value is the stable identifier used by the mirror and accepted on the
    command line.
    """

    WINDOWS_X86 = "win32"
    WINDOWS_X86_64 = "win64"
    MAC = "mac"
    LINUX_X86 = "linux_x86"
    LINUX_X86_64 = "linux_amd64"
    LINUX_ALPINE = "linux_alpine"
    FREEBSD_X86_64 = "freebsd_amd64"

    def __str__(self) -> str:
        return self.value


_ARCHIVE_FORMATS: dict[TargetProfile, ArchiveFormat] = {
    TargetProfile.WINDOWS_X86: ArchiveFormat.ZIP,
    TargetProfile.WINDOWS_X86_64: ArchiveFormat.ZIP,
    TargetProfile.MAC: ArchiveFormat.ZIP,
    TargetProfile.LINUX_X86: ArchiveFormat.COMPRESSED_TARBALL,
    TargetProfile.LINUX_X86_64: ArchiveFormat.COMPRESSED_TARBALL,
    TargetProfile.LINUX_ALPINE: ArchiveFormat.COMPRESSED_TARBALL,
    TargetProfile.FREEBSD_X86_64: ArchiveFormat.COMPRESSED_TARBALL,
}

_X86_64_MACHINES = {"x86_64", "amd64", "x64"}
_X86_MACHINES = {"x86", "i386", "i486", "i586", "i686"}


def supported_targets() -> list[str]:
    """Return every supported target identifier."""
    return [profile.value for profile in TargetProfile]


def resolve_target(identifier: str) -> TargetProfile:
    """Resolve a target identifier (case-insensitive) to a profile.

    Args:
        identifier: Target identifier such as "linux_amd64" or "win64".

    Returns:
        The matching TargetProfile.

    Raises:
        UnrecognizedTarget: If the identifier names no supported target.
    """
    try:
        return TargetProfile(identifier.strip().lower())
    except (ValueError, AttributeError) as err:
        raise UnrecognizedTarget(
            f"target not recognized: {identifier!r} "
            f"(supported: {', '.join(supported_targets())})"
        ) from err


def detect_target(
    system: str | None = None, machine: str | None = None
) -> TargetProfile:
    """Detect the target profile of the running platform.

    Args:
        system: Operating system name as reported by platform.system().
            Detected when omitted.
        machine: Machine architecture as reported by platform.machine().
            Detected when omitted.

    Returns:
        The TargetProfile for the platform.

    Raises:
        UnrecognizedTarget: If the platform has no known mapping. The target
            must then be passed explicitly.
    """
    system = (system if system is not None else platform.system()).lower()
    machine = (machine if machine is not None else platform.machine()).lower()

    profile: TargetProfile | None = None
    if system == "windows":
        if machine in _X86_64_MACHINES:
            profile = TargetProfile.WINDOWS_X86_64
        elif machine in _X86_MACHINES:
            profile = TargetProfile.WINDOWS_X86
    elif system == "darwin":
        profile = TargetProfile.MAC
    elif system == "linux":
        if machine in _X86_64_MACHINES:
            profile = TargetProfile.LINUX_X86_64
        elif machine in _X86_MACHINES:
            profile = TargetProfile.LINUX_X86
    elif system == "freebsd":
        profile = TargetProfile.FREEBSD_X86_64

    if profile is None:
        raise UnrecognizedTarget(
            f"failed to detect target for platform {system}/{machine}; "
            "pass --target explicitly"
        )
    return profile


def archive_format(profile: TargetProfile) -> ArchiveFormat:
    """Return the archive format published for a profile."""
    return _ARCHIVE_FORMATS[profile]


def archive_filename(profile: TargetProfile, version: Version) -> str:
    """Build the mirror's archive filename for a profile and version.

    Args:
        profile: Target profile.
        version: Release version.

    Returns:
        Filename such as "teamspeak3-server_win64-3.13.7.zip".
    """
    return (
        f"{PRODUCT_NAME}_{profile.value}-{version}."
        f"{archive_format(profile).extension}"
    )
