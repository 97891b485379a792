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

"""Release tree materialization for tsupdater.

Turns the raw output of the extractor into the canonical release tree
under the releases root:

    scratch/                          releases/
      teamspeak3-server_linux_amd64/    3.13.8/
        ts3server                         ts3server
        redist/                           redist/
          libmariadb.so.2                   libmariadb.so.2

TeamSpeak archives wrap their payload in a single top-level directory. When
the extraction root holds exactly one directory it is descended into once;
otherwise the extraction root itself is the payload. An archive with no
entries at all is rejected, so an empty release can never be activated.

The release directory is named exactly after the version string, since the
installed version is later read back from that name.

Materialization is idempotent: directories that already exist are reused
and files are overwritten, so a run that failed halfway can simply be
repeated.

Example:
    ```python
    import asyncio
    from tsupdater.materializer import materialize

    release_dir = asyncio.run(materialize(scratch_dir, config, version))
    ```
"""

from __future__ import annotations

import asyncio
from collections import deque
import os
from pathlib import Path
import shutil

from tsupdater.config import DeploymentConfig
from tsupdater.exceptions import EmptyArchive, MaterializationError
from tsupdater.logging import get_global_logger
from tsupdater.versioning import Version


def release_dir(config: DeploymentConfig, version: Version) -> Path:
    """Return the release directory for a version under the releases root."""
    return config.releases_path / str(version)


def payload_root(extract_root: Path) -> Path:
    """Locate the payload inside an extraction directory.

    Args:
        extract_root: Directory the archive was extracted into.

    Returns:
        The single top-level directory if the archive has exactly one
            entry and it is a directory, otherwise extract_root itself.

    Raises:
        EmptyArchive: If extract_root has no entries.
    """
    logger = get_global_logger()
    entries = list(Path(extract_root).iterdir())
    if not entries:
        raise EmptyArchive(f"extracted archive is empty: {extract_root}")
    if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
        logger.verbose("RELEASE", f"Unwrapping top-level directory {entries[0].name}")
        return entries[0]
    logger.verbose(
        "RELEASE",
        f"Archive has {len(entries)} top-level entries, using it as-is",
    )
    return Path(extract_root)


def _plan_tree(source: Path, destination: Path) -> list[tuple[Path, Path]]:
    """Mirror the directory structure of source under destination.

    Walks source breadth-first, creating every directory under destination
    (existing ones are fine) and collecting (source, target) pairs for
    every file and symlink.
    """
    copies: list[tuple[Path, Path]] = []
    queue: deque[Path] = deque([source])
    while queue:
        current = queue.popleft()
        with os.scandir(current) as it:
            for entry in it:
                src = Path(entry.path)
                dst = destination / src.relative_to(source)
                if entry.is_dir(follow_symlinks=False):
                    dst.mkdir(exist_ok=True)
                    queue.append(src)
                else:
                    copies.append((src, dst))
    return copies


def _copy_entry(src: Path, dst: Path) -> None:
    """Copy one file or symlink, replacing whatever is at dst."""
    if dst.is_symlink() or dst.exists():
        dst.unlink()
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy2(src, dst)


async def _copy_all(copies: list[tuple[Path, Path]]) -> None:
    """Copy all pairs concurrently on worker threads.

    The first failure cancels the copies that have not started yet.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            for src, dst in copies:
                tg.create_task(asyncio.to_thread(_copy_entry, src, dst))
    except ExceptionGroup as group:
        first = group.exceptions[0]
        raise MaterializationError(f"failed to copy release files: {first}") from first


async def materialize(
    extract_root: Path, config: DeploymentConfig, version: Version
) -> Path:
    """Build the canonical release tree for a version.

    Args:
        extract_root: Directory the release archive was extracted into.
        config: Deployment configuration; only releases_path is used.
        version: Version being materialized; names the release directory.

    Returns:
        Path of the release directory (releases_path/<version>).

    Raises:
        EmptyArchive: If the extracted archive has no entries.
        MaterializationError: If the releases root is missing or any
            directory creation or file copy fails. The release directory may
            be left partially populated.
    """
    logger = get_global_logger()
    releases_path = config.releases_path
    if not releases_path.is_dir():
        raise MaterializationError(
            f"releases directory does not exist: {releases_path}"
        )

    source = payload_root(Path(extract_root))
    destination = release_dir(config, version)
    logger.verbose("RELEASE", f"Materializing release into {destination}")

    try:
        destination.mkdir(exist_ok=True)
        copies = await asyncio.to_thread(_plan_tree, source, destination)
    except OSError as err:
        raise MaterializationError(
            f"failed to create release directories under {destination}: {err}"
        ) from err

    logger.verbose("RELEASE", f"Copying {len(copies)} file(s)")
    await _copy_all(copies)

    logger.verbose("RELEASE", f"Release {version} materialized")
    return destination
