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

"""Active pointer swap for tsupdater.

Repoints the active pointer to a materialized release in two filesystem
operations, in this order:

1. rename the current pointer to <pointer>.<unix-seconds>
2. create a new symlink at the pointer path targeting the canonical path of
   releases_path/<version>

The rename is atomic, so the previous installation is always reachable
under one of the two names. The pointer path itself is missing only
between the two calls. Everything that can be checked up front is checked
before step 1.

The backup pointer and the old release directory are left in place, so a
rollback is a matter of moving the backup pointer back.
"""

from __future__ import annotations

import os
from pathlib import Path
import time

from tsupdater.config import DeploymentConfig
from tsupdater.exceptions import (
    LinkCreationFailed,
    PointerNotRenamable,
    ReleaseMissing,
)
from tsupdater.logging import get_global_logger
from tsupdater.versioning import Version


def backup_pointer_path(symlink_path: Path, timestamp: int) -> Path:
    """Return the backup name for the active pointer.

    Example:
        /opt/teamspeak at 1700000000 -> /opt/teamspeak.1700000000
    """
    return symlink_path.with_name(f"{symlink_path.name}.{timestamp}")


def activate(
    config: DeploymentConfig, version: Version, now: float | None = None
) -> Path:
    """Point the active pointer at the release for a version.

    Args:
        config: Deployment configuration (symlink_path and releases_path).
        version: Version whose release directory becomes active.
        now: Unix time used for the backup name. Current time when omitted.

    Returns:
        Path of the backup pointer that now designates the previous release.

    Raises:
        ReleaseMissing: If the release directory does not exist. Nothing has
            been changed.
        PointerNotRenamable: If the current pointer cannot be renamed.
            Nothing has been changed.
        LinkCreationFailed: If the new pointer cannot be created. The
            previous pointer is available under the backup name.
    """
    logger = get_global_logger()
    symlink_path = config.symlink_path

    target = (config.releases_path / str(version)).resolve()
    if not target.is_dir():
        raise ReleaseMissing(f"release directory does not exist: {target}")

    timestamp = int(time.time() if now is None else now)
    backup = backup_pointer_path(symlink_path, timestamp)
    if backup.is_symlink() or backup.exists():
        raise PointerNotRenamable(f"backup pointer already exists: {backup}")
    logger.verbose("SWAP", f"Swapping symbolic links (old saved to {backup})")

    try:
        os.rename(symlink_path, backup)
    except OSError as err:
        raise PointerNotRenamable(
            f"failed to rename {symlink_path} to {backup}: {err}"
        ) from err

    try:
        os.symlink(target, symlink_path, target_is_directory=True)
    except OSError as err:
        raise LinkCreationFailed(
            f"failed to link {symlink_path} -> {target}: {err}; "
            f"previous pointer saved as {backup}"
        ) from err

    logger.verbose("SWAP", f"{symlink_path} -> {target}")
    return backup
