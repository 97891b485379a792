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

"""Installed version lookup for tsupdater.

The installed version is not stored in a metadata file. It is the name of
the release directory the active pointer resolves to:

    /opt/teamspeak -> /opt/teamspeak-releases/3.13.7   =>   3.13.7

The release materializer names every release directory after the exact
version string, which keeps this lookup free of any extra state.
"""

from __future__ import annotations

import os
from pathlib import Path

from tsupdater.config import DeploymentConfig
from tsupdater.exceptions import InvalidVersionEncoding, NotADirectory
from tsupdater.logging import get_global_logger
from tsupdater.versioning import InvalidVersion, Version, parse_version


def installed_version(config: DeploymentConfig) -> Version:
    """Determine the version of the currently active release.

    Args:
        config: Deployment configuration; only symlink_path is used.

    Returns:
        The Version named by the directory the active pointer resolves to.

    Raises:
        NotADirectory: If the pointer is missing, dangling, or resolves to
            something other than a directory.
        InvalidVersionEncoding: If the directory name is not valid text or
            not a semantic version.
    """
    logger = get_global_logger()
    pointer = config.symlink_path

    real_path = Path(os.path.realpath(pointer))

    if not real_path.is_dir():
        raise NotADirectory(
            f"path the symlink {pointer} is pointing to is not a directory: "
            f"{real_path}"
        )

    name = real_path.name
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as err:
        # Undecodable bytes surface as lone surrogates in str paths.
        raise InvalidVersionEncoding(
            "directory the symlink is pointing to is not valid UTF-8: "
            f"{os.fsencode(real_path)!r}"
        ) from err

    logger.verbose("LOCAL", f"Active pointer {pointer} resolves to {real_path}")

    try:
        version = parse_version(name)
    except InvalidVersion as err:
        raise InvalidVersionEncoding(
            f"directory the symlink is pointing to is not named after a "
            f"version: {name!r}"
        ) from err

    logger.verbose("LOCAL", f"Determined locally installed version: {version}")
    return version
