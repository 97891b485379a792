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

"""Core orchestration for tsupdater.

This module sequences a complete update run:

    IDLE -> CHECKING_VERSIONS -> UP_TO_DATE
                              -> UPDATE_AVAILABLE -> DOWNLOADING -> EXTRACTING
                                 -> MATERIALIZING -> ACTIVATING -> DONE

FAILED is reachable from every stage; the raised exception names the stage
in its ``stage`` attribute.

Design Principles:

- The installed and published versions are resolved concurrently and both
  must succeed; the first failure fails the run
- An update happens only if installed < published under SemVer precedence;
  an equal or newer local version is a successful no-op
- Download, extraction, materialization and activation run strictly one
  after another, with no automatic retries
- Blocking work (HTTP, archive extraction, file copies, the pointer swap)
  runs on worker threads so the event loop is never stalled
- The scratch directory and the downloaded archive belong to one run and
  are removed whatever the outcome
- DeploymentConfig is passed explicitly to every component

Example:
    Programmatic usage:
        ```python
        from tsupdater.config import load_deployment_config
        from tsupdater.core import run_update

        config = load_deployment_config(overrides={"target": "linux_amd64"})
        result = run_update(config)

        if result.updated:
            print(f"Updated {result.installed_version} -> {result.published_version}")
        else:
            print(f"Already running {result.installed_version}")
        ```

"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from enum import Enum
from pathlib import Path
import tempfile

import requests

from tsupdater.config import DeploymentConfig
from tsupdater.exceptions import (
    ActivationError,
    ExtractionError,
    MaterializationError,
    TransferError,
    TSUpdaterError,
    VersionResolutionError,
)
from tsupdater.extractor import extract
from tsupdater.io import make_session
from tsupdater.local import installed_version
from tsupdater.logging import get_global_logger
from tsupdater.materializer import materialize
from tsupdater.remote import download_release, latest_version
from tsupdater.results import CheckResult, UpdateResult
from tsupdater.swapper import activate
from tsupdater.target import archive_format

TOTAL_STEPS = 5


class UpdateStage(Enum):
    """States of an update run."""

    IDLE = "idle"
    CHECKING_VERSIONS = "checking_versions"
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    MATERIALIZING = "materializing"
    ACTIVATING = "activating"
    DONE = "done"
    FAILED = "failed"


_STAGE_ERRORS: dict[UpdateStage, type[TSUpdaterError]] = {
    UpdateStage.CHECKING_VERSIONS: VersionResolutionError,
    UpdateStage.DOWNLOADING: TransferError,
    UpdateStage.EXTRACTING: ExtractionError,
    UpdateStage.MATERIALIZING: MaterializationError,
    UpdateStage.ACTIVATING: ActivationError,
}


@contextmanager
def _in_stage(stage: UpdateStage, history: list[str]) -> Iterator[None]:
    """Record a stage and map unexpected failures to its error class."""
    logger = get_global_logger()
    history.append(stage.value)
    try:
        yield
    except TSUpdaterError as err:
        history.append(UpdateStage.FAILED.value)
        logger.verbose("UPDATE", f"Run failed while {stage.value}: {err}")
        raise
    except Exception as err:
        history.append(UpdateStage.FAILED.value)
        logger.verbose("UPDATE", f"Run failed while {stage.value}: {err}")
        raise _STAGE_ERRORS[stage](
            f"unexpected failure while {stage.value}: {err}"
        ) from err


async def check_versions(
    config: DeploymentConfig, session: requests.Session | None = None
) -> CheckResult:
    """Resolve the installed and published versions concurrently.

    Args:
        config: Deployment configuration.
        session: Optional requests session for the mirror listing.

    Returns:
        CheckResult holding both versions.

    Raises:
        VersionResolutionError: If either lookup fails. When both fail,
            the first failure is raised unwrapped.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            local = tg.create_task(asyncio.to_thread(installed_version, config))
            remote = tg.create_task(
                asyncio.to_thread(latest_version, config, session)
            )
    except ExceptionGroup as group:
        raise group.exceptions[0]
    return CheckResult(
        installed_version=local.result(), published_version=remote.result()
    )


async def update_release(
    config: DeploymentConfig, session: requests.Session | None = None
) -> UpdateResult:
    """Run the full update pipeline.

    Steps:

    1. Resolve installed and published versions concurrently
    2. Stop with status "up_to_date" unless installed < published
    3. Download the release archive into a temporary file
    4. Extract it into a scratch directory
    5. Materialize releases_path/<version>/ from the extracted tree
    6. Swap the active pointer, keeping the old one as <pointer>.<timestamp>

    Args:
        config: Deployment configuration.
        session: Optional requests session. A retrying session is created
            for the run when omitted.

    Returns:
        UpdateResult with status "updated" or "up_to_date".

    Raises:
        VersionResolutionError: If either version cannot be determined.
        TransferError: If the archive download fails.
        ExtractionError: If the archive cannot be unpacked.
        MaterializationError: If the release tree cannot be built.
        ActivationError: If the pointer swap fails.

    Note:
        Nothing under releases_path or at symlink_path is modified before
        the materializing stage. Old releases are never deleted.
    """
    logger = get_global_logger()
    history: list[str] = [UpdateStage.IDLE.value]

    owned = session is None
    if session is None:
        session = make_session()

    try:
        logger.step(1, TOTAL_STEPS, "Checking for updates...")
        with _in_stage(UpdateStage.CHECKING_VERSIONS, history):
            check = await check_versions(config, session)
        installed = check.installed_version
        published = check.published_version
        logger.verbose("UPDATE", f"Installed {installed}, published {published}")

        if not check.update_available:
            history.append(UpdateStage.UP_TO_DATE.value)
            return UpdateResult(
                status="up_to_date",
                installed_version=installed,
                published_version=published,
                stages=tuple(history),
            )

        history.append(UpdateStage.UPDATE_AVAILABLE.value)
        logger.verbose(
            "UPDATE", f"Update available - local {installed}, remote {published}"
        )

        logger.step(2, TOTAL_STEPS, f"Downloading {published}...")
        with _in_stage(UpdateStage.DOWNLOADING, history):
            store = await asyncio.to_thread(download_release, config, published, session)

        with ExitStack() as cleanup:
            cleanup.enter_context(store)

            logger.step(3, TOTAL_STEPS, "Extracting the archive...")
            with _in_stage(UpdateStage.EXTRACTING, history):
                scratch_dir = Path(
                    cleanup.enter_context(
                        tempfile.TemporaryDirectory(prefix="tsupdater-")
                    )
                )
                await asyncio.to_thread(
                    extract, archive_format(config.target), store, scratch_dir
                )
            store.close()

            logger.step(4, TOTAL_STEPS, "Moving files to new release...")
            with _in_stage(UpdateStage.MATERIALIZING, history):
                release = await materialize(scratch_dir, config, published)

        logger.step(5, TOTAL_STEPS, "Swapping symbolic links...")
        with _in_stage(UpdateStage.ACTIVATING, history):
            backup = await asyncio.to_thread(activate, config, published)

        history.append(UpdateStage.DONE.value)
        return UpdateResult(
            status="updated",
            installed_version=installed,
            published_version=published,
            release_dir=release,
            backup_pointer=backup,
            stages=tuple(history),
        )
    finally:
        if owned:
            session.close()


def run_check(
    config: DeploymentConfig, session: requests.Session | None = None
) -> CheckResult:
    """Synchronous entry point for check_versions().

    Raises:
        VersionResolutionError: If either version cannot be determined.
    """
    history: list[str] = []

    async def _check() -> CheckResult:
        with _in_stage(UpdateStage.CHECKING_VERSIONS, history):
            return await check_versions(config, session)

    return asyncio.run(_check())


def run_update(
    config: DeploymentConfig, session: requests.Session | None = None
) -> UpdateResult:
    """Synchronous entry point for update_release()."""
    return asyncio.run(update_release(config, session))
