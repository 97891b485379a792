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

"""Exception hierarchy for tsupdater.

This module defines a custom exception hierarchy that mirrors the stages of
an update run. Every exception carries the name of the stage it belongs to
(``stage`` attribute), so callers can report precisely where a run stopped.
All exceptions inherit from TSUpdaterError, allowing users to catch all
tsupdater errors with a single except clause if needed.

Stages and their base classes:

- configuration: ConfigError
- checking_versions: VersionResolutionError
- downloading: TransferError
- extracting: ExtractionError
- materializing: MaterializationError
- activating: ActivationError

Errors raised before the activating stage never touch the active pointer.
An ActivationError may be raised after the old pointer has been renamed; its
message names the backup pointer so it can be restored by hand.

Example:
    Catching specific error types:
        ```python
        from tsupdater.core import run_update
        from tsupdater.exceptions import ActivationError, VersionResolutionError

        try:
            result = run_update(config)
        except VersionResolutionError as e:
            print(f"Could not determine versions: {e}")
        except ActivationError as e:
            print(f"Pointer swap failed: {e}")
        ```

    Catching all tsupdater errors:
        ```python
        from tsupdater.exceptions import TSUpdaterError

        try:
            result = run_update(config)
        except TSUpdaterError as e:
            print(f"[{e.stage}] {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "TSUpdaterError",
    "ConfigError",
    "UnrecognizedTarget",
    "VersionResolutionError",
    "NotADirectory",
    "InvalidVersionEncoding",
    "NoVersionsFound",
    "TransportError",
    "TransferError",
    "DownloadFailed",
    "ExtractionError",
    "CorruptArchive",
    "ExtractionIOError",
    "MaterializationError",
    "EmptyArchive",
    "ActivationError",
    "ReleaseMissing",
    "PointerNotRenamable",
    "LinkCreationFailed",
]


class TSUpdaterError(Exception):
    """Base exception for all tsupdater errors.

    Attributes:
        stage: Name of the update stage the error belongs to.
    """

    stage = "unknown"


# -------------------------------
# Configuration
# -------------------------------


class ConfigError(TSUpdaterError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parse errors (syntax errors, non-mapping top level)
    - Unknown configuration keys or values of the wrong type
    - Missing configuration files
    - Platform targets that are unknown or cannot be detected
    """

    stage = "configuration"


class UnrecognizedTarget(ConfigError):
    """Raised when a target identifier is unknown or cannot be detected."""


# -------------------------------
# Version resolution
# -------------------------------


class VersionResolutionError(TSUpdaterError):
    """Raised when the installed or published version cannot be determined.

    Always raised before any filesystem mutation happens.
    """

    stage = "checking_versions"


class NotADirectory(VersionResolutionError):
    """Raised when the active pointer does not resolve to a directory."""


class InvalidVersionEncoding(VersionResolutionError):
    """Raised when the active release directory name is not a valid version."""


class NoVersionsFound(VersionResolutionError):
    """Raised when the mirror listing contains no parseable version."""


class TransportError(VersionResolutionError):
    """Raised when the mirror listing cannot be fetched."""


# -------------------------------
# Transfer
# -------------------------------


class TransferError(TSUpdaterError):
    """Raised when a release archive cannot be downloaded."""

    stage = "downloading"


class DownloadFailed(TransferError):
    """Raised for HTTP errors and connection failures during download."""


# -------------------------------
# Extraction
# -------------------------------


class ExtractionError(TSUpdaterError):
    """Raised when a downloaded archive cannot be unpacked.

    Leaves only the disposable scratch directory behind.
    """

    stage = "extracting"


class CorruptArchive(ExtractionError):
    """Raised for damaged, truncated or unsafe archives."""


class ExtractionIOError(ExtractionError):
    """Raised when writing extracted files to the scratch directory fails."""


# -------------------------------
# Materialization
# -------------------------------


class MaterializationError(TSUpdaterError):
    """Raised when the release tree cannot be built under the releases root.

    The release directory may be left partially populated; re-running the
    update re-creates it safely.
    """

    stage = "materializing"


class EmptyArchive(MaterializationError):
    """Raised when the extracted archive contains no entries at all."""


# -------------------------------
# Activation
# -------------------------------


class ActivationError(TSUpdaterError):
    """Raised when the active pointer cannot be swapped to a new release."""

    stage = "activating"


class ReleaseMissing(ActivationError):
    """Raised when the release to activate does not exist on disk."""


class PointerNotRenamable(ActivationError):
    """Raised when the active pointer cannot be moved to its backup name."""


class LinkCreationFailed(ActivationError):
    """Raised when the new active pointer cannot be created.

    At this point the previous pointer already lives under its backup name.
    """
