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

"""Public API return types for tsupdater.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from tsupdater.core import run_update
        from tsupdater.results import UpdateResult

        result: UpdateResult = run_update(config)
        if result.updated:
            print(f"Now running {result.published_version}")
        ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tsupdater.versioning import Version


@dataclass(frozen=True)
class CheckResult:
    """Result from comparing the installed and published versions.

    Attributes:
        installed_version: Version the active pointer designates.
        published_version: Newest version on the mirror.
    """

    installed_version: Version
    published_version: Version

    @property
    def update_available(self) -> bool:
        return self.installed_version < self.published_version


@dataclass(frozen=True)
class UpdateResult:
    """Result from an update run.

    Attributes:
        status: "updated" after a completed swap, "up_to_date" when the
            installed version is not older than the published one.
        installed_version: Version that was active when the run started.
        published_version: Newest version on the mirror.
        release_dir: Materialized release directory (None when up to date).
        backup_pointer: Backup name of the previous pointer (None when up
            to date).
        stages: Stages the run went through, in order.
    """

    status: str
    installed_version: Version
    published_version: Version
    release_dir: Path | None = None
    backup_pointer: Path | None = None
    stages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def updated(self) -> bool:
        return self.status == "updated"
