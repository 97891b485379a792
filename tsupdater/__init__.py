"""
tsupdater - TeamSpeak 3 server auto-updater

A Python-based CLI tool that keeps a TeamSpeak 3 server installation on the
newest published release, using a symlink-based release layout:

    /opt/teamspeak                -> /opt/teamspeak-releases/3.13.7
    /opt/teamspeak.1700000000     -> /opt/teamspeak-releases/3.13.6
    /opt/teamspeak-releases/3.13.6/
    /opt/teamspeak-releases/3.13.7/

tsupdater provides:
  - Installed version lookup from the active release directory name
  - Published version discovery from the mirror's directory listing
  - Strict SemVer 2.0 comparison
  - Download and extraction of zip and tar.bz2 release archives
  - Release materialization and an atomic-rename pointer swap
  - A timestamped backup of the previous pointer for manual rollback

Quick Start
-----------
Check whether an update is available:

    $ tsupdater check --target linux_amd64

Install the newest release:

    $ tsupdater update --target linux_amd64

For full CLI documentation:

    $ tsupdater --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level orchestration of an update run.
config : package
    YAML configuration loading and merging.
versioning : package
    Semantic version parsing and ordering.
io : package
    HTTP transport.
target, local, remote, extractor, materializer, swapper : modules
    One module per pipeline stage.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from tsupdater.config import load_deployment_config
    from tsupdater.core import run_check, run_update
    from tsupdater.versioning import parse_version

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"
__description__ = "TeamSpeak 3 server auto-updater with symlink-based releases"

# Re-export commonly used functions for convenience
from tsupdater.config import DeploymentConfig, load_deployment_config
from tsupdater.core import UpdateStage, run_check, run_update
from tsupdater.exceptions import TSUpdaterError
from tsupdater.results import CheckResult, UpdateResult
from tsupdater.target import TargetProfile
from tsupdater.versioning import Version, parse_version

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "load_deployment_config",
    "DeploymentConfig",
    "run_check",
    "run_update",
    "UpdateStage",
    "TSUpdaterError",
    "CheckResult",
    "UpdateResult",
    "TargetProfile",
    "Version",
    "parse_version",
]
