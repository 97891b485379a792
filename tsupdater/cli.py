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

"""Command-line interface for tsupdater.

This module provides the main CLI entry point for the tsupdater tool.

Commands:

    check: Compare the installed and published versions
    update: Install the newest published release and activate it

Example:
    Check for an update:
        ```bash
        $ tsupdater check --target linux_amd64
        ```

    Update using a config file:
        ```bash
        $ tsupdater update --config /etc/tsupdater.yaml
        ```

    Enable verbose output:
        ```bash
        $ tsupdater update --verbose
        ```

Exit Codes:

- 0: Success (updated, or already up to date)
- 1: Error (configuration, version lookup, download, extraction,
  materialization or activation failure)

Note:
    Each command has its own handler function (cmd_<command>).
    Errors are printed with the stage they occurred in.
    Verbose mode shows full tracebacks on errors for debugging.

"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from tsupdater import __version__
from tsupdater.config import DeploymentConfig, load_deployment_config
from tsupdater.core import run_check, run_update
from tsupdater.exceptions import TSUpdaterError
from tsupdater.logging import DefaultLogger, set_global_logger
from tsupdater.target import supported_targets


def _report_error(err: TSUpdaterError, args: argparse.Namespace) -> int:
    print(f"Error [{err.stage}]: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _load_config(args: argparse.Namespace) -> DeploymentConfig:
    """Merge the config file and command-line options into a config."""
    overrides = {
        "symlink_path": args.symlink_path,
        "releases_path": args.releases_path,
        "target": args.target,
        "mirror_url": args.mirror_url,
    }
    return load_deployment_config(args.config, overrides=overrides)


def _print_config(config: DeploymentConfig) -> None:
    for line in config.summary():
        print(line)
    print()


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'tsupdater check' command.

    Resolves the installed and published versions without downloading or
    changing anything.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 when both versions were determined, 1 otherwise).

    """
    set_global_logger(DefaultLogger(verbose=args.verbose, debug=args.debug))

    try:
        config = _load_config(args)
        _print_config(config)
        result = run_check(config)
    except TSUpdaterError as err:
        return _report_error(err, args)

    print("=" * 70)
    print("VERSION CHECK RESULTS")
    print("=" * 70)
    print(f"Installed Version: {result.installed_version}")
    print(f"Published Version: {result.published_version}")
    print(f"Update Available:  {'yes' if result.update_available else 'no'}")
    print("=" * 70)
    print()
    if result.update_available:
        print(f"[UPDATE AVAILABLE] Run 'tsupdater update' to install {result.published_version}.")
    else:
        print("[UP TO DATE] Installed version is already up-to-date.")

    return 0


def cmd_update(args: argparse.Namespace) -> int:
    """Handler for 'tsupdater update' command.

    Runs the full pipeline: version check, download, extraction,
    materialization of releases_path/<version>/ and the pointer swap.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 after an update or when already up to date, 1 on any
        failure).

    Note:
        On failure before the activating stage the active pointer is left
        untouched. A failure during activation names the backup pointer.

    """
    set_global_logger(DefaultLogger(verbose=args.verbose, debug=args.debug))

    try:
        config = _load_config(args)
        _print_config(config)
        result = run_update(config)
    except TSUpdaterError as err:
        return _report_error(err, args)

    if not result.updated:
        print(
            f"[UP TO DATE] Installed version {result.installed_version} "
            "is already up-to-date."
        )
        return 0

    print()
    print("=" * 70)
    print("UPDATE RESULTS")
    print("=" * 70)
    print(f"Previous Version: {result.installed_version}")
    print(f"New Version:      {result.published_version}")
    print(f"Release Dir:      {result.release_dir}")
    print(f"Backup Pointer:   {result.backup_pointer}")
    print(f"Status:           {result.status}")
    print("=" * 70)
    print()
    print("[SUCCESS] Successfully updated the TeamSpeak server!")

    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file with symlink_path, releases_path, target, mirror_url",
    )
    parser.add_argument(
        "--symlink-path",
        default=None,
        help="Symlink of the current TeamSpeak directory (default: /opt/teamspeak)",
    )
    parser.add_argument(
        "--releases-path",
        default=None,
        help="Directory containing TeamSpeak releases (default: /opt/teamspeak-releases/)",
    )
    parser.add_argument(
        "--target",
        default=None,
        choices=supported_targets(),
        help="Package target (default: detected from this platform)",
    )
    parser.add_argument(
        "--mirror-url",
        default=None,
        help="Mirror URL used to check for TeamSpeak versions",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tsupdater CLI.

    This function is registered as the 'tsupdater' console script in
    pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="tsupdater",
        description="tsupdater - TeamSpeak 3 server auto-updater",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"tsupdater {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        help="Compare installed and published versions (no changes)",
        description="Determine the installed and the newest published TeamSpeak version.",
    )
    _add_common_arguments(parser_check)
    parser_check.set_defaults(func=cmd_check)

    # 'update' command
    parser_update = subparsers.add_parser(
        "update",
        help="Install the newest release and activate it",
        description="Download, extract and activate the newest published TeamSpeak release.",
    )
    _add_common_arguments(parser_update)
    parser_update.set_defaults(func=cmd_update)

    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
