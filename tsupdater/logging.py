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

"""Logging interface for tsupdater.

This module provides a configurable logging interface that library modules
can use for output without depending on the CLI. The logger is configured
globally by the CLI; library code fetches it with get_global_logger().

The logger supports three output levels:

- Step: Always printed (for progress indicators)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from tsupdater.logging import DefaultLogger, set_global_logger

        set_global_logger(DefaultLogger(verbose=True))
        ```

    Use in library code:
        ```python
        from tsupdater.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 5, "Checking for updates...")
        logger.verbose("REMOTE", "Fetched mirror listing")
        logger.debug("REMOTE", "Ignoring listing entry 'readme'")
        ```

Note:
    The default logger is silent (verbose=False, debug=False), so library
    functions won't print anything unless explicitly configured.
"""

from __future__ import annotations

from typing import Protocol


class Logger(Protocol):
    """Output sink for pipeline progress.

    step() is always shown; verbose() and debug() are gated by the
    implementation. The prefix names the component emitting the line,
    e.g. "REMOTE", "SWAP" or "EXTRACT".
    """

    def step(self, step: int, total: int, message: str) -> None: ...

    def verbose(self, prefix: str, message: str) -> None: ...

    def debug(self, prefix: str, message: str) -> None: ...


class DefaultLogger:
    """Logger that prints to stdout, respecting verbose and debug flags."""

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        Worker threads started by the update pipeline read the same global
        logger, so configure it before starting a run.
    """
    global _global_logger
    _global_logger = logger
