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

"""Configuration loading and merging for tsupdater.

This module resolves the four deployment parameters into one immutable
DeploymentConfig that is passed explicitly to every pipeline component.

Configuration Layers:

1. **Built-in defaults**
    - symlink_path: /opt/teamspeak
    - releases_path: /opt/teamspeak-releases/
    - mirror_url: https://files.teamspeak-services.com/releases/server/
    - target: detected from the running platform (only if no layer sets it)

2. **Config file** (optional, YAML)
    - Top-level mapping with any of the four keys
    - Relative paths are resolved against the config file's directory

3. **Overrides** (command-line options)
    - Keys whose value is None are ignored

Merge Behavior:

Later layers win ("last wins"). Dicts are deep-merged, everything else is
replaced.

Example:
    Load from a config file with a command-line override:
        ```python
        from pathlib import Path
        from tsupdater.config import load_deployment_config

        config = load_deployment_config(
            Path("/etc/tsupdater.yaml"),
            overrides={"target": "linux_amd64", "mirror_url": None},
        )
        print(config.releases_path)
        ```

    Example config file:
        ```yaml
        symlink_path: /srv/teamspeak
        releases_path: releases/
        target: linux_amd64
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tsupdater.exceptions import ConfigError
from tsupdater.logging import get_global_logger
from tsupdater.target import TargetProfile, detect_target, resolve_target

DEFAULT_SYMLINK_PATH = "/opt/teamspeak"
DEFAULT_RELEASES_PATH = "/opt/teamspeak-releases/"
DEFAULT_MIRROR_URL = "https://files.teamspeak-services.com/releases/server/"

CONFIG_KEYS = ("symlink_path", "releases_path", "target", "mirror_url")
_PATH_KEYS = ("symlink_path", "releases_path")

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class DeploymentConfig:
    """Fully resolved deployment parameters.

    Attributes:
        symlink_path: Path of the active pointer (symbolic link) designating
            the current release.
        releases_path: Directory holding one subdirectory per release,
            named after its version.
        target: Platform profile used to pick the release archive.
        mirror_url: Base URL of the mirror listing published versions.
    """

    symlink_path: Path
    releases_path: Path
    target: TargetProfile
    mirror_url: str

    def summary(self) -> list[str]:
        """Return human-readable summary lines for this configuration."""
        return [
            f"Symlink of current TeamSpeak directory: {self.symlink_path}",
            f"Directory containing TeamSpeak releases: {self.releases_path}",
            f"Mirror URL used to check for TeamSpeak versions: {self.mirror_url}",
            f"Package target: {self.target}",
        ]


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Args:
        p: Path to the YAML file to load.

    Returns:
        The parsed Python object from the YAML file.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or
            empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    This function does not mutate inputs; returns a new dict.

    Args:
        base: The base dictionary.
        overlay: The overlay dictionary that takes precedence.

    Returns:
        A new dictionary with the merged contents.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Validation and path resolution
# -------------------------------


def _validate_layer(layer: dict[str, Any], origin: str) -> None:
    """Rejects unknown keys and non-string values in a config layer."""
    unknown = sorted(set(layer) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(
            f"{origin}: unknown configuration key(s): {', '.join(unknown)} "
            f"(allowed: {', '.join(CONFIG_KEYS)})"
        )
    for key, value in layer.items():
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{origin}: {key} must be a non-empty string")


def _resolve_known_paths(layer: dict[str, Any], base_dir: Path | None) -> None:
    """Expands "~" in path fields and anchors relative ones to base_dir.

    Modifies layer in place.
    """
    for key in _PATH_KEYS:
        raw = layer.get(key)
        if raw is None:
            continue
        p = Path(raw).expanduser()
        if base_dir is not None and not p.is_absolute():
            p = base_dir / p
        layer[key] = str(p)


# -------------------------------
# Public API
# -------------------------------


def load_deployment_config(
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> DeploymentConfig:
    """Loads and merges the deployment configuration.

    Performs the following operations:

    1. Start from built-in defaults
    2. Read the YAML config file, if given, and merge it on top
    3. Merge overrides on top (None values are skipped)
    4. Resolve the target identifier, detecting it when no layer set one

    Args:
        config_file: Optional path to a YAML config file.
        overrides: Optional mapping of command-line values. Keys must be in
            CONFIG_KEYS.

    Returns:
        The resolved DeploymentConfig.

    Raises:
        ConfigError: On YAML parse errors, empty or missing config files,
            unknown keys, or values of the wrong type.
        UnrecognizedTarget: If the target identifier is unknown or the
            platform cannot be detected.
    """
    logger = get_global_logger()

    merged: dict[str, Any] = {
        "symlink_path": DEFAULT_SYMLINK_PATH,
        "releases_path": DEFAULT_RELEASES_PATH,
        "mirror_url": DEFAULT_MIRROR_URL,
    }
    layers_merged = 1

    if config_file is not None:
        config_file = Path(config_file).expanduser().resolve()
        logger.verbose("CONFIG", f"Loading: {config_file}")
        file_layer = _load_yaml_file(config_file)
        if not isinstance(file_layer, dict):
            raise ConfigError(f"top-level YAML must be a mapping (dict): {config_file}")
        _validate_layer(file_layer, str(config_file))
        file_layer = dict(file_layer)
        _resolve_known_paths(file_layer, config_file.parent)
        merged = _deep_merge_dicts(merged, file_layer)
        layers_merged += 1

    if overrides:
        override_layer = {k: v for k, v in overrides.items() if v is not None}
        if override_layer:
            _validate_layer(override_layer, "command line")
            _resolve_known_paths(override_layer, None)
            merged = _deep_merge_dicts(merged, override_layer)
            layers_merged += 1

    logger.verbose("CONFIG", f"Deep merging {layers_merged} layer(s)")

    if "target" in merged:
        target = resolve_target(merged["target"])
    else:
        target = detect_target()
        logger.verbose("CONFIG", f"Detected target: {target}")

    config = DeploymentConfig(
        symlink_path=Path(merged["symlink_path"]).expanduser(),
        releases_path=Path(merged["releases_path"]).expanduser(),
        target=target,
        mirror_url=merged["mirror_url"].strip(),
    )
    for line in config.summary():
        logger.debug("CONFIG", line)
    return config
