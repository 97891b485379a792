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

"""Configuration loading for tsupdater.

Built-in defaults, an optional YAML config file and command-line overrides
are merged (last wins) into one immutable DeploymentConfig.

Public API:

- DeploymentConfig: Resolved deployment parameters
- load_deployment_config: Load and merge configuration layers

Example:
    Basic usage:

        from tsupdater.config import load_deployment_config

        config = load_deployment_config(overrides={"target": "linux_amd64"})
        print(config.symlink_path)  # /opt/teamspeak

"""

from .loader import DeploymentConfig, load_deployment_config

__all__ = ["DeploymentConfig", "load_deployment_config"]
