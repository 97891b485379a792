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

"""Published version discovery and release download for tsupdater.

The mirror serves a plain directory listing with one link per published
release:

    <pre>
    <a href="../">../</a>
    <a href="3.13.6/">3.13.6/</a>
    <a href="3.13.7/">3.13.7/</a>
    </pre>

Every anchor text is tried as a semantic version; anything that does not
parse (parent links, readme files, stray directories) is ignored. The
listing is the only place untrusted text reaches version comparison, so a
bad token never fails the lookup. Only a listing without a single version
does.

Release archives live one level below the listing:

    <mirror_url>/<version>/teamspeak3-server_<target>-<version>.<ext>

Example:
    ```python
    from tsupdater.remote import download_release, latest_version

    published = latest_version(config)
    store = download_release(config, published)
    ```
"""

from __future__ import annotations

from typing import BinaryIO
from urllib.parse import urljoin

from bs4 import BeautifulSoup
import requests

from tsupdater.config import DeploymentConfig
from tsupdater.exceptions import DownloadFailed, NoVersionsFound, TransportError
from tsupdater.io import fetch_text, stream_to_tempfile
from tsupdater.logging import get_global_logger
from tsupdater.target import archive_filename
from tsupdater.versioning import InvalidVersion, Version, parse_version


def versions_from_listing(listing: str) -> list[Version]:
    """Extract every version named by an anchor in a listing document.

    Args:
        listing: HTML of the mirror's directory listing.

    Returns:
        Parsed versions in document order. Duplicates are kept.
    """
    logger = get_global_logger()
    soup = BeautifulSoup(listing, "html.parser")

    versions: list[Version] = []
    for link in soup.find_all("a"):
        text = link.get_text().strip()
        # Directory links render as "3.13.7/"
        token = text[:-1] if text.endswith("/") else text
        try:
            versions.append(parse_version(token))
        except InvalidVersion:
            logger.debug("REMOTE", f"Ignoring listing entry {text!r}")
    return versions


def latest_version(
    config: DeploymentConfig, session: requests.Session | None = None
) -> Version:
    """Determine the newest version published on the mirror.

    Args:
        config: Deployment configuration; only mirror_url is used.
        session: Optional requests session.

    Returns:
        The highest Version found in the listing.

    Raises:
        TransportError: If the listing cannot be fetched.
        NoVersionsFound: If the listing names no parseable version.
    """
    logger = get_global_logger()

    try:
        listing = fetch_text(config.mirror_url, session)
    except requests.RequestException as err:
        raise TransportError(
            f"failed to fetch mirror listing {config.mirror_url}: {err}"
        ) from err

    versions = versions_from_listing(listing)
    logger.verbose("REMOTE", f"Found {len(versions)} version(s) in listing")
    if not versions:
        raise NoVersionsFound(
            f"no versions are collected from remote endpoint {config.mirror_url}"
        )

    latest = max(versions)
    logger.verbose("REMOTE", f"Determined latest remote version: {latest}")
    return latest


def archive_url(config: DeploymentConfig, version: Version) -> str:
    """Build the download URL of a release archive.

    Path segments are joined, so a mirror URL with or without a trailing
    slash yields the same result.

    Args:
        config: Deployment configuration (mirror_url and target).
        version: Release version.

    Returns:
        Absolute URL of the archive.
    """
    base = config.mirror_url if config.mirror_url.endswith("/") else config.mirror_url + "/"
    version_url = urljoin(base, f"{version}/")
    return urljoin(version_url, archive_filename(config.target, version))


def download_release(
    config: DeploymentConfig,
    version: Version,
    session: requests.Session | None = None,
) -> BinaryIO:
    """Download the release archive for a version into a temporary file.

    Args:
        config: Deployment configuration (mirror_url and target).
        version: Release version to download.
        session: Optional requests session.

    Returns:
        An open temporary file holding the archive. The caller must close it.

    Raises:
        DownloadFailed: For HTTP errors, connection failures, or local write
            failures.
    """
    logger = get_global_logger()
    url = archive_url(config, version)
    logger.verbose("REMOTE", f"Downloading {url}")

    try:
        return stream_to_tempfile(url, session)
    except requests.RequestException as err:
        raise DownloadFailed(f"failed to download {url}: {err}") from err
    except OSError as err:
        raise DownloadFailed(f"failed to store download of {url}: {err}") from err
