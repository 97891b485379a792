"""
HTTP(S) transport for tsupdater.

This module provides the two network primitives the update pipeline needs:
fetching the text body of a URL (the mirror listing) and streaming the byte
body of a URL into a seekable temporary store (a release archive).

Key Features:

- **Retry Logic with Exponential Backoff** - Automatically retries on
  transient failures (429, 500, 502, 503, 504) with exponential backoff.
  Configured via urllib3.util.Retry on the session's adapters.
- **Streaming to Disk** - Archive bodies are written chunk by chunk into an
  anonymous temporary file, never held fully in memory. The file is
  deleted by the OS as soon as it is closed.
- **Identity Encoding** - Requests the raw representation; archives are
  already compressed.

Constants:

- DEFAULT_CHUNK (int): Stream chunk size (1 MiB).

Example:
    Fetch a listing and download an archive:

    >>> from tsupdater.io import fetch_text, make_session, stream_to_tempfile
    >>> with make_session() as session:
    ...     listing = fetch_text("https://mirror.example/server/", session)
    ...     store = stream_to_tempfile(
    ...         "https://mirror.example/server/3.13.7/ts.tar.bz2", session
    ...     )

Notes:
- Errors are raised as requests exceptions; callers translate them into
  the tsupdater exception taxonomy for their stage
- Timeouts are per-request, not total download time
- The temporary store is returned positioned at its end
"""

from __future__ import annotations

import tempfile
from typing import BinaryIO

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tsupdater import __version__
from tsupdater.logging import get_global_logger

# Stream size per chunk (1 MiB).
DEFAULT_CHUNK = 1024 * 1024


def make_session() -> requests.Session:
    """
    Create a requests.Session with retry/backoff defaults.

    - Retries on common transient status codes.
    - Applies exponential backoff.
    - Sets a User-Agent identifying tsupdater.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": f"tsupdater/{__version__}",
            "Accept-Encoding": "identity",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def fetch_text(
    url: str, session: requests.Session | None = None, *, timeout: int = 30
) -> str:
    """Fetch the decoded text body of a URL.

    Args:
        url: URL to fetch.
        session: Session to use. A retrying session is created (and closed)
            when omitted.
        timeout: Per-request timeout (seconds).

    Returns:
        The response body as text.

    Raises:
        requests.HTTPError: For non-2xx responses (after retries).
        requests.RequestException: For connection errors and timeouts.
    """
    logger = get_global_logger()
    owned = session is None
    if session is None:
        session = make_session()
    try:
        logger.verbose("HTTP", f"GET {url}")
        resp = session.get(url, timeout=timeout)
        logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")
        resp.raise_for_status()
        return resp.text
    finally:
        if owned:
            session.close()


def stream_to_tempfile(
    url: str, session: requests.Session | None = None, *, timeout: int = 60
) -> BinaryIO:
    """Stream the body of a URL into an anonymous temporary file.

    Args:
        url: URL to download.
        session: Session to use. A retrying session is created (and closed)
            when omitted.
        timeout: Per-request timeout (seconds).

    Returns:
        An open binary temporary file holding the body, positioned at its
            end. The caller owns it and must close it.

    Raises:
        requests.HTTPError: For non-2xx responses (after retries).
        requests.RequestException: For connection errors and timeouts.
        OSError: If the temporary file cannot be written.
    """
    logger = get_global_logger()
    owned = session is None
    if session is None:
        session = make_session()
    try:
        logger.verbose("HTTP", f"GET {url}")
        with session.get(
            url, stream=True, allow_redirects=True, timeout=timeout
        ) as resp:
            logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")
            try:
                resp.raise_for_status()
            except requests.HTTPError as err:
                raise requests.HTTPError(
                    f"download failed for {url}: {err}", response=resp
                ) from err

            store = tempfile.TemporaryFile()
            downloaded = 0
            try:
                for chunk in resp.iter_content(chunk_size=DEFAULT_CHUNK):
                    if not chunk:
                        continue
                    store.write(chunk)
                    downloaded += len(chunk)
                store.flush()
            except BaseException:
                store.close()
                raise
        logger.verbose("HTTP", f"Downloaded {downloaded} bytes")
        return store
    finally:
        if owned:
            session.close()
