"""Input/Output operations for tsupdater.

This module provides the HTTP primitives used by the remote version source:
fetching a listing page as text and streaming an archive into a seekable
temporary file, both over a session with retry logic.

Modules:

download : module
    HTTP(S) text fetch and streaming download with retries.

Public API:

fetch_text : function
    Fetch the text body of a URL.
stream_to_tempfile : function
    Stream the body of a URL into an anonymous temporary file.
make_session : function
    Create a requests.Session with retry/backoff defaults.

Example:
    from tsupdater.io import fetch_text

    listing = fetch_text("https://files.teamspeak-services.com/releases/server/")

"""

from .download import fetch_text, make_session, stream_to_tempfile

__all__ = ["fetch_text", "make_session", "stream_to_tempfile"]
