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

"""Archive extraction for tsupdater.

Unpacks a downloaded release archive into a scratch directory. The
algorithm depends on the archive format of the target profile:

- ZIP: the store is opened as a zip container and every entry is extracted
  with its relative path. Unix permission bits recorded in the archive are
  applied to extracted files, so executables stay executable.
- COMPRESSED_TARBALL: the whole store is bzip2-decompressed into memory and
  the resulting tar stream is unpacked. Members are filtered with the
  tarfile "data" filter, which rejects absolute paths, path traversal and
  links pointing outside the destination.

Both rewind the store first; downloads leave it positioned at the end.

Extraction is blocking. The orchestrator runs it on a worker thread.
"""

from __future__ import annotations

import bz2
import io
import os
from pathlib import Path
import tarfile
from typing import BinaryIO
import zipfile
import zlib

from tsupdater.exceptions import CorruptArchive, ExtractionIOError
from tsupdater.logging import get_global_logger
from tsupdater.target import ArchiveFormat


def _extract_zip(store: BinaryIO, dest_dir: Path) -> None:
    try:
        with zipfile.ZipFile(store) as zf:
            for info in zf.infolist():
                path = zf.extract(info, dest_dir)
                # Unix permission bits live in the high word of external_attr.
                mode = (info.external_attr >> 16) & 0o777
                if mode and not info.is_dir():
                    os.chmod(path, mode)
    except (zipfile.BadZipFile, EOFError, zlib.error) as err:
        raise CorruptArchive(f"failed to read zip archive: {err}") from err


def _extract_tarball(store: BinaryIO, dest_dir: Path) -> None:
    try:
        tarball = bz2.decompress(store.read())
    except (OSError, ValueError, EOFError) as err:
        raise CorruptArchive(f"failed to decompress bzip2 stream: {err}") from err

    try:
        with tarfile.open(fileobj=io.BytesIO(tarball), mode="r:") as tf:
            tf.extractall(dest_dir, filter="data")
    except tarfile.FilterError as err:
        raise CorruptArchive(f"unsafe member in tar archive: {err}") from err
    except tarfile.TarError as err:
        raise CorruptArchive(f"failed to read tar archive: {err}") from err


def extract(archive_format: ArchiveFormat, store: BinaryIO, dest_dir: Path) -> None:
    """Extract an archive store into a directory.

    Args:
        archive_format: Format of the archive held by store.
        store: Seekable binary file holding the archive.
        dest_dir: Existing directory to extract into.

    Raises:
        CorruptArchive: If the archive is damaged, truncated, or contains
            unsafe members.
        ExtractionIOError: If reading the store or writing extracted files
            fails.
    """
    logger = get_global_logger()
    dest_dir = Path(dest_dir)
    logger.verbose("EXTRACT", f"Extracting {archive_format.extension} archive to {dest_dir}")

    try:
        store.seek(0)
        if archive_format is ArchiveFormat.ZIP:
            _extract_zip(store, dest_dir)
        elif archive_format is ArchiveFormat.COMPRESSED_TARBALL:
            _extract_tarball(store, dest_dir)
        else:
            raise CorruptArchive(f"unsupported archive format: {archive_format}")
    except OSError as err:
        raise ExtractionIOError(f"failed to extract archive to {dest_dir}: {err}") from err

    logger.verbose("EXTRACT", "Extraction complete")
