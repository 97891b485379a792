"""
Pytest configuration and shared fixtures for tsupdater tests.

This module provides reusable fixtures and test utilities used across
the test suite: a temporary deployment layout (releases root plus active
pointer), archive builders for both archive formats, and mirror listing
documents.
"""

from __future__ import annotations

import io
from pathlib import Path
import tarfile
from typing import Any
import zipfile

import pytest
import yaml

from tsupdater.config import DeploymentConfig
from tsupdater.logging import SilentLogger, set_global_logger
from tsupdater.target import TargetProfile

MIRROR_URL = "https://mirror.example/releases/server/"


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger after each test (the CLI replaces it)."""
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def releases_dir(tmp_test_dir: Path) -> Path:
    """Releases root holding an installed 3.13.6 release."""
    releases = tmp_test_dir / "releases"
    old = releases / "3.13.6"
    old.mkdir(parents=True)
    (old / "ts3server").write_text("old server")
    return releases


@pytest.fixture
def deployment(tmp_test_dir: Path, releases_dir: Path) -> DeploymentConfig:
    """
    Provide a deployment whose active pointer designates release 3.13.6.

    Layout:
        <tmp>/teamspeak -> <tmp>/releases/3.13.6
    """
    pointer = tmp_test_dir / "teamspeak"
    pointer.symlink_to(releases_dir / "3.13.6", target_is_directory=True)
    return DeploymentConfig(
        symlink_path=pointer,
        releases_path=releases_dir,
        target=TargetProfile.LINUX_X86_64,
        mirror_url=MIRROR_URL,
    )


def build_zip(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory zip archive from name -> content pairs."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


def build_tarbz2(
    entries: dict[str, bytes], symlinks: dict[str, str] | None = None
) -> bytes:
    """Build an in-memory tar.bz2 archive.

    Args:
        entries: Regular file name -> content.
        symlinks: Symlink name -> link target.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:bz2") as tf:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tf.addfile(info)
    return buf.getvalue()


def listing_html(*names: str) -> str:
    """Render a mirror directory listing with one anchor per name."""
    links = "\n".join(f'<a href="{name}">{name}</a>' for name in names)
    return f"<html><body><h1>Index of /releases/server/</h1><pre>\n{links}\n</pre></body></html>"


@pytest.fixture
def server_tarball() -> bytes:
    """Release tarball wrapped in the usual top-level directory."""
    return build_tarbz2(
        {
            "teamspeak3-server_linux_amd64/ts3server": b"new server",
            "teamspeak3-server_linux_amd64/redist/libmariadb.so.2": b"lib",
        },
        symlinks={"teamspeak3-server_linux_amd64/ts3server_startscript.sh": "ts3server"},
    )
