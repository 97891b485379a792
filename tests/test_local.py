"""
Tests for tsupdater.local module.

Tests installed version lookup including:
- Reading the version from the active release directory name
- Dangling and non-directory pointers
- Directory names that are not versions
"""

from __future__ import annotations

from dataclasses import replace
import os

import pytest

from tsupdater.exceptions import (
    InvalidVersionEncoding,
    NotADirectory,
    VersionResolutionError,
)
from tsupdater.local import installed_version
from tsupdater.versioning import parse_version


def test_reads_version_from_pointer_target(deployment):
    """Test the installed version is the resolved directory's name."""
    assert installed_version(deployment) == parse_version("3.13.6")


def test_follows_chained_symlinks(deployment, tmp_test_dir):
    """Test chains of symlinks are resolved fully."""
    chained = tmp_test_dir / "ts-alias"
    chained.symlink_to(deployment.symlink_path)
    config = replace(deployment, symlink_path=chained)

    assert installed_version(config) == parse_version("3.13.6")


def test_dangling_pointer(deployment, releases_dir):
    """Test a pointer to a missing directory raises NotADirectory."""
    deployment.symlink_path.unlink()
    deployment.symlink_path.symlink_to(releases_dir / "9.9.9")

    with pytest.raises(NotADirectory):
        installed_version(deployment)


def test_missing_pointer(deployment, tmp_test_dir):
    """Test a missing pointer raises NotADirectory."""
    config = replace(deployment, symlink_path=tmp_test_dir / "nothing-here")

    with pytest.raises(NotADirectory):
        installed_version(config)


def test_pointer_to_file(deployment, releases_dir):
    """Test a pointer to a regular file raises NotADirectory."""
    target = releases_dir / "3.13.9"
    target.write_text("not a directory")
    deployment.symlink_path.unlink()
    deployment.symlink_path.symlink_to(target)

    with pytest.raises(NotADirectory):
        installed_version(deployment)


def test_directory_not_named_after_version(deployment, releases_dir):
    """Test a non-version directory name raises InvalidVersionEncoding."""
    other = releases_dir / "current"
    other.mkdir()
    deployment.symlink_path.unlink()
    deployment.symlink_path.symlink_to(other, target_is_directory=True)

    with pytest.raises(InvalidVersionEncoding, match="current"):
        installed_version(deployment)


def test_errors_belong_to_version_check_stage(deployment, tmp_test_dir):
    """Test lookup errors are reported under checking_versions."""
    config = replace(deployment, symlink_path=tmp_test_dir / "nothing-here")

    with pytest.raises(VersionResolutionError) as exc_info:
        installed_version(config)
    assert exc_info.value.stage == "checking_versions"


def test_directory_name_not_utf8(deployment, releases_dir):
    """Test an undecodable directory name raises InvalidVersionEncoding."""
    raw = os.path.join(os.fsencode(releases_dir), b"3.13.\xff")
    try:
        os.mkdir(raw)
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")
    deployment.symlink_path.unlink()
    os.symlink(raw, os.fsencode(deployment.symlink_path), target_is_directory=True)

    with pytest.raises(InvalidVersionEncoding, match="UTF-8"):
        installed_version(deployment)
