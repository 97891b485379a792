"""
Tests for tsupdater.swapper module.

Tests the active pointer swap including:
- Rename of the old pointer and creation of the new one
- Pre-checks that leave everything untouched
- Failure after the rename keeps the backup pointer
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from tsupdater.exceptions import (
    ActivationError,
    LinkCreationFailed,
    PointerNotRenamable,
    ReleaseMissing,
)
from tsupdater.swapper import activate, backup_pointer_path
from tsupdater.versioning import parse_version

VERSION = parse_version("3.13.7")
NOW = 1700000000


@pytest.fixture
def new_release(deployment):
    release = deployment.releases_path / "3.13.7"
    release.mkdir()
    (release / "ts3server").write_text("new server")
    return release


def test_backup_pointer_path(tmp_test_dir):
    """Test the backup name appends the timestamp."""
    assert backup_pointer_path(tmp_test_dir / "teamspeak", NOW) == (
        tmp_test_dir / f"teamspeak.{NOW}"
    )


def test_swap(deployment, new_release):
    """Test the pointer moves to the new release and the old one is kept."""
    old_target = deployment.symlink_path.resolve()

    backup = activate(deployment, VERSION, now=NOW)

    assert backup == backup_pointer_path(deployment.symlink_path, NOW)
    assert backup.is_symlink()
    assert backup.resolve() == old_target
    assert deployment.symlink_path.is_symlink()
    assert deployment.symlink_path.resolve() == new_release.resolve()
    assert os.path.isabs(os.readlink(deployment.symlink_path))
    assert (deployment.symlink_path / "ts3server").read_text() == "new server"


def test_release_missing(deployment):
    """Test a missing release leaves the pointer untouched."""
    before = os.readlink(deployment.symlink_path)

    with pytest.raises(ReleaseMissing):
        activate(deployment, VERSION, now=NOW)

    assert os.readlink(deployment.symlink_path) == before
    assert not backup_pointer_path(deployment.symlink_path, NOW).exists()


def test_backup_name_taken(deployment, new_release):
    """Test an existing backup name is never overwritten."""
    taken = backup_pointer_path(deployment.symlink_path, NOW)
    taken.write_text("keep me")
    before = os.readlink(deployment.symlink_path)

    with pytest.raises(PointerNotRenamable):
        activate(deployment, VERSION, now=NOW)

    assert taken.read_text() == "keep me"
    assert os.readlink(deployment.symlink_path) == before


def test_missing_pointer(deployment, new_release):
    """Test a missing pointer cannot be renamed."""
    deployment.symlink_path.unlink()

    with pytest.raises(PointerNotRenamable):
        activate(deployment, VERSION, now=NOW)


def test_link_creation_failure_keeps_backup(deployment, new_release):
    """Test the old pointer survives under its backup name."""
    with patch("tsupdater.swapper.os.symlink", side_effect=PermissionError("denied")):
        with pytest.raises(LinkCreationFailed) as exc_info:
            activate(deployment, VERSION, now=NOW)

    backup = backup_pointer_path(deployment.symlink_path, NOW)
    assert str(backup) in str(exc_info.value)
    assert backup.is_symlink()
    assert backup.resolve().name == "3.13.6"
    assert not deployment.symlink_path.exists()
    assert exc_info.value.stage == "activating"
    assert isinstance(exc_info.value, ActivationError)
