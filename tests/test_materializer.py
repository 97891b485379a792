"""
Tests for tsupdater.materializer module.

Tests release materialization including:
- Unwrapping the single top-level directory
- Archives without a wrapper directory
- Empty archives
- Idempotent re-runs over a partial release
- Symlinks inside the payload
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from unittest.mock import patch

import pytest

from tsupdater.exceptions import EmptyArchive, MaterializationError
from tsupdater.materializer import materialize, payload_root, release_dir
from tsupdater.versioning import parse_version

VERSION = parse_version("3.13.7")


@pytest.fixture
def scratch(tmp_test_dir):
    """Extraction root holding a wrapped TeamSpeak payload."""
    root = tmp_test_dir / "scratch"
    payload = root / "teamspeak3-server_linux_amd64"
    (payload / "redist").mkdir(parents=True)
    (payload / "sql" / "updates").mkdir(parents=True)
    (payload / "ts3server").write_bytes(b"new server")
    (payload / "redist" / "libmariadb.so.2").write_bytes(b"lib")
    (payload / "ts3server_startscript.sh").symlink_to("ts3server")
    return root


class TestPayloadRoot:
    """Tests for payload_root."""

    def test_single_directory_is_unwrapped(self, scratch):
        """Test a lone top-level directory is descended into."""
        assert payload_root(scratch) == scratch / "teamspeak3-server_linux_amd64"

    def test_multiple_entries_used_as_is(self, tmp_test_dir):
        """Test several top-level entries are taken as the payload."""
        (tmp_test_dir / "a").mkdir()
        (tmp_test_dir / "b.txt").write_text("b")
        assert payload_root(tmp_test_dir) == tmp_test_dir

    def test_single_file_used_as_is(self, tmp_test_dir):
        """Test a lone file is not treated as a wrapper."""
        (tmp_test_dir / "ts3server").write_text("x")
        assert payload_root(tmp_test_dir) == tmp_test_dir

    def test_empty_extraction_root(self, tmp_test_dir):
        """Test an empty extraction root raises EmptyArchive."""
        with pytest.raises(EmptyArchive):
            payload_root(tmp_test_dir)


class TestMaterialize:
    """Tests for materialize."""

    def test_builds_release_tree(self, scratch, deployment):
        """Test the payload is copied to releases_path/<version>."""
        result = asyncio.run(materialize(scratch, deployment, VERSION))

        assert result == deployment.releases_path / "3.13.7"
        assert result == release_dir(deployment, VERSION)
        assert (result / "ts3server").read_bytes() == b"new server"
        assert (result / "redist" / "libmariadb.so.2").read_bytes() == b"lib"
        assert (result / "sql" / "updates").is_dir()

    def test_symlinks_preserved(self, scratch, deployment):
        """Test symlinks are recreated, not dereferenced."""
        result = asyncio.run(materialize(scratch, deployment, VERSION))

        link = result / "ts3server_startscript.sh"
        assert link.is_symlink()
        assert (link.parent / link.readlink()) == result / "ts3server"

    def test_idempotent_over_partial_release(self, scratch, deployment):
        """Test a partial release from an earlier run is overwritten."""
        partial = deployment.releases_path / "3.13.7"
        (partial / "redist").mkdir(parents=True)
        (partial / "ts3server").write_bytes(b"half written")

        asyncio.run(materialize(scratch, deployment, VERSION))
        result = asyncio.run(materialize(scratch, deployment, VERSION))

        assert (result / "ts3server").read_bytes() == b"new server"
        assert (result / "redist" / "libmariadb.so.2").read_bytes() == b"lib"

    def test_does_not_touch_other_releases(self, scratch, deployment):
        """Test existing releases are left alone."""
        asyncio.run(materialize(scratch, deployment, VERSION))

        old = deployment.releases_path / "3.13.6" / "ts3server"
        assert old.read_text() == "old server"

    def test_missing_releases_root(self, scratch, deployment, tmp_test_dir):
        """Test a missing releases root raises MaterializationError."""
        config = replace(deployment, releases_path=tmp_test_dir / "no-releases")

        with pytest.raises(MaterializationError, match="does not exist"):
            asyncio.run(materialize(scratch, config, VERSION))

    def test_empty_archive(self, tmp_test_dir, deployment):
        """Test nothing is created for an empty extraction root."""
        empty = tmp_test_dir / "empty"
        empty.mkdir()

        with pytest.raises(EmptyArchive) as exc_info:
            asyncio.run(materialize(empty, deployment, VERSION))
        assert exc_info.value.stage == "materializing"
        assert not (deployment.releases_path / "3.13.7").exists()

    def test_copy_failure(self, scratch, deployment):
        """Test a failed file copy raises MaterializationError."""
        with patch(
            "tsupdater.materializer.shutil.copy2",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(MaterializationError, match="denied") as exc_info:
                asyncio.run(materialize(scratch, deployment, VERSION))

        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert exc_info.value.stage == "materializing"
