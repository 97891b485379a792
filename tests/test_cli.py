"""
Tests for tsupdater.cli module.

Tests the command-line interface including:
- check and update commands
- Exit codes for updated, up-to-date and failed runs
- Error output naming the failed stage
- Config file handling
"""

from __future__ import annotations

import pytest

from conftest import MIRROR_URL, listing_html
from tsupdater import __version__
from tsupdater.cli import main
from tsupdater.remote import archive_url
from tsupdater.versioning import parse_version


def _args(config, command: str) -> list[str]:
    return [
        command,
        "--symlink-path",
        str(config.symlink_path),
        "--releases-path",
        str(config.releases_path),
        "--target",
        config.target.value,
        "--mirror-url",
        config.mirror_url,
    ]


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_version_flag(capsys):
    """Test --version prints the package version."""
    assert _run(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_command_required(capsys):
    """Test running without a command is a usage error."""
    assert _run([]) == 2


def test_unknown_target_rejected(capsys):
    """Test --target only accepts supported identifiers."""
    assert _run(["check", "--target", "amiga"]) == 2
    assert "invalid choice" in capsys.readouterr().err


def test_check_update_available(deployment, requests_mock, capsys):
    """Test check reports an available update."""
    requests_mock.get(MIRROR_URL, text=listing_html("3.13.6/", "3.13.7/"))

    assert _run(_args(deployment, "check")) == 0

    out = capsys.readouterr().out
    assert "Installed Version: 3.13.6" in out
    assert "Published Version: 3.13.7" in out
    assert "[UPDATE AVAILABLE]" in out


def test_update_up_to_date(deployment, requests_mock, capsys):
    """Test update exits 0 with a distinct message when up to date."""
    requests_mock.get(MIRROR_URL, text=listing_html("3.13.6/"))

    assert _run(_args(deployment, "update")) == 0

    out = capsys.readouterr().out
    assert "[UP TO DATE]" in out
    assert "[SUCCESS]" not in out


def test_update_success(deployment, requests_mock, server_tarball, capsys):
    """Test update exits 0 after activating the new release."""
    version = parse_version("3.13.7")
    requests_mock.get(MIRROR_URL, text=listing_html("3.13.7/"))
    requests_mock.get(archive_url(deployment, version), content=server_tarball)

    assert _run(_args(deployment, "update")) == 0

    out = capsys.readouterr().out
    assert "[1/5]" in out
    assert "[SUCCESS]" in out
    assert deployment.symlink_path.resolve().name == "3.13.7"


def test_update_failure_names_stage(deployment, requests_mock, capsys):
    """Test failures exit 1 and print the failed stage."""
    requests_mock.get(MIRROR_URL, text=listing_html("3.13.7/"))
    requests_mock.get(archive_url(deployment, parse_version("3.13.7")), status_code=404)

    assert _run(_args(deployment, "update")) == 1

    out = capsys.readouterr().out
    assert "Error [downloading]:" in out
    assert deployment.symlink_path.resolve().name == "3.13.6"


def test_config_file(deployment, requests_mock, create_yaml_file, capsys):
    """Test settings are read from a config file."""
    path = create_yaml_file(
        "tsupdater.yaml",
        {
            "symlink_path": str(deployment.symlink_path),
            "releases_path": str(deployment.releases_path),
            "target": "linux_amd64",
            "mirror_url": MIRROR_URL,
        },
    )
    requests_mock.get(MIRROR_URL, text=listing_html("3.13.6/"))

    assert _run(["check", "--config", str(path)]) == 0
    assert "[UP TO DATE]" in capsys.readouterr().out


def test_config_error(tmp_test_dir, capsys):
    """Test configuration errors exit 1 with the configuration stage."""
    assert _run(["check", "--config", str(tmp_test_dir / "missing.yaml")]) == 1
    assert "Error [configuration]:" in capsys.readouterr().out
