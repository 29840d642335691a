"""Tests for the `tether init` CLI command."""

from __future__ import annotations

import json
import re
from pathlib import Path

from click.testing import CliRunner

from tether.cli.main import cli
from tether.core.config import validate_config


class TestInitDirectoryStructure:
    """tether init creates the .tether/ tree and a usable config."""

    def test_creates_expected_directories(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])
        assert result.exit_code == 0
        for d in ("records", "meta", "locks"):
            assert (tmp_path / ".tether" / d).is_dir(), f"Missing directory: {d}"

    def test_prints_success_message(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])
        assert "tether initialized in .tether/" in result.output

    def test_config_has_secret_and_endpoint(self, tmp_path: Path) -> None:
        CliRunner().invoke(cli, ["init", "--path", str(tmp_path), "--endpoint", "/relations"])
        config = json.loads((tmp_path / ".tether" / "config.json").read_text())
        assert re.fullmatch(r"[0-9a-f]{64}", config["secret"])
        assert config["endpoint"] == "/relations"
        assert config["relations"] == []
        assert validate_config(config) == []

    def test_each_project_gets_its_own_secret(self, tmp_path: Path) -> None:
        secrets = []
        for name in ("a", "b"):
            target = tmp_path / name
            target.mkdir()
            CliRunner().invoke(cli, ["init", "--path", str(target)])
            secrets.append(json.loads((target / ".tether" / "config.json").read_text())["secret"])
        assert secrets[0] != secrets[1]


class TestInitIdempotency:
    def test_second_init_keeps_config(self, tmp_path: Path) -> None:
        runner = CliRunner()
        runner.invoke(cli, ["init", "--path", str(tmp_path)])
        before = (tmp_path / ".tether" / "config.json").read_text()

        result = runner.invoke(cli, ["init", "--path", str(tmp_path)])
        assert result.exit_code == 0
        assert "already initialized" in result.output
        assert (tmp_path / ".tether" / "config.json").read_text() == before

    def test_file_in_the_way(self, tmp_path: Path) -> None:
        (tmp_path / ".tether").write_text("not a directory")
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "exists but is not a directory" in result.output

    def test_invalid_endpoint_rejected(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["init", "--path", str(tmp_path), "--endpoint", "ajax"])
        assert result.exit_code != 0
        assert not (tmp_path / ".tether").exists()


class TestUninitialized:
    def test_commands_need_a_project(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["routes", "--json"], env={"TETHER_ROOT": str(tmp_path)})
        assert result.exit_code == 1
        parsed = json.loads(result.output)
        assert parsed["error"]["code"] == "NOT_INITIALIZED"
        assert "no .tether/ inside" in parsed["error"]["message"]

    def test_empty_root_env(self) -> None:
        result = CliRunner().invoke(cli, ["routes"], env={"TETHER_ROOT": ""})
        assert result.exit_code == 1
        assert "TETHER_ROOT is set but empty" in result.output
