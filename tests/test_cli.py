"""
Tests for Discard Toolkit CLI module.
"""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from discard_toolkit import __version__
from discard_toolkit.cli import cli
from discard_toolkit.config import DiscardConfig


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML configuration file."""
    path = tmp_path / "discard.yaml"
    path.write_text("discard_column: deleted_at\nlog_level: debug\n", encoding="utf-8")
    return path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test CLI help command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Discard Toolkit" in result.output
        assert "install" in result.output
        assert "config" in result.output

    def test_cli_version(self, runner):
        """Test CLI version command."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cli_no_command(self, runner):
        """Test CLI with no command shows info."""
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Discard Toolkit" in result.output


class TestInstallCommand:
    """Test writing the configuration file."""

    def test_install_writes_defaults(self, runner, tmp_path):
        """Test install writes a loadable file with default values."""
        target = tmp_path / "discard.yaml"

        result = runner.invoke(cli, ["install", "--path", str(target)])

        assert result.exit_code == 0
        assert "Wrote" in result.output
        assert target.read_text(encoding="utf-8").startswith("# Discard Toolkit")
        assert DiscardConfig.from_file(target) == DiscardConfig()

    def test_install_custom_column(self, runner, tmp_path):
        """Test install records a custom marker column."""
        target = tmp_path / "discard.yaml"

        result = runner.invoke(
            cli, ["install", "--path", str(target), "--discard-column", "deleted_at"]
        )

        assert result.exit_code == 0
        assert DiscardConfig.from_file(target).discard_column == "deleted_at"

    def test_install_invalid_column(self, runner, tmp_path):
        """Test install rejects a column name that is not an identifier."""
        target = tmp_path / "discard.yaml"

        result = runner.invoke(
            cli, ["install", "--path", str(target), "--discard-column", "deleted at"]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert not target.exists()

    def test_install_refuses_overwrite(self, runner, config_file):
        """Test an existing file is left alone without --force."""
        result = runner.invoke(cli, ["install", "--path", str(config_file)])

        assert result.exit_code == 1
        assert "already" in result.output
        assert DiscardConfig.from_file(config_file).discard_column == "deleted_at"

    def test_install_force(self, runner, config_file):
        """Test --force overwrites an existing file."""
        result = runner.invoke(cli, ["install", "--path", str(config_file), "--force"])

        assert result.exit_code == 0
        assert DiscardConfig.from_file(config_file).discard_column == "discarded_at"


class TestConfigCommands:
    """Test configuration-related commands."""

    def test_config_show(self, runner):
        """Test config show command."""
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "Discard Configuration" in result.output

    def test_config_show_json(self, runner):
        """Test config show with JSON format."""
        result = runner.invoke(cli, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == DiscardConfig().to_dict()

    def test_config_show_yaml_from_file(self, runner, config_file):
        """Test config show reads a file and prints YAML."""
        result = runner.invoke(
            cli, ["config", "show", "--file", str(config_file), "--format", "yaml"]
        )
        assert result.exit_code == 0

        data = yaml.safe_load(result.output)
        assert data["discard_column"] == "deleted_at"
        assert data["log_level"] == "DEBUG"

    def test_config_show_from_env(self, runner, monkeypatch):
        """Test config show reflects environment variables."""
        monkeypatch.setenv("DISCARD_DISCARD_COLUMN", "removed_at")

        result = runner.invoke(cli, ["config", "show", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["discard_column"] == "removed_at"

    def test_config_show_invalid_file(self, runner, tmp_path):
        """Test an invalid file is reported."""
        path = tmp_path / "bad.yaml"
        path.write_text("log_level: LOUD\n", encoding="utf-8")

        result = runner.invoke(cli, ["config", "show", "--file", str(path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    @patch("discard_toolkit.cli.get_config")
    def test_config_show_uses_global_config(self, mock_get_config, runner):
        """Test config show displays the global configuration."""
        mock_get_config.return_value = DiscardConfig(lock_neutral_value=-1)

        result = runner.invoke(cli, ["config", "show", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["lock_neutral_value"] == -1
