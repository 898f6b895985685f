"""Tests for config command functionality."""

import argparse
from unittest import mock

from zfs_autorepl.cli.config_cmd import _init_config, execute_config


class TestInitConfig:
    """Tests for _init_config function."""

    def test_outputs_to_stdout(self, capsys):
        args = argparse.Namespace(output=None)
        result = _init_config(args)
        assert result == 0
        captured = capsys.readouterr()
        assert "[global]" in captured.out
        assert "[[replications]]" in captured.out

    def test_writes_to_file(self, tmp_path):
        output_file = tmp_path / "config.toml"
        args = argparse.Namespace(output=str(output_file))
        result = _init_config(args)
        assert result == 0
        assert "[[pools]]" in output_file.read_text()

    def test_unwritable_output(self, tmp_path, capsys):
        args = argparse.Namespace(output=str(tmp_path / "missing" / "config.toml"))
        result = _init_config(args)
        assert result == 1
        assert "Error writing file" in capsys.readouterr().out


class TestExecuteConfig:
    """Tests for execute_config function."""

    def test_validate_with_no_config(self, capsys):
        args = argparse.Namespace(config=None, config_action="validate")
        with mock.patch(
            "zfs_autorepl.cli.config_cmd.find_config_file",
            return_value=None,
        ):
            result = execute_config(args)
        assert result == 1
        captured = capsys.readouterr()
        assert "No configuration file found" in captured.out

    def test_validate_valid_config(self, config_file, capsys):
        args = argparse.Namespace(config=str(config_file), config_action="validate")
        result = execute_config(args)
        assert result == 0
        captured = capsys.readouterr()
        assert "Configuration is valid." in captured.out
        assert "zfs command: /usr/sbin/zfs (via sudo)" in captured.out
        assert "  nvme: 24h" in captured.out
        assert "  tank: 720h" in captured.out
        assert "  other pools: 48h" in captured.out
        assert "  nvme -> tank/repl/nvme (enabled)" in captured.out
        assert "  ssd -> tank/repl/ssd (disabled)" in captured.out

    def test_validate_shows_warnings(self, tmp_config_dir, capsys):
        config_path = tmp_config_dir / "zero.toml"
        config_path.write_text('[[pools]]\nname = "nvme"\nretention_hours = 0\n')
        args = argparse.Namespace(config=str(config_path), config_action="validate")
        result = execute_config(args)
        assert result == 0
        assert "Warning: " in capsys.readouterr().out

    def test_validate_nested_replication(self, tmp_config_dir, capsys):
        """Test a destination inside its source fails validation."""
        config_path = tmp_config_dir / "nested.toml"
        config_path.write_text(
            '[[replications]]\nsource = "tank"\ndestination = "tank/repl/tank"\n'
        )
        args = argparse.Namespace(config=str(config_path), config_action="validate")
        result = execute_config(args)
        assert result == 1
        out = capsys.readouterr().out
        assert "tank -> tank/repl/tank (enabled): INVALID" in out
        assert "1 replication(s) cannot run" in out

    def test_validate_invalid_config(self, tmp_config_dir, capsys):
        config_path = tmp_config_dir / "bad.toml"
        config_path.write_text("[[replications]]\nsource = 'nvme'\n")
        args = argparse.Namespace(config=str(config_path), config_action="validate")
        result = execute_config(args)
        assert result == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_init_action(self, capsys):
        args = argparse.Namespace(config_action="init", output=None)
        result = execute_config(args)
        assert result == 0
        captured = capsys.readouterr()
        assert "[global]" in captured.out

    def test_unknown_action(self, capsys):
        args = argparse.Namespace(config_action=None)
        result = execute_config(args)
        assert result == 1
        captured = capsys.readouterr()
        assert "Usage:" in captured.out
