"""Tests for config_file module."""

import pytest
from pathlib import Path
from unittest.mock import patch

from quick_term import config_file


@pytest.fixture(autouse=True)
def reset_config():
    """Reset config state before each test."""
    config_file.reset()
    yield
    config_file.reset()


class TestDefaults:
    """Missing config uses sensible defaults."""

    def test_defaults_when_no_file(self):
        with patch.object(config_file, "CONFIG_PATH", Path("/nonexistent/config.toml")):
            cfg = config_file.load_config()

        assert cfg["auto_change_directory"] == "workspace"
        assert cfg["history_capacity"] == 100
        assert cfg["debug"] is False

    def test_get_returns_defaults(self):
        with patch.object(config_file, "CONFIG_PATH", Path("/nonexistent/config.toml")):
            assert config_file.get("auto_change_directory") == "workspace"
            config_file.reset()
            assert config_file.get("history_capacity") == 100


class TestLoadsToml:
    """Reads ~/.config/quick-term/config.toml if it exists."""

    def test_reads_all_settings(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text(
            '[terminal]\nauto_change_directory = "auto"\n\n'
            "[history]\ncapacity = 30\n\n"
            "[debug]\nenabled = true\n"
        )
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg["auto_change_directory"] == "auto"
        assert cfg["history_capacity"] == 30
        assert cfg["debug"] is True

    def test_legacy_policy_name(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text('[terminal]\nauto_change_directory = "auto (experimental)"\n')
        with patch.object(config_file, "CONFIG_PATH", config):
            assert config_file.get("auto_change_directory") == "auto"

    def test_partial_config_merges_with_defaults(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("[history]\ncapacity = 50\n")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg["history_capacity"] == 50
        # Unset values use defaults
        assert cfg["auto_change_directory"] == "workspace"

    def test_empty_config_uses_defaults(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg == config_file.DEFAULTS


class TestValidation:
    """Invalid values ignored with stderr warning."""

    def test_invalid_policy_ignored(self, tmp_path, capsys):
        config = tmp_path / "config.toml"
        config.write_text('[terminal]\nauto_change_directory = "sometimes"\n')
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg["auto_change_directory"] == "workspace"  # default
        assert "unknown auto_change_directory" in capsys.readouterr().err

    def test_invalid_int_ignored(self, tmp_path, capsys):
        config = tmp_path / "config.toml"
        config.write_text('[history]\ncapacity = "lots"\n')
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg["history_capacity"] == 100  # default
        assert "must be an integer" in capsys.readouterr().err

    def test_zero_capacity_ignored(self, tmp_path, capsys):
        config = tmp_path / "config.toml"
        config.write_text("[history]\ncapacity = 0\n")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg["history_capacity"] == 100  # default
        assert "must be >= 1" in capsys.readouterr().err

    def test_corrupt_toml_uses_defaults(self, tmp_path, capsys):
        config = tmp_path / "config.toml"
        config.write_text("this is not valid toml {{{}}")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg = config_file.load_config()

        assert cfg == config_file.DEFAULTS
        assert config_file.raw() == {}
        assert "error reading config" in capsys.readouterr().err


class TestCaching:
    """Config is loaded once and cached."""

    def test_load_is_cached(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("[history]\ncapacity = 99\n")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg1 = config_file.load_config()
            # Modify the file — should not affect cached result
            config.write_text("[history]\ncapacity = 1\n")
            cfg2 = config_file.load_config()

        assert cfg1["history_capacity"] == 99
        assert cfg2["history_capacity"] == 99

    def test_reset_clears_cache(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text("[history]\ncapacity = 99\n")
        with patch.object(config_file, "CONFIG_PATH", config):
            cfg1 = config_file.load_config()
            config_file.reset()
            config.write_text("[history]\ncapacity = 1\n")
            cfg2 = config_file.load_config()

        assert cfg1["history_capacity"] == 99
        assert cfg2["history_capacity"] == 1


class TestDottedLookup:
    """{config:...} keys walk nested TOML tables, workspace first."""

    def test_lookup_in_nested_tables(self):
        data = {"editor": {"fontSize": 14, "font": {"family": "Mono"}}}
        assert config_file.lookup_in(data, "editor.fontSize") == 14
        assert config_file.lookup_in(data, "editor.font.family") == "Mono"
        assert config_file.lookup_in(data, "editor.missing") is None
        assert config_file.lookup_in(data, "editor.fontSize.deeper") is None

    def test_workspace_overrides_user_config(self, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text('[editor]\nfontSize = 12\ntheme = "dark"\n')
        with patch.object(config_file, "CONFIG_PATH", config):
            workspace = {"editor": {"fontSize": 16}}
            assert config_file.lookup("editor.fontSize", workspace) == 16
            assert config_file.lookup("editor.theme", workspace) == "dark"
            assert config_file.lookup("editor.fontSize") == 12

    def test_load_workspace_config(self, tmp_path):
        (tmp_path / ".quick-term.toml").write_text('[python]\ndefaultInterpreterPath = "/venv/bin/python"\n')
        data = config_file.load_workspace_config(str(tmp_path))
        assert data == {"python": {"defaultInterpreterPath": "/venv/bin/python"}}

    def test_missing_or_corrupt_workspace_config(self, tmp_path):
        assert config_file.load_workspace_config(None) == {}
        assert config_file.load_workspace_config(str(tmp_path)) == {}
        (tmp_path / ".quick-term.toml").write_text("not = = toml")
        assert config_file.load_workspace_config(str(tmp_path)) == {}
