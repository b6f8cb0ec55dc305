"""Tests for the stdin/stdout entrypoint."""

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from quick_term import config, config_file, main
from quick_term.resolver.escape import escape_shell_arg


@pytest.fixture(autouse=True)
def isolated(tmp_path):
    """No user config, history in a temp file."""
    config_file.reset()
    with patch.object(config_file, "CONFIG_PATH", Path("/nonexistent/config.toml")), \
            patch.object(config, "HISTORY_PATH", tmp_path / "history.json"):
        yield
    config_file.reset()


def run_main(monkeypatch, payload):
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    monkeypatch.setattr("sys.stdin", io.StringIO(raw))
    with pytest.raises(SystemExit) as exc:
        main.main()
    return exc.value.code


class TestRun:
    """The run action prints the resolved command."""

    def test_auto_cd_and_history(self, monkeypatch, capsys, tmp_path):
        project = tmp_path / "ws" / "proj"
        (project / "tests").mkdir(parents=True)
        (project / "pyproject.toml").write_text("")
        test_file = project / "tests" / "test_x.py"
        test_file.write_text("")

        code = run_main(monkeypatch, {
            "command": "pytest -q",
            "file": str(test_file),
            "workspace": str(tmp_path / "ws"),
            "autoChangeDirectory": "auto",
        })

        assert code == 0
        assert capsys.readouterr().out == f"cd {escape_shell_arg(str(project))} && pytest -q"

        saved = json.loads(config.HISTORY_PATH.read_text())
        assert saved[-1]["original"] == "pytest -q"

    def test_rule_list_and_workspace_config(self, monkeypatch, capsys, tmp_path):
        workspace = tmp_path / "ws"
        workspace.mkdir()
        (workspace / ".quick-term.toml").write_text("[build]\njobs = 8\n")

        code = run_main(monkeypatch, {
            "command": [
                {"pattern": "*.c", "command": "make -j{config:build.jobs}"},
                {"pattern": "*", "command": "ls"},
            ],
            "file": str(workspace / "main.c"),
            "workspaceFolders": [{"name": "ws", "path": str(workspace)}],
            "autoChangeDirectory": "none",
        })

        assert code == 0
        assert capsys.readouterr().out == "make -j8"

    def test_warnings_on_stderr(self, monkeypatch, capsys):
        code = run_main(monkeypatch, {"command": "cat {fileBasename}", "autoChangeDirectory": "none"})

        captured = capsys.readouterr()
        assert code == 0
        assert captured.out == "cat {fileBasename}"
        assert "quick-term: warning: File placeholders" in captured.err

    def test_unknown_policy_reported_and_config_used(self, monkeypatch, capsys, tmp_path):
        workspace = tmp_path / "ws"
        workspace.mkdir()

        code = run_main(monkeypatch, {
            "command": "ls",
            "file": str(workspace / "main.c"),
            "workspace": str(workspace),
            "autoChangeDirectory": "sideways",
        })

        captured = capsys.readouterr()
        assert code == 0
        assert "quick-term: unknown auto_change_directory 'sideways', ignoring" in captured.err
        assert captured.out == f"cd {escape_shell_arg(str(workspace))} && ls"

    def test_configuration_error(self, monkeypatch, capsys):
        code = run_main(monkeypatch, {"command": {"command": "ls"}})

        assert code == 1
        assert "Invalid input type" in capsys.readouterr().err

    def test_auto_execute_ends_with_newline(self, monkeypatch, capsys):
        code = run_main(monkeypatch, {
            "command": {"command": "echo hi", "autoExecute": True},
            "autoChangeDirectory": "none",
        })

        assert code == 0
        assert capsys.readouterr().out == "echo hi\n"

    def test_without_auto_execute_no_newline(self, monkeypatch, capsys):
        code = run_main(monkeypatch, {
            "command": {"command": "echo hi", "autoExecute": False},
            "autoChangeDirectory": "none",
        })

        assert code == 0
        assert capsys.readouterr().out == "echo hi"

    @pytest.mark.parametrize("payload", ["", "not json", "[1, 2]", json.dumps({"command": "   "})])
    def test_bad_requests(self, monkeypatch, payload):
        assert run_main(monkeypatch, payload) == 1


class TestHistory:
    """The history action lists and searches past commands."""

    def test_search(self, monkeypatch, capsys):
        for command in ["ls", "pytest -x", "echo PYTHON"]:
            run_main(monkeypatch, {"command": command, "autoChangeDirectory": "none"})
        capsys.readouterr()

        assert run_main(monkeypatch, {"action": "history", "search": "py"}) == 0
        assert capsys.readouterr().out.splitlines() == ["echo PYTHON", "pytest -x"]

    def test_unknown_action(self, monkeypatch, capsys):
        assert run_main(monkeypatch, {"action": "explode"}) == 1
        assert "unknown action" in capsys.readouterr().err
