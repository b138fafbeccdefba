"""Tests for the CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from taskpilot import __version__
from taskpilot.cli import main


@pytest.fixture
def runner_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.chdir(tmp_path)
    return {"TASKPILOT_LOG_DIR": str(tmp_path / "logs")}


class TestCLI:
    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"taskpilot {__version__}"

    def test_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--workspace" in result.output
        assert "--permission" in result.output
        assert "deny_all" in result.output

    def test_invalid_permission_choice(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--permission", "sometimes"])
        assert result.exit_code != 0

    def test_configuration_error_reported(self, tmp_path: Path, runner_env) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--config", str(tmp_path / "missing.yaml"), "-w", str(tmp_path)],
            env=runner_env,
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_unknown_provider_reported(self, tmp_path: Path, runner_env) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--provider", "nope", "-w", str(tmp_path / "ws")],
            env=runner_env,
            input="/quit\n",
        )
        assert result.exit_code == 1
        assert "Unknown provider: nope" in result.output

    def test_session_help_and_quit(self, tmp_path: Path, runner_env) -> None:
        workspace = tmp_path / "ws"
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["-w", str(workspace), "--provider", "echo"],
            env=runner_env,
            input="/help\n/quit\n",
        )
        assert result.exit_code == 0, result.output
        assert "provider echo" in result.output
        assert "permission mode: manual_approval" in result.output
        assert "/approve" in result.output
        assert workspace.is_dir()

    def test_restores_history(self, tmp_path: Path, runner_env) -> None:
        workspace = tmp_path / "ws"
        (workspace / ".taskpilot").mkdir(parents=True)
        (workspace / ".taskpilot" / "history.json").write_text(json.dumps([
            {"role": "user", "content": {"type": "text", "text": "earlier question"}},
            {"role": "assistant", "content": {"type": "text", "text": "earlier answer"}},
        ]))
        runner = CliRunner()
        result = runner.invoke(main, ["-w", str(workspace)], env=runner_env, input="/quit\n")
        assert result.exit_code == 0, result.output
        assert "you: earlier question" in result.output
        assert "assistant: earlier answer" in result.output

    def test_skip_load_messages(self, tmp_path: Path, runner_env) -> None:
        workspace = tmp_path / "ws"
        (workspace / ".taskpilot").mkdir(parents=True)
        (workspace / ".taskpilot" / "history.json").write_text(json.dumps([
            {"role": "user", "content": {"type": "text", "text": "earlier question"}},
        ]))
        runner = CliRunner()
        result = runner.invoke(
            main, ["-w", str(workspace), "--skip-load-messages"], env=runner_env, input="/quit\n",
        )
        assert result.exit_code == 0, result.output
        assert "earlier question" not in result.output
