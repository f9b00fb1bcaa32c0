"""Tests for the hooks module."""

import logging

import pytest

from agenterra.errors import HookError
from agenterra.hooks import run_command, run_hooks


class TestRunCommand:
    """Test the shell command runner."""

    def test_captures_output(self, tmp_path):
        result = run_command("echo hello", tmp_path)
        assert result.returncode == 0
        assert result.stdout.strip() == "hello"

    def test_runs_in_cwd(self, tmp_path):
        run_command("echo x > marker.txt", tmp_path)
        assert (tmp_path / "marker.txt").exists()

    def test_missing_cwd(self, tmp_path):
        with pytest.raises(HookError, match="Failed to execute hook"):
            run_command("echo x", tmp_path / "missing")


class TestRunHooks:
    """Test ordered hook execution and failure reporting."""

    def test_order(self, tmp_path):
        run_hooks(["echo one >> log.txt", "echo two >> log.txt"], tmp_path)
        assert (tmp_path / "log.txt").read_text().split() == ["one", "two"]

    def test_failure_stops_run(self, tmp_path):
        with pytest.raises(HookError) as exc_info:
            run_hooks(["echo boom >&2; exit 3", "touch never.txt"], tmp_path)
        err = exc_info.value
        assert err.returncode == 3
        assert "boom" in err.stderr
        assert "exit code 3" in str(err)
        assert not (tmp_path / "never.txt").exists()

    def test_logs_stage(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="agenterra.hooks"):
            run_hooks(["true"], tmp_path, stage="pre-generation")
        assert "Running pre-generation hook: true" in caplog.text

    def test_empty(self, tmp_path):
        run_hooks([], tmp_path)
