"""Run manifest hook commands in the output directory."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import HookError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


def run_command(command: str, cwd: Path) -> CommandResult:
    """Run a shell command and capture its output."""
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise HookError(command, -1, stderr=f"Failed to execute hook: {exc}") from exc
    return CommandResult(proc.returncode, proc.stdout, proc.stderr)


def run_hooks(commands: list[str], cwd: Path, stage: str = "post-generation") -> None:
    """Run commands in order; the first failure aborts the run."""
    for command in commands:
        logger.info("Running %s hook: %s", stage, command)
        result = run_command(command, cwd)
        if result.returncode != 0:
            raise HookError(command, result.returncode, result.stdout, result.stderr)
        logger.debug("Hook '%s' output:\n%s", command, result.stdout)
