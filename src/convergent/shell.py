"""Command execution collaborator."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Protocol

from pydantic import BaseModel

from .config import RunConfig
from .errors import CommandError

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Captured output of a finished command."""

    command: str
    stdout: str = ""
    stderr: str = ""
    exit_status: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class CommandRunner(Protocol):
    """Anything that can run a command string synchronously."""

    def execute(self, command: str, *, tolerate: bool = False) -> CommandResult: ...


class Shell:
    """Run commands through the system shell, honoring the run config."""

    def __init__(self, config: RunConfig | None = None) -> None:
        self.config = config or RunConfig()

    def execute(self, command: str, *, tolerate: bool = False) -> CommandResult:
        """Run a command and capture its output.

        A nonzero exit raises CommandError unless tolerate is set. Commands
        that cannot be started or exceed the configured timeout always raise.
        Output is decoded as UTF-8 with undecodable bytes replaced.
        """
        logger.debug("Executing '%s'", command)
        env = {**os.environ, **self.config.environment}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                executable=self.config.shell_executable,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
                timeout=self.config.command_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                command, reason=f"timed out after {self.config.command_timeout}s"
            ) from exc
        except OSError as exc:
            raise CommandError(command, reason=f"could not be run: {exc}") from exc

        result = CommandResult(
            command=command,
            stdout=proc.stdout,
            stderr=proc.stderr,
            exit_status=proc.returncode,
        )
        logger.debug("'%s' exited with status %d", command, result.exit_status)
        if not result.ok and not tolerate:
            raise CommandError(command, result)
        return result
