"""
Command Runner

Runs one external command per call from a structured argument vector,
streams or silences its output, and mirrors everything into the build log.
"""

import os
import shlex
import subprocess
from typing import Mapping, Optional, Sequence, Tuple, Union
from pathlib import Path
import logging

from kbuilder.core.exceptions import CommandError
from kbuilder.core.logger import BuildLog


logger = logging.getLogger(__name__)

# Exit status reported when the executable cannot be spawned at all
SPAWN_FAILURE_STATUS = 127

PathLike = Union[str, Path]


def format_command(argv: Sequence[str]) -> str:
    """Render an argument vector as a copy-pasteable shell line."""
    return " ".join(shlex.quote(str(arg)) for arg in argv)


class CommandRunner:
    """
    Thin wrapper around subprocess for pipeline steps.

    Every call is a single blocking invocation with no retry and no
    timeout. Zero means success; anything else is a failure and gets an
    ERROR entry in the log.

    Args:
        log: Open BuildLog receiving command output. Without one, output
            lines go to the ``kbuilder.output`` logger only.
        base_env: Environment overrides applied to every command.
    """

    def __init__(self, log: Optional[BuildLog] = None, base_env: Optional[Mapping[str, str]] = None):
        self._log = log
        self._base_env = dict(base_env or {})

    def _environment(self, env: Optional[Mapping[str, str]]) -> Optional[dict]:
        if not self._base_env and not env:
            return None
        merged = dict(os.environ)
        merged.update(self._base_env)
        merged.update(env or {})
        return merged

    def _record(self, line: str, echo: bool) -> None:
        if self._log is not None:
            self._log.command_output(line, echo=echo)
        else:
            logger.debug("OUTPUT | %s", line.rstrip("\n"))

    def _spawn(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike],
        env: Optional[Mapping[str, str]],
    ) -> subprocess.Popen:
        return subprocess.Popen(
            [str(arg) for arg in argv],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd) if cwd is not None else None,
            env=self._environment(env),
            text=True,
            errors="replace",
        )

    def run(
        self,
        argv: Sequence[str],
        show_output: bool = False,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """
        Run a command and return its exit status.

        Args:
            argv: Program and arguments; never interpreted by a shell
            show_output: Echo the command and stream its output to the console
            cwd: Working directory for the command
            env: Extra environment variables for this call

        Returns:
            Exit status (0 on success)
        """
        command = format_command(argv)
        if show_output and self._log is not None:
            self._log.echo(f"$ {command}")
        logger.debug("RUN | %s%s", command, f" (cwd={cwd})" if cwd else "")

        try:
            process = self._spawn(argv, cwd, env)
        except OSError as exc:
            logger.error("Command failed (%s): %s", exc.strerror or exc, command)
            return SPAWN_FAILURE_STATUS

        with process.stdout:
            for line in process.stdout:
                self._record(line, echo=show_output)
        status = process.wait()

        if status != 0:
            logger.error("Command failed with exit code %d: %s", status, command)
        return status

    def check(
        self,
        argv: Sequence[str],
        message: str,
        show_output: bool = True,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Run a command and raise CommandError on a non-zero exit.

        Args:
            argv: Program and arguments
            message: Error message used for the raised exception
            show_output: Echo the command and stream its output
            cwd: Working directory for the command
            env: Extra environment variables for this call

        Raises:
            CommandError: If the command fails
        """
        status = self.run(argv, show_output=show_output, cwd=cwd, env=env)
        if status != 0:
            raise CommandError(message, argv=argv, returncode=status)

    def capture(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, str]:
        """
        Run a command silently and return its status and combined output.

        Output is still mirrored into the log file.
        """
        command = format_command(argv)
        logger.debug("RUN | %s", command)

        try:
            process = self._spawn(argv, cwd, env)
        except OSError as exc:
            logger.error("Command failed (%s): %s", exc.strerror or exc, command)
            return SPAWN_FAILURE_STATUS, ""

        lines = []
        with process.stdout:
            for line in process.stdout:
                lines.append(line)
                self._record(line, echo=False)
        status = process.wait()

        if status != 0:
            logger.error("Command failed with exit code %d: %s", status, command)
        return status, "".join(lines)
