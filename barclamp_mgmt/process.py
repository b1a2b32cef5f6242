"""Subprocess execution for the rpm, knife, and rake steps of an install."""

import shlex
import subprocess
from subprocess import CompletedProcess
from pathlib import Path
from typing import Any, Optional

from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .constants import DEFAULT_TIMEOUT
from .utils import InstallError


class CommandRunner(BarclampConfigurable, BarclampLoggable):
    """Runs commands without a shell and reports failures as InstallErrors."""

    def _condition_cmd(self, cmd: list[str] | tuple[str] | str) -> list[str]:
        """Condition the command into a list of UNIX CLI 'words'.

        If command is already a string, split it into string "words".
        If it is a list, make sure every element is a string.
        """
        if isinstance(cmd, (list, tuple)):
            return [str(word) for word in cmd]
        elif isinstance(cmd, str):
            return shlex.split(cmd)
        else:
            raise TypeError("cmd must be a list or str")

    def run(
        self,
        command: list[str] | tuple[str] | str,
        check=True,
        cwd=None,
        timeout=DEFAULT_TIMEOUT,
        text=True,
        output_mode="separate",
        log: Optional[Path | str] = None,
        **extra_parameters,
    ) -> str | CompletedProcess[Any]:
        """Run a command, returning its stdout when `check` is set and the
        CompletedProcess otherwise.

        output_mode "separate" captures stdout and stderr, "log" appends both
        to `log`.
        """
        command = self._condition_cmd(command)
        parameters: dict[str, Any] = dict(
            text=text,
            cwd=str(cwd) if cwd else cwd,
            timeout=timeout,
        )
        if output_mode == "separate":
            parameters.update(dict(capture_output=True))
        elif output_mode == "log":
            if log is None:
                raise ValueError("output_mode 'log' requires a log file.")
        else:
            raise ValueError(f"Invalid output_mode value: {output_mode}")
        parameters.update(extra_parameters)
        self.logger.debug(f"Running command with no shell: {command} {parameters}")
        try:
            if output_mode == "log":
                log = Path(log)  # type: ignore[arg-type]
                log.parent.mkdir(parents=True, exist_ok=True)
                with log.open("a", encoding="utf-8") as opened:
                    result = subprocess.run(
                        command, stdout=opened, stderr=subprocess.STDOUT, **parameters
                    )
            else:
                result = subprocess.run(command, **parameters)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise InstallError(f"{shlex.join(command)} failed: {e}", log) from e
        if check:
            if result.returncode != 0:
                raise InstallError(f"{shlex.join(command)} failed.", log)
            return result.stdout
        return result

    def run_logged(
        self,
        command: list[str] | tuple[str] | str,
        log: Path | str,
        cwd=None,
        timeout=DEFAULT_TIMEOUT,
        **extra_parameters,
    ) -> None:
        """Run a command appending its output to `log`, raising InstallError
        naming `log` if it fails.
        """
        self.run(
            command,
            check=True,
            cwd=cwd,
            timeout=timeout,
            output_mode="log",
            log=log,
            **extra_parameters,
        )
        self.logger.debug(f"\texecuted: {shlex.join(self._condition_cmd(command))}")


class Runnable:
    """Mixin giving components a shared CommandRunner as self.runner."""

    def __init__(self):
        super().__init__()
        self.runner = CommandRunner(getattr(self, "config", None))
