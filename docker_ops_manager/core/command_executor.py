"""Run docker commands as subprocesses and capture their outcome."""

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Union

from ..utils.logging_config import log_operation
from .constants import (
    COMMAND_NOT_FOUND_EXIT_CODE,
    DEFAULT_COMMAND_TIMEOUT,
    INVALID_COMMAND_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
)

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external command."""
    output: str  # stdout and stderr, interleaved
    exit_code: int
    duration: float  # seconds

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _to_text(data: Union[str, bytes, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class CommandExecutor:
    """Executes external commands with a time limit.

    Never raises for command failures: timeouts report exit code 124 and
    a missing executable reports 127, mirroring shell conventions. A command
    string with unbalanced quotes reports 2 without running anything.
    """

    def __init__(self, default_timeout: int = DEFAULT_COMMAND_TIMEOUT):
        self.default_timeout = default_timeout

    def execute(self, operation: str, subject: Optional[str],
                command: Union[str, List[str]], timeout: Optional[int] = None,
                quiet: bool = False) -> CommandResult:
        """Run a command, merging stderr into stdout.

        Args:
            operation: Operation tag for the log line
            subject: Unit the command concerns, if any
            command: argv list, or a string split with shell quoting rules
            timeout: Seconds before the command is killed
            quiet: Log failures at DEBUG, for probes where non-zero is expected

        Returns:
            CommandResult with the captured output and exit code. Output that
            is not valid UTF-8 is decoded with replacement characters.
        """
        timeout = timeout or self.default_timeout
        started = time.monotonic()
        try:
            args = shlex.split(command) if isinstance(command, str) else list(command)
        except ValueError as e:
            result = CommandResult(
                output=f"Invalid command {command!r}: {e}",
                exit_code=INVALID_COMMAND_EXIT_CODE,
                duration=time.monotonic() - started,
            )
            log_operation(logger, logging.WARNING, operation, subject, result.output)
            return result

        display = " ".join(shlex.quote(arg) for arg in args)
        log_operation(logger, logging.DEBUG, operation, subject, f"Executing command: {display}")

        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
            result = CommandResult(
                output=_to_text(completed.stdout),
                exit_code=completed.returncode,
                duration=time.monotonic() - started,
            )
        except subprocess.TimeoutExpired as e:
            result = CommandResult(
                output=_to_text(e.output) + f"\nCommand timed out after {timeout}s",
                exit_code=TIMEOUT_EXIT_CODE,
                duration=time.monotonic() - started,
            )
        except OSError as e:
            result = CommandResult(
                output=f"Failed to execute command: {e}",
                exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
                duration=time.monotonic() - started,
            )

        if result.ok:
            log_operation(logger, logging.DEBUG, operation, subject,
                          f"Command succeeded in {result.duration:.2f}s")
        else:
            log_operation(logger, logging.DEBUG if quiet else logging.WARNING, operation, subject,
                          f"Command failed with exit code {result.exit_code}: {result.output.strip()}")
        return result
