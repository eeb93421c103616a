# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
External command runner.

Toolchain, git, zip and gpg all go through `run_command`: argument list only
(never shell=True), output captured for diagnostics, optional hard timeout.
A missing executable or a timeout comes back as a failed CommandResult rather
than an exception, so callers have a single success check to make.
"""

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from relpack.logging.logger import get_logger

_logger = get_logger(__name__)

# Exit code reported when the process never ran to completion.
NOT_RUN: int = -1


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def diagnostic(self) -> str:
        """The most useful output for an error message: stderr, falling back to stdout."""
        return (self.stderr or self.stdout).strip()


def run_command(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    timeout_seconds: Optional[int] = None,
    env: Optional[Mapping[str, str]] = None,
    input_text: Optional[str] = None,
) -> CommandResult:
    """
    Run an external command to completion and capture its output.

    Args:
        args: Executable followed by its arguments.
        cwd: Working directory for the command.
        timeout_seconds: Kill the command after this long. None waits forever.
        env: Full environment for the child. None inherits ours.
        input_text: Text written to the child's stdin.

    Returns:
        CommandResult. `success` is False for non-zero exits, timeouts, and
        executables that could not be found.
    """
    argv = tuple(str(arg) for arg in args)
    start = time.monotonic()

    _logger.debug(
        "Running command",
        extra={"args": list(argv), "cwd": str(cwd) if cwd else None, "timeout": timeout_seconds},
    )

    try:
        completed = subprocess.run(
            list(argv),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_seconds,
            env=dict(env) if env is not None else None,
            input=input_text,
            check=False,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start
        _logger.warning(
            "Command timed out",
            extra={"program": argv[0], "timeout_seconds": timeout_seconds},
        )
        return CommandResult(
            args=argv,
            exit_code=NOT_RUN,
            stdout="",
            stderr=f"{argv[0]} timed out after {timeout_seconds}s",
            elapsed_seconds=elapsed,
            timed_out=True,
        )
    except OSError as err:
        elapsed = time.monotonic() - start
        if isinstance(err, FileNotFoundError):
            reason = f"{argv[0]} executable not found"
        else:
            reason = f"cannot run {argv[0]}: {err}"
        _logger.warning("Command could not start", extra={"program": argv[0], "error": reason})
        return CommandResult(
            args=argv,
            exit_code=NOT_RUN,
            stdout="",
            stderr=reason,
            elapsed_seconds=elapsed,
        )

    elapsed = time.monotonic() - start
    _logger.debug(
        "Command finished",
        extra={
            "program": argv[0],
            "exit_code": completed.returncode,
            "elapsed_seconds": round(elapsed, 3),
        },
    )

    return CommandResult(
        args=argv,
        exit_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        elapsed_seconds=elapsed,
    )
