# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build driver: one toolchain invocation per target.

The toolchain is opaque: we hand it a target and a profile, wait for it to
finish, and look at the exit code. We pick its output root and compute where
under it the binary lands (see naming.binary_path).
"""

from pathlib import Path
from typing import Optional, Protocol, Sequence

from relpack.logging.logger import get_logger
from relpack.release.errors import BuildError
from relpack.release.naming import binary_path
from relpack.release.process import run_command

_logger = get_logger(__name__)


class Toolchain(Protocol):
    """Builds one target and returns where the binary should be."""

    def build(self, target: str) -> Path: ...


class CargoToolchain:
    """
    Runs `cargo build --profile <profile> --target <target> --target-dir <dir>`
    in the project root. The explicit target dir keeps CARGO_TARGET_DIR or a
    .cargo/config from moving binaries away from where they are looked for.

    No retries, no incremental tricks: a target either builds or the run
    reports BuildError with cargo's own diagnostics attached.
    """

    def __init__(
        self,
        project_root: Path,
        program_name: str,
        profile: str = "release",
        target_directory: Path | None = None,
        program: str = "cargo",
        extra_args: Sequence[str] = (),
        timeout_seconds: Optional[int] = None,
    ) -> None:
        self.project_root = project_root
        self.program_name = program_name
        self.profile = profile
        self.target_directory = (
            target_directory if target_directory is not None else project_root / "target"
        )
        self.program = program
        self.extra_args = tuple(extra_args)
        self.timeout_seconds = timeout_seconds

    def command(self, target: str) -> list[str]:
        return [
            self.program,
            "build",
            "--profile",
            self.profile,
            "--target",
            target,
            "--target-dir",
            str(self.target_directory),
            *self.extra_args,
        ]

    def build(self, target: str) -> Path:
        _logger.info(
            "Building target",
            extra={"target": target, "profile": self.profile},
        )
        result = run_command(
            self.command(target),
            cwd=self.project_root,
            timeout_seconds=self.timeout_seconds,
        )

        if not result.success:
            if result.timed_out:
                message = f"{self.program} build timed out after {self.timeout_seconds}s"
            else:
                message = f"{self.program} build exited with code {result.exit_code}"
            raise BuildError(message, target=target, diagnostic=result.diagnostic)

        output = binary_path(self.target_directory, target, self.profile, self.program_name)
        _logger.info(
            "Build finished",
            extra={
                "target": target,
                "binary": str(output),
                "elapsed_seconds": round(result.elapsed_seconds, 3),
            },
        )
        return output
