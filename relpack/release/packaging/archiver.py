# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release archive packaging.

One zip per target, containing the binary as its only entry, stored flat
(the entry name is the bare file name, never target/<triple>/release/...).

Two backends:
  - ZipfileArchiver writes the archive in-process. Entry timestamps and
    permissions are pinned, so the same binary always produces the same
    archive bytes. Rebuilding an unchanged release gives identical assets.
  - ZipCommandArchiver shells out to `zip -j -X`, for setups that want the
    system archiver.
"""

import zipfile
from pathlib import Path
from typing import Optional, Protocol, Sequence

from relpack.logging.logger import get_logger
from relpack.release.errors import PackagingError
from relpack.release.naming import archive_name
from relpack.release.process import run_command

_logger = get_logger(__name__)

# Earliest timestamp the zip format can represent.
FIXED_ZIP_TIMESTAMP: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
# -rwxr-xr-x regular file, stored in the high 16 bits of external_attr.
EXECUTABLE_MODE: int = 0o100755


class Archiver(Protocol):
    """Bundles input files, flattened, into a single archive at `output_path`."""

    def create_archive(self, output_path: Path, inputs: Sequence[Path]) -> Path: ...


class ZipfileArchiver:
    """Deterministic in-process zip writer."""

    def __init__(self, compression_level: int = 9) -> None:
        self.compression_level = compression_level

    def create_archive(self, output_path: Path, inputs: Sequence[Path]) -> Path:
        names = [path.name for path in inputs]
        if len(set(names)) != len(names):
            raise PackagingError(f"Flattening would collide entry names: {names}")

        try:
            with zipfile.ZipFile(output_path, mode="w") as archive:
                for path in inputs:
                    info = zipfile.ZipInfo(path.name, date_time=FIXED_ZIP_TIMESTAMP)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.create_system = 3  # unix, so external_attr carries the mode
                    info.external_attr = EXECUTABLE_MODE << 16
                    archive.writestr(
                        info,
                        path.read_bytes(),
                        compresslevel=self.compression_level,
                    )
        except OSError as err:
            if output_path.exists():
                output_path.unlink()
            raise PackagingError(
                f"Cannot write archive {output_path}", diagnostic=str(err)
            ) from err

        return output_path


class ZipCommandArchiver:
    """Runs the external `zip` utility with -j (junk paths) and -X (no extra attributes)."""

    def __init__(
        self,
        program: str = "zip",
        compression_level: int = 9,
        timeout_seconds: Optional[int] = None,
    ) -> None:
        self.program = program
        self.compression_level = compression_level
        self.timeout_seconds = timeout_seconds

    def command(self, output_path: Path, inputs: Sequence[Path]) -> list[str]:
        return [
            self.program,
            "-j",
            "-X",
            "-q",
            f"-{self.compression_level}",
            str(output_path),
            *(str(path) for path in inputs),
        ]

    def create_archive(self, output_path: Path, inputs: Sequence[Path]) -> Path:
        result = run_command(
            self.command(output_path, inputs),
            timeout_seconds=self.timeout_seconds,
        )
        if not result.success:
            raise PackagingError(
                f"{self.program} exited with code {result.exit_code} for {output_path.name}",
                diagnostic=result.diagnostic,
            )
        if not output_path.is_file():
            raise PackagingError(f"{self.program} reported success but {output_path} is missing")
        return output_path


def package_binary(
    archiver: Archiver,
    binary: Path,
    output_dir: Path,
    target: str,
    release_id: Optional[str],
) -> Path:
    """
    Archive one target's binary into `<output_dir>/<target>[-<release_id>].zip`.

    Raises:
        PackagingError: If the binary is missing or the archiver fails. The
            error is tagged with `target`.
    """
    if not binary.is_file():
        raise PackagingError(
            f"Expected binary not found at {binary}; the toolchain did not produce it",
            target=target,
        )

    output_path = output_dir / archive_name(target, release_id)

    try:
        archiver.create_archive(output_path, [binary])
    except PackagingError as err:
        err.target = target
        raise

    _logger.info(
        "Packaged archive",
        extra={
            "target": target,
            "archive": str(output_path),
            "entry": binary.name,
            "size_bytes": output_path.stat().st_size,
        },
    )
    return output_path
