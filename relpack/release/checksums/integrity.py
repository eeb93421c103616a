# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Checksum file for a release's archives.

Format (SHA256SUMS), compatible with `sha256sum -c`:
    <sha256hex>  <archive-name>

One line per archive, sorted by name for determinism. Signatures are not
listed; they sign the archives, not the checksum file.
"""

import logging
from pathlib import Path
from typing import Iterable

from relpack.logging.logger import get_logger
from relpack.utils.filesystem import atomic_write
from relpack.utils.hashing import compute_sha256

_logger: logging.Logger = get_logger(__name__)

CHECKSUM_FILENAME = "SHA256SUMS"


def generate_checksums(archives: Iterable[Path]) -> dict[str, str]:
    """Map archive file name → SHA256 hex digest, sorted by name."""
    checksums: dict[str, str] = {}
    for archive in sorted(archives, key=lambda p: p.name):
        checksums[archive.name] = compute_sha256(archive)
    return checksums


def write_checksum_file(output_dir: Path, checksums: dict[str, str]) -> Path:
    """
    Write SHA256SUMS into `output_dir` atomically.

    Returns:
        Path of the written file.
    """
    lines = [f"{digest}  {name}" for name, digest in sorted(checksums.items())]
    checksum_path = output_dir / CHECKSUM_FILENAME
    atomic_write(checksum_path, "\n".join(lines) + "\n")

    _logger.info(
        "Checksum file written",
        extra={"path": str(checksum_path), "entries": len(lines)},
    )
    return checksum_path
