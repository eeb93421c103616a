# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the SHA256SUMS file.
"""

import hashlib
from pathlib import Path

from relpack.release.checksums.integrity import (
    CHECKSUM_FILENAME,
    generate_checksums,
    write_checksum_file,
)


def test_checksums_are_sorted_and_correct(tmp_path: Path) -> None:
    b = tmp_path / "b.zip"
    a = tmp_path / "a.zip"
    b.write_bytes(b"bbb")
    a.write_bytes(b"aaa")

    checksums = generate_checksums([b, a])

    assert list(checksums) == ["a.zip", "b.zip"]
    assert checksums["a.zip"] == hashlib.sha256(b"aaa").hexdigest()


def test_file_format_is_sha256sum_compatible(tmp_path: Path) -> None:
    archive = tmp_path / "x86_64-unknown-linux-gnu.zip"
    archive.write_bytes(b"zip")

    path = write_checksum_file(tmp_path, generate_checksums([archive]))

    assert path == tmp_path / CHECKSUM_FILENAME
    digest = hashlib.sha256(b"zip").hexdigest()
    assert path.read_text(encoding="utf-8") == f"{digest}  x86_64-unknown-linux-gnu.zip\n"
    assert not list(tmp_path.glob(".relpack_tmp_*"))
