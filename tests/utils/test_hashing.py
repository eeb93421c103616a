# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for file hashing.
"""

import hashlib
from pathlib import Path

import pytest

from relpack.utils.hashing import HASH_BUFFER_SIZE, compute_sha256


class TestFileHashing:
    def test_empty_file_has_known_hash(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.write_bytes(b"")
        expected = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        assert compute_sha256(empty) == expected

    def test_multi_chunk_file(self, tmp_path: Path) -> None:
        data = b"x" * (HASH_BUFFER_SIZE * 3 + 17)
        big = tmp_path / "big.bin"
        big.write_bytes(data)
        assert compute_sha256(big) == hashlib.sha256(data).hexdigest()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            compute_sha256(tmp_path / "nope")
