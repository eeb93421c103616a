# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact naming.

Pure functions only. Every output path in a release is derived from the
target string (plus the release identifier for archives), which is what
guarantees that no two targets ever write the same file.
"""

from pathlib import Path
from typing import Optional

from relpack.release.targets import is_windows_target

ARCHIVE_EXTENSION = ".zip"
WINDOWS_EXECUTABLE_SUFFIX = ".exe"

# Cargo profiles whose output directory is not named after the profile.
_PROFILE_DIRECTORIES: dict[str, str] = {
    "dev": "debug",
    "test": "debug",
    "bench": "release",
}


def binary_name(program: str, target: str) -> str:
    """`program`, plus `.exe` for Windows-family targets."""
    if is_windows_target(target):
        return program + WINDOWS_EXECUTABLE_SUFFIX
    return program


def profile_directory(profile: str) -> str:
    """The directory a build profile writes into (`dev` builds land in `debug`)."""
    return _PROFILE_DIRECTORIES.get(profile, profile)


def binary_path(target_root: Path, target: str, profile: str, program: str) -> Path:
    """
    Where the toolchain leaves the binary for `target`.

    Layout: <target_root>/<target>/<profile-dir>/<program>[.exe]
    """
    return target_root / target / profile_directory(profile) / binary_name(program, target)


def archive_name(target: str, release_id: Optional[str]) -> str:
    """`<target>-<release_id>.zip`, or `<target>.zip` for unversioned releases."""
    if release_id:
        return f"{target}-{release_id}{ARCHIVE_EXTENSION}"
    return f"{target}{ARCHIVE_EXTENSION}"


def signature_path(archive: Path, suffix: str = ".asc") -> Path:
    """Detached signature sits next to the archive: `<archive><suffix>`."""
    return archive.with_name(archive.name + suffix)
