# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Target catalog: the platform triples a release is built for.

A target is an opaque `arch-vendor-os[-abi]` string as understood by the
toolchain. We only ever look inside it for two reasons: to validate that the
catalog is well formed, and to decide whether the binary carries a `.exe`
suffix. Everything else passes through to the toolchain untouched.
"""

from typing import NamedTuple, Optional, Sequence

DEFAULT_TARGETS: tuple[str, ...] = (
    "x86_64-unknown-linux-gnu",
    "aarch64-apple-darwin",
    "x86_64-pc-windows-gnu",
)

_WINDOWS_MARKER = "windows"


class TargetTriple(NamedTuple):
    """The components of a target string. `abi` is None for three-part triples."""

    arch: str
    vendor: str
    os: str
    abi: Optional[str]


def parse_target(target: str) -> TargetTriple:
    """
    Split a target string into its components.

    Three-part triples (`aarch64-apple-darwin`) have no ABI component.
    Four-part triples (`x86_64-pc-windows-msvc`) do.

    Raises:
        ValueError: If the string is not a 3- or 4-part dash-separated triple.
    """
    parts = target.split("-")
    if len(parts) not in (3, 4) or any(not part for part in parts):
        raise ValueError(
            f"Invalid target '{target}': expected 'arch-vendor-os' or 'arch-vendor-os-abi'"
        )
    if len(parts) == 3:
        return TargetTriple(arch=parts[0], vendor=parts[1], os=parts[2], abi=None)
    return TargetTriple(arch=parts[0], vendor=parts[1], os=parts[2], abi=parts[3])


def is_windows_target(target: str) -> bool:
    """True iff the target builds for a Windows-family OS/ABI (and so gets a .exe)."""
    return _WINDOWS_MARKER in target


def validate_catalog(targets: Sequence[str]) -> tuple[str, ...]:
    """
    Check a target catalog and return it as an immutable tuple.

    Every archive name is derived from its target, so a duplicated target would
    make two pipeline iterations write the same files.

    Raises:
        ValueError: If the catalog is empty, contains a malformed target, or
            contains the same target twice.
    """
    if not targets:
        raise ValueError("Target catalog is empty, nothing to build")

    seen: set[str] = set()
    for target in targets:
        parse_target(target)
        if target in seen:
            raise ValueError(f"Duplicate target in catalog: '{target}'")
        seen.add(target)

    return tuple(targets)
