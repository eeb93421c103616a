# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Project root discovery.

relpack runs from inside the project being released. Output and toolchain
paths in the config are relative to that project's root, which is found by
walking up from the working directory to the nearest build manifest.
"""

from pathlib import Path

PROJECT_MARKERS: tuple[str, ...] = ("Cargo.toml", "relpack.yaml")


def resolve_project_root(start: Path | None = None) -> Path:
    """
    Walk up from `start` (default: cwd) to the first directory holding a project marker.

    Returns:
        Absolute path to the project root directory.

    Raises:
        RuntimeError: If no ancestor directory contains a marker.
    """
    current = (start if start is not None else Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if any((candidate / marker).is_file() for marker in PROJECT_MARKERS):
            return candidate
    raise RuntimeError(
        f"Cannot find project root from {current}. "
        f"None of {', '.join(PROJECT_MARKERS)} found in any ancestor directory."
    )


def resolve_within(project_root: Path, relative: str) -> Path:
    """
    Resolve a config path against the project root.

    Absolute paths are returned as-is; relative ones are joined to the root.
    """
    path = Path(relative)
    if path.is_absolute():
        return path
    return project_root / path
