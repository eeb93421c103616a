# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for relpack.

Every operation is a subcommand of `relpack`. No command needs arguments:
the target catalog, program name, profile and signing mode all come from
relpack.yaml (found by walking up from the working directory) or --config.

The global options (--config, --log-level, --dry-run) are inherited by every
subcommand through argparse's parent parser mechanism.

Usage:
    relpack build
    relpack build --dry-run
    relpack targets --config release/relpack.yaml
    relpack version
    relpack check
"""

import argparse
import sys

from relpack.cli.commands import (
    handle_build,
    handle_check,
    handle_info,
    handle_targets,
    handle_version,
)
from relpack.cli.exit_codes import USER_ERROR


def _build_global_parser(suppress_defaults: bool = False) -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False keeps its help text from colliding with the subcommand parsers.
    The subcommand copies use suppress_defaults so an option given before the
    subcommand is not overwritten by the subcommand's default.
    """

    def default(value: object) -> object:
        return argparse.SUPPRESS if suppress_defaults else value

    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=default(None),
        help="Path to YAML configuration file (default: relpack.yaml at the project root).",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=default(None),
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (default: the config file's level).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=default(False),
        dest="dry_run",
        help="Log what would be built without touching the output directory.",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """Register all subcommands, each with its handler via set_defaults(func=...)."""
    commands = [
        ("build", "Build, package and sign every target. Resets the output directory.", handle_build),
        ("targets", "List targets with their binary and archive names.", handle_targets),
        ("version", "Print the release identifier.", handle_version),
        ("check", "Verify the tools and disk space a build needs.", handle_check),
        ("info", "Display version and host information.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)


def main() -> None:
    """
    Main CLI entrypoint, referenced by pyproject.toml's [project.scripts].

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    root_parser = argparse.ArgumentParser(
        prog="relpack",
        description="relpack: build, archive and sign one release binary per target.",
        parents=[_build_global_parser()],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, _build_global_parser(suppress_defaults=True))

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
