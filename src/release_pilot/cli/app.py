"""CLI entry point for release-pilot.

Subcommands::

    release-pilot update             Preview (or apply) the next version locally
    release-pilot release <preset>   Full release from a GitHub Actions job

Usage::

    # What would the next release look like?
    release-pilot update

    # Write the version and CHANGELOG.md:
    release-pilot update --execute

    # Release a VS Code extension, attaching the .vsix instead of publishing:
    release-pilot release vscode-extension --vsix-only
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from rich.console import Console

from release_pilot import __version__
from release_pilot.cli.commands import ReleaseOptions, run_release, run_update
from release_pilot.cli.log import setup_logging
from release_pilot.presets import PRESETS

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-pilot",
        description="Semantic releases from conventional commits.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    update = subparsers.add_parser("update", help="Compute the next version and changelog")
    update.add_argument("--path", help="Project directory (default: current directory)")
    update.add_argument("--execute", action="store_true", help="Write the version and changelog")
    update.add_argument("--tag-prefix", help="Version tag prefix (default from config, 'v')")
    update.add_argument("--pre-release", action="store_true", help="Resolve against pre-release tags")

    release = subparsers.add_parser("release", help="Bump, publish and create the GitHub release")
    release.add_argument("preset", choices=sorted(PRESETS), help="Preset to use")
    release.add_argument("--path", help="Project directory (default: current directory)")
    release.add_argument(
        "--vsix-only",
        action="store_true",
        help="vscode-extension preset: attach vsix to release instead of publishing",
    )
    release.add_argument(
        "--force-use-version",
        action="store_true",
        help="Use the manifest version instead of resolving it from commit history",
    )
    release.add_argument(
        "--auto-update",
        action="store_true",
        help="Create a tag instead of a release",
    )
    release.add_argument("--pre-release", action="store_true", help="Use pre-release publishing")
    release.add_argument("--publish-prefix", help="Commit prefix required to publish, e.g. [publish]")
    release.add_argument("--tag-prefix", help="Version tag prefix (default from config, 'v')")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    console = Console()
    err_console = Console(stderr=True)
    setup_logging(verbose=args.verbose, console=err_console)

    if args.command == "update":
        run_update(
            path=args.path,
            execute=args.execute,
            tag_prefix=args.tag_prefix,
            pre_release=args.pre_release,
            console=console,
            err_console=err_console,
        )
    else:
        run_release(
            ReleaseOptions(
                preset=args.preset,
                path=args.path,
                vsix_only=args.vsix_only,
                force_use_version=args.force_use_version,
                auto_update=args.auto_update,
                pre_release=args.pre_release,
                publish_prefix=args.publish_prefix,
                tag_prefix=args.tag_prefix,
            ),
            console,
            err_console,
        )


if __name__ == "__main__":
    main()
