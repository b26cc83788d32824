"""Implementation of the 'release' command.

Runs the whole pipeline inside a GitHub Actions job: resolve the next
version, write it to the manifest, run the preset, then create the GitHub
release (or just a tag in auto-update mode).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.markup import escape

from release_pilot.cli.commands._common import load_project, repository_url, resolve, tag_prefixes
from release_pilot.core.changelog import RenderOptions, render_changelog
from release_pilot.core.version import Version
from release_pilot.exceptions import ReleasePilotError
from release_pilot.presets import PresetContext, get_preset
from release_pilot.project import get_manifest_version, get_package_name, update_manifest_version
from release_pilot.vcs.github import GitHubClient

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from release_pilot.config.models import ReleasePilotConfig
    from release_pilot.core.commits import ClassificationResult
    from release_pilot.presets.base import Preset, PresetResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseOptions:
    """Command line switches of ``release-pilot release``."""

    preset: str
    path: str | None = None
    vsix_only: bool = False
    force_use_version: bool = False
    auto_update: bool = False
    pre_release: bool = False
    publish_prefix: str | None = None
    tag_prefix: str | None = None


def run_release(
    options: ReleaseOptions,
    console: Console,
    err_console: Console,
    github: GitHubClient | None = None,
) -> None:
    """Run the release command.

    Args:
        options: Parsed command line options
        console: Console for standard output
        err_console: Console for error output
        github: Client to use instead of one built from the environment
    """
    if github is None and not os.environ.get("GITHUB_TOKEN"):
        err_console.print("[red]Error:[/] GITHUB_TOKEN is not set. Pass it via env from the GitHub Actions workflow.")
        raise SystemExit(1)

    try:
        preset = get_preset(options.preset)
        project_path, config = load_project(options.path)
        client = github or GitHubClient.from_env(config.github)
        with client:
            _release(options, preset, project_path, config, client, console)
    except ReleasePilotError as e:
        err_console.print(f"[red]Release failed:[/] {escape(str(e))}")
        raise SystemExit(1) from e


def _release(
    options: ReleaseOptions,
    preset: Preset,
    project_path: Path,
    config: ReleasePilotConfig,
    github: GitHubClient,
    console: Console,
) -> None:
    if options.auto_update:
        config = config.model_copy(update={"github_postaction": "tag"})
        logger.info("Auto-update mode: creating a tag instead of a release")
    publish_prefix = options.publish_prefix or config.publish_prefix
    prefixes = tag_prefixes(config, tag_prefix=options.tag_prefix, pre_release=options.pre_release)

    do_publish = True
    if publish_prefix:
        head = os.environ.get("GITHUB_SHA", "HEAD")
        do_publish = github.get_commit_message(head).startswith(publish_prefix)
        if not do_publish:
            console.print(f"[yellow]Head commit does not start with {escape(repr(publish_prefix))}, not publishing.[/]")

    result: ClassificationResult | None = None
    changelog: str | None = None
    if options.force_use_version:
        version = Version.parse(get_manifest_version(project_path))
        console.print(f"Using manifest version [green]{version}[/]")
    else:
        result = resolve(github, project_path, config, prefixes)
        if result.using_in_existing_env:
            console.print("[yellow]No previous tool usage found, all commits were considered.[/]")
        changelog = render_changelog(
            result.commits_by_rule,
            RenderOptions(
                bump_type=result.bump_type,
                package_name=get_package_name(project_path) if preset.name == "npm" else None,
                version=result.next_version,
            ),
            config.changelog,
        )
        version = result.next_version
        if version is None:
            console.print("[yellow]No next bumped version, no publishing...[/]")
            do_publish = False
        else:
            update_manifest_version(project_path, str(version))
            console.print(f"Next version: [green]{version}[/] ({result.bump_type})")

    presets_config = config.presets
    if options.vsix_only:
        presets_config = presets_config.model_copy(
            update={
                "vscode_extension": presets_config.vscode_extension.model_copy(
                    update={"attach_vsix": True, "publish_marketplace": False, "publish_ovsx": False}
                )
            }
        )

    console.print(f"Running preset [cyan]{preset.name}[/]")
    preset_result = preset.run(
        PresetContext(
            project_path=project_path,
            version=version,
            config=presets_config,
            do_publish=do_publish,
            pre_release=options.pre_release,
            repo_url=repository_url(config, github),
        )
    )

    if result is None or result.next_version is None or not do_publish:
        return

    tag_name = f"{prefixes.tag}{result.next_version}"
    if config.github_postaction == "release":
        _publish_release(github, tag_name, changelog or "", options.pre_release, preset_result, console)
    else:
        sha = result.latest_tag_commit_sha or os.environ.get("GITHUB_SHA")
        if not sha:
            console.print(f"[yellow]No commit to place {tag_name} on, skipping tag.[/]")
            return
        github.create_tag_ref(tag_name, sha)
        console.print(f"[green]✓[/] Created tag {tag_name}")


def _publish_release(
    github: GitHubClient,
    tag_name: str,
    body: str,
    pre_release: bool,
    preset_result: PresetResult,
    console: Console,
) -> None:
    release = github.create_release(tag_name, name=tag_name, body=body, prerelease=pre_release)
    for asset in preset_result.assets:
        github.upload_release_asset(release, asset.path, asset.name)
    console.print(f"[green]✓[/] Published release {release.html_url or tag_name}")
