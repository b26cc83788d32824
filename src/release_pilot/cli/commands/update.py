"""Implementation of the 'update' command.

The update command computes the next version from GitHub history and,
with ``--execute``, writes it to the manifest and prepends CHANGELOG.md.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from release_pilot.cli.commands._common import load_project, resolve, tag_prefixes
from release_pilot.core.changelog import RenderOptions, prepend_changelog, render_changelog
from release_pilot.exceptions import ReleasePilotError
from release_pilot.project import update_manifest_version
from release_pilot.vcs.github import GitHubClient

if TYPE_CHECKING:
    from rich.console import Console


def run_update(
    path: str | None,
    execute: bool,
    tag_prefix: str | None,
    pre_release: bool,
    console: Console,
    err_console: Console,
    github: GitHubClient | None = None,
) -> None:
    """Run the update command.

    Args:
        path: Optional path to project directory
        execute: Whether to actually apply changes
        tag_prefix: Override for the release tag prefix
        pre_release: Resolve against pre-release tags
        console: Console for standard output
        err_console: Console for error output
        github: Client to use instead of one built from the environment
    """
    try:
        project_path, config = load_project(path)
    except ReleasePilotError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    prefixes = tag_prefixes(config, tag_prefix=tag_prefix, pre_release=pre_release)
    try:
        client = github or GitHubClient.from_env(config.github)
        with client:
            result = resolve(client, project_path, config, prefixes)
    except ReleasePilotError as e:
        err_console.print(f"[red]Error resolving version:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if result.using_in_existing_env:
        console.print("[yellow]Last release tag not found in history, all commits were considered.[/]")

    if result.next_version is None:
        console.print("[yellow]No releasable changes found since the last release. Nothing to do.[/]")
        return

    changelog = render_changelog(
        result.commits_by_rule,
        RenderOptions(bump_type=result.bump_type),
        config.changelog,
    )

    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    if result.is_initial_release:
        console.print(f"\n{mode_str} - 🎉 First release! Setting version to [green]{result.next_version}[/]\n")
    else:
        console.print(
            f"\n{mode_str} - [cyan]{result.bump_type}[/] bump to [green]{result.next_version}[/]\n"
        )
    body = Text(changelog) if changelog else Text("(empty)", style="dim")
    console.print(Panel(body, title="Changelog", border_style="cyan"))

    if not execute:
        changelog_line = (
            f"\n  • Prepend changelog to [cyan]{config.changelog.path}[/]" if config.changelog.enabled else ""
        )
        console.print(
            Panel(
                "[bold]Would make the following changes:[/]\n\n"
                f"  • Update version in the project manifest{changelog_line}",
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    try:
        manifest = update_manifest_version(project_path, str(result.next_version))
        console.print(f"  [green]✓[/] Updated version in {manifest.name}")
    except ReleasePilotError as e:
        err_console.print(f"[red]Error updating manifest:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if config.changelog.enabled:
        changelog_path = project_path / config.changelog.path
        prepend_changelog(changelog_path, result.next_version, changelog)
        console.print(f"  [green]✓[/] Updated {config.changelog.path}")

    console.print(
        Panel(
            f"[green]Successfully updated to version {result.next_version}![/]\n\n"
            "Next steps:\n"
            "  1. Review the changes\n"
            f"  2. Commit: [cyan]git add . && git commit -m 'chore(release): {result.next_version}'[/]\n"
            "  3. Release: [cyan]release-pilot release <preset>[/]",
            title="[green]Update Complete[/]",
            border_style="green",
        )
    )
