"""Helpers shared by the CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from release_pilot.config import load_config
from release_pilot.config.loader import find_project_root
from release_pilot.core.bump import resolve_version_bump
from release_pilot.project import get_manifest_version

if TYPE_CHECKING:
    from release_pilot.config.models import ReleasePilotConfig
    from release_pilot.core.commits import ClassificationResult
    from release_pilot.vcs.github import GitHubClient


@dataclass(frozen=True)
class TagPrefixes:
    """Prefix used for the release tag, and the one to fall back to."""

    tag: str
    fallback: str | None


def load_project(path: str | None) -> tuple[Path, ReleasePilotConfig]:
    """Resolve the project directory and load its configuration."""
    project_path = find_project_root(Path(path) if path else None)
    return project_path, load_config(project_path)


def tag_prefixes(config: ReleasePilotConfig, *, tag_prefix: str | None, pre_release: bool) -> TagPrefixes:
    """Tag prefixes for a regular or pre-release run.

    Pre-releases look for their own tags first and fall back to regular
    release tags, so the first pre-release continues from the last release.
    """
    base = tag_prefix if tag_prefix is not None else config.version.tag_prefix
    if pre_release:
        return TagPrefixes(tag=f"{base}{config.version.pre_release_infix}", fallback=base)
    return TagPrefixes(tag=base, fallback=None)


def repository_url(config: ReleasePilotConfig, github: GitHubClient) -> str:
    return f"{config.github.server_url.rstrip('/')}/{github.owner}/{github.repo}"


def resolve(
    github: GitHubClient,
    project_path: Path,
    config: ReleasePilotConfig,
    prefixes: TagPrefixes,
) -> ClassificationResult:
    """Classify history since the last release of this project."""
    return resolve_version_bump(
        github,
        get_manifest_version(project_path),
        config,
        tag_prefix=prefixes.tag,
        fallback_prefix=prefixes.fallback,
        repo_url=repository_url(config, github),
    )
