"""Version-control hosting integration."""

from __future__ import annotations

from release_pilot.vcs.github import GitHubClient, Release, Tag, split_repository

__all__ = ["GitHubClient", "Release", "Tag", "split_repository"]
