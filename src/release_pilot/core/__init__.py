"""Core business logic for release-pilot.

This module contains the fundamental building blocks:
- Semantic version parsing and bumping
- Commit message classification into severity buckets
- Changelog rendering
- Version resolution against the hosting service's history
"""

from __future__ import annotations

from release_pilot.core.bump import fetch_commits_since, find_latest_tag, resolve_version_bump
from release_pilot.core.changelog import RenderOptions, prepend_changelog, render_changelog
from release_pilot.core.commits import (
    RAW_OVERRIDE,
    ClassificationResult,
    CommitRecord,
    Entry,
    calculate_bump,
    classify_commits,
    filter_skip_release_commits,
    parse_message,
)
from release_pilot.core.version import BumpType, Version, max_bump, parse_version

__all__ = [
    "RAW_OVERRIDE",
    # Version
    "BumpType",
    # Commits
    "ClassificationResult",
    "CommitRecord",
    "Entry",
    # Changelog
    "RenderOptions",
    "Version",
    "calculate_bump",
    "classify_commits",
    # Resolution
    "fetch_commits_since",
    "filter_skip_release_commits",
    "find_latest_tag",
    "max_bump",
    "parse_message",
    "parse_version",
    "prepend_changelog",
    "render_changelog",
    "resolve_version_bump",
]
