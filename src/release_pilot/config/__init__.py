"""Configuration management for release-pilot."""

from __future__ import annotations

from release_pilot.config.loader import load_config
from release_pilot.config.models import (
    ChangelogConfig,
    CommitsConfig,
    GitHubConfig,
    PresetsConfig,
    ReleasePilotConfig,
    VersionConfig,
)

__all__ = [
    "ChangelogConfig",
    "CommitsConfig",
    "GitHubConfig",
    "PresetsConfig",
    "ReleasePilotConfig",
    "VersionConfig",
    "load_config",
]
