"""Exception hierarchy for release-pilot.

Every error raised on purpose by the package derives from
:class:`ReleasePilotError`, so the CLI can report it and exit cleanly
while unexpected exceptions still surface with a traceback.
"""

from __future__ import annotations


class ReleasePilotError(Exception):
    """Base class for all release-pilot errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(ReleasePilotError):
    """Configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """No configuration source (pyproject.toml / package.json) was found."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


# =============================================================================
# Versions
# =============================================================================


class VersionError(ReleasePilotError):
    """Version handling failed."""


class InvalidVersionError(VersionError):
    """A version string (tag or manifest) is not a valid semantic version."""


# =============================================================================
# Project manifests
# =============================================================================


class ProjectError(ReleasePilotError):
    """Reading or updating the project manifest failed."""


class ManifestNotFoundError(ProjectError):
    """Neither package.json nor pyproject.toml exists in the project."""


class VersionNotFoundError(ProjectError):
    """The manifest has no version field."""


# =============================================================================
# GitHub
# =============================================================================


class GitHubError(ReleasePilotError):
    """Talking to the GitHub API failed."""


class GitHubAPIError(GitHubError):
    """GitHub answered with a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Presets
# =============================================================================


class PresetError(ReleasePilotError):
    """A publishing preset failed."""


class PresetCommandError(PresetError):
    """An external command run by a preset exited with an error."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr
