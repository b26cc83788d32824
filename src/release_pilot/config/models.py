"""Pydantic models for release-pilot configuration.

All sections have defaults, so an empty ``[tool.release-pilot]`` table
(or none at all) yields a working configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

INITIAL_RELEASE_MESSAGE = "🎉 Initial release"

DEFAULT_SECTIONS = {
    "major": "## BREAKING CHANGES",
    "minor": "### New Features",
    "patch": "### Bug Fixes",
}


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CommitsConfig(_Section):
    """How commit messages map to version bumps."""

    types_major: list[str] = Field(default_factory=list)
    types_minor: list[str] = Field(default_factory=lambda: ["feat"])
    types_patch: list[str] = Field(default_factory=lambda: ["fix"])

    # Prefix types whose body is dropped from the changelog entirely.
    ignored_types: list[str] = Field(default_factory=lambda: ["test"])
    unknown_types_open_block: bool = True

    issue_keywords: list[str] = Field(
        default_factory=lambda: [
            "close",
            "closes",
            "closed",
            "fix",
            "fixes",
            "fixed",
            "resolve",
            "resolves",
            "resolved",
        ]
    )
    skip_release_patterns: list[str] = Field(
        default_factory=lambda: ["[skip release]", "[release skip]", "[no release]"]
    )

    # 0.x versions: treat features like fixes.
    unstable_minor_as_patch: bool = False
    initial_release_message: str = INITIAL_RELEASE_MESSAGE

    @field_validator("types_major", "types_minor", "types_patch", "ignored_types")
    @classmethod
    def _lowercase_types(cls, value: list[str]) -> list[str]:
        return [item.strip().lower() for item in value if item.strip()]


class ChangelogConfig(_Section):
    """Changelog rendering and file output."""

    enabled: bool = True
    path: Path = Path("CHANGELOG.md")
    # Partial tables only override the headings they name.
    sections: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SECTIONS))
    package_footer: str = "📦 [`{name}@{version}`](https://www.npmjs.com/package/{name}/v/{version})"

    @field_validator("sections")
    @classmethod
    def _known_buckets(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = set(value) - {"major", "minor", "patch"}
        if unknown:
            raise ValueError(f"unknown changelog sections: {', '.join(sorted(unknown))}")
        return {**DEFAULT_SECTIONS, **value}


class VersionConfig(_Section):
    """Tag naming."""

    tag_prefix: str = "v"
    # Inserted after tag_prefix for pre-release tags, e.g. "vpre-1.2.0".
    pre_release_infix: str = "pre-"


class GitHubConfig(_Section):
    """GitHub repository and API settings."""

    owner: str | None = None
    repo: str | None = None
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    page_size: int = Field(default=100, ge=1, le=100)


class NpmPresetConfig(_Section):
    """Options for the npm preset."""

    access: Literal["public", "restricted"] | None = None
    pre_release_dist_tag: str = "next"


class VscodeExtensionPresetConfig(_Section):
    """Options for the vscode-extension preset."""

    publish_marketplace: bool = True
    publish_ovsx: bool = False
    attach_vsix: bool = False
    size_limit: int = 3 * 1024 * 1024


class PresetsConfig(_Section):
    """Per-preset settings."""

    npm: NpmPresetConfig = Field(default_factory=NpmPresetConfig)
    vscode_extension: VscodeExtensionPresetConfig = Field(
        default_factory=VscodeExtensionPresetConfig, alias="vscode-extension"
    )


class ReleasePilotConfig(_Section):
    """Root configuration object."""

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    presets: PresetsConfig = Field(default_factory=PresetsConfig)

    # Only publish when the head commit message starts with this prefix.
    publish_prefix: str | None = None
    github_postaction: Literal["release", "tag"] = "release"
