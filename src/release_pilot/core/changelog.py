"""Changelog rendering.

Turns the buckets produced by :func:`release_pilot.core.commits.classify_commits`
into markdown. Sections always appear in the order breaking changes, new
features, bug fixes; empty buckets produce no heading at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from release_pilot.config.models import DEFAULT_SECTIONS, ChangelogConfig
from release_pilot.core.commits import RAW_OVERRIDE
from release_pilot.core.version import BumpType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from release_pilot.core.version import Version

SECTION_ORDER: tuple[BumpType, ...] = (BumpType.MAJOR, BumpType.MINOR, BumpType.PATCH)

CHANGELOG_HEADER = "# Changelog"


@dataclass(frozen=True)
class RenderOptions:
    """Per-release rendering inputs."""

    bump_type: BumpType | None = None
    package_name: str | None = None
    version: Version | str | None = None


def render_changelog(
    commits_by_rule: Mapping[str, list[str] | str],
    options: RenderOptions | None = None,
    config: ChangelogConfig | None = None,
) -> str:
    """Render classified commits as a markdown changelog.

    Args:
        commits_by_rule: Bucket name to rendered entry descriptions, or
            ``{"rawOverride": text}`` for an initial release
        options: Bump type and optional package annotation
        config: Section headings and footer template

    Returns:
        The changelog text (empty when there is nothing to release)
    """
    options = options or RenderOptions()
    config = config or ChangelogConfig()

    override = commits_by_rule.get(RAW_OVERRIDE)
    if override is not None:
        return str(override)

    if options.bump_type == BumpType.NONE:
        return ""

    sections: list[str] = []
    for bump in SECTION_ORDER:
        entries = commits_by_rule.get(bump.value)
        if not entries:
            continue
        heading = config.sections.get(bump.value, DEFAULT_SECTIONS[bump.value])
        items = "\n".join(f"- {description}" for description in entries)
        sections.append(f"{heading}\n\n{items}")

    body = "\n".join(sections)
    if body and options.package_name and options.version:
        footer = config.package_footer.format(name=options.package_name, version=options.version)
        body = f"{body}\n\n{footer}"
    return body


def format_release_heading(version: Version | str, date: datetime | None = None) -> str:
    """``## [1.2.0] - 2024-01-31`` heading for a CHANGELOG.md section."""
    date = date or datetime.now(UTC)
    return f"## [{version}] - {date.strftime('%Y-%m-%d')}"


def prepend_changelog(path: Path, version: Version | str, body: str, *, date: datetime | None = None) -> Path:
    """Insert a release section at the top of a changelog file.

    The ``# Changelog`` header is kept first; the file is created when it
    does not exist yet.

    Args:
        path: Changelog file
        version: Released version
        body: Rendered changelog for this release
        date: Release date (defaults to today, UTC)

    Returns:
        The path written
    """
    section = f"{format_release_heading(version, date)}\n\n{body.strip()}\n"

    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    rest = existing
    if existing.startswith(CHANGELOG_HEADER):
        rest = existing[len(CHANGELOG_HEADER) :].lstrip("\n")

    content = f"{CHANGELOG_HEADER}\n\n{section}"
    if rest.strip():
        content += f"\n{rest}"
    path.write_text(content, encoding="utf-8")
    return path
