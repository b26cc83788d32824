"""Resolve the next version from the hosting service's history.

This is the I/O side of classification: it picks the last release tag,
pages through commit history until that tag's commit shows up, and hands
everything to :func:`release_pilot.core.commits.classify_commits`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from release_pilot.config.models import ReleasePilotConfig
from release_pilot.core.commits import classify_commits
from release_pilot.core.version import Version

if TYPE_CHECKING:
    from collections.abc import Sequence

    from release_pilot.core.commits import ClassificationResult, CommitRecord
    from release_pilot.vcs.github import Tag

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class TagLister(Protocol):
    def list_tags(self) -> list[Tag]: ...


class CommitHistory(Protocol):
    def list_commits(self, page: int = 1, per_page: int = DEFAULT_PAGE_SIZE) -> list[CommitRecord]: ...


class ReleaseHost(TagLister, CommitHistory, Protocol):
    """Anything that can list tags and page through commits."""


def find_latest_tag(tags: Sequence[Tag], prefix: str, fallback_prefix: str | None = None) -> Tag | None:
    """Pick the most recent release tag.

    ``tags`` are expected newest first. The first tag made of ``prefix``
    followed by a digit wins; if none matches, ``fallback_prefix`` is tried.

    Raises:
        InvalidVersionError: If the selected tag is not ``<prefix><semver>``
    """
    for candidate in (prefix, fallback_prefix):
        if candidate is None:
            continue
        for tag in tags:
            remainder = tag.name[len(candidate) :]
            if tag.name.startswith(candidate) and remainder[:1].isdigit():
                # Validate eagerly so a bad tag fails before any history is fetched.
                Version.parse(remainder)
                return tag
    return None


def tag_version(tag: Tag, prefix: str, fallback_prefix: str | None = None) -> Version:
    """Version encoded in ``tag`` after removing its prefix."""
    for candidate in (prefix, fallback_prefix):
        if candidate is not None and tag.name.startswith(candidate):
            return Version.parse(tag.name[len(candidate) :])
    return Version.parse(tag.name)


def fetch_commits_since(
    history: CommitHistory,
    cutoff_sha: str | None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[CommitRecord]:
    """Fetch commit pages until the cutoff commit or the end of history.

    Pages are requested one at a time. The page that contains
    ``cutoff_sha`` is returned in full; the classifier drops the cutoff
    commit and everything after it.
    """
    commits: list[CommitRecord] = []
    page = 1
    while True:
        batch = history.list_commits(page=page, per_page=page_size)
        commits.extend(batch)
        if cutoff_sha and any(c.sha == cutoff_sha for c in batch):
            logger.debug("Found tag commit %s on page %d", cutoff_sha, page)
            break
        if len(batch) < page_size:
            break
        page += 1
    return commits


def resolve_version_bump(
    host: ReleaseHost,
    manifest_version: str,
    config: ReleasePilotConfig | None = None,
    *,
    tag_prefix: str | None = None,
    fallback_prefix: str | None = None,
    repo_url: str | None = None,
) -> ClassificationResult:
    """Compute the next version and changelog buckets.

    Args:
        host: Source of tags and commits
        manifest_version: Version from package.json / pyproject.toml,
            used when the project has no release tag yet
        config: Configuration (defaults when omitted)
        tag_prefix: Prefix of release tags (``config.version.tag_prefix``)
        fallback_prefix: Prefix tried when no ``tag_prefix`` tag exists
        repo_url: Repository web URL for commit links

    Returns:
        Classification result

    Raises:
        InvalidVersionError: If the tag or manifest version is malformed
        GitHubAPIError: If fetching tags or commits fails
    """
    config = config or ReleasePilotConfig()
    prefix = tag_prefix if tag_prefix is not None else config.version.tag_prefix

    latest_tag = find_latest_tag(host.list_tags(), prefix, fallback_prefix)
    if latest_tag is None:
        current = Version.parse(manifest_version)
        return classify_commits([], current, cutoff_sha=None, repo_url=repo_url, config=config.commits)

    current = tag_version(latest_tag, prefix, fallback_prefix)
    logger.info("Latest release tag %s (%s)", latest_tag.name, latest_tag.sha[:7])

    commits = fetch_commits_since(host, latest_tag.sha, config.github.page_size)
    return classify_commits(
        commits,
        current,
        cutoff_sha=latest_tag.sha,
        repo_url=repo_url,
        config=config.commits,
    )
