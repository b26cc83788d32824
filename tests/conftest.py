"""Shared fixtures for release-pilot tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from release_pilot.core.commits import CommitRecord
from release_pilot.vcs.github import GitHubClient, Release, Tag

if TYPE_CHECKING:
    from pathlib import Path

REPO_URL = "https://github.com/user/repository"


def make_commits(*items: str | tuple[str, str]) -> list[CommitRecord]:
    """Build commit records from messages or ``(message, sha)`` pairs."""
    commits = []
    for item in items:
        if isinstance(item, str):
            commits.append(CommitRecord(sha="", message=item))
        else:
            message, sha = item
            commits.append(CommitRecord(sha=sha, message=message))
    return commits


class FakeHost:
    """In-memory tag lister and paginated commit history."""

    def __init__(self, tags: list[Tag], commits: list[CommitRecord]) -> None:
        self.tags = tags
        self.commits = commits
        self.pages_requested: list[int] = []

    def list_tags(self) -> list[Tag]:
        return list(self.tags)

    def list_commits(self, page: int = 1, per_page: int = 100) -> list[CommitRecord]:
        self.pages_requested.append(page)
        start = (page - 1) * per_page
        return self.commits[start : start + per_page]


@pytest.fixture
def fake_host_factory():
    """Create a FakeHost from tags and commit messages."""

    def _factory(tags: list[Tag], *items: str | tuple[str, str]) -> FakeHost:
        return FakeHost(tags, make_commits(*items))

    return _factory


@pytest.fixture
def mock_github() -> MagicMock:
    """GitHubClient double with one release tag ``v1.0.9`` at sha ``123``."""
    github = MagicMock(spec=GitHubClient)
    github.owner = "user"
    github.repo = "repository"
    github.list_tags.return_value = [Tag(name="v1.0.9", sha="123")]
    history = make_commits(
        ("feat: add dark mode", "a" * 40),
        ("fix: crash on empty config", "b" * 40),
        ("feat: should not be here", "123"),
    )
    github.list_commits.side_effect = lambda page=1, per_page=100: history if page == 1 else []
    github.create_release.return_value = Release(
        id=1,
        tag_name="v1.1.0",
        html_url="https://github.com/user/repository/releases/tag/v1.1.0",
        upload_url="https://uploads.github.com/repos/user/repository/releases/1/assets{?name,label}",
    )
    github.get_commit_message.return_value = "[publish] feat: add dark mode"
    return github


@pytest.fixture
def npm_project(tmp_path: Path) -> Path:
    """A package.json project with release-pilot config."""
    package = {
        "name": "my-package",
        "version": "1.0.9",
        "release": {"github": {"owner": "user", "repo": "repository"}},
    }
    (tmp_path / "package.json").write_text(json.dumps(package, indent=4) + "\n")
    return tmp_path


@pytest.fixture
def python_project(tmp_path: Path) -> Path:
    """A pyproject.toml project with a [tool.release-pilot] table."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
# keep this comment
version = "1.0.0"

[tool.release-pilot]
publish_prefix = "[publish]"

[tool.release-pilot.commits]
types_patch = ["fix", "perf"]
"""
    )
    return tmp_path
