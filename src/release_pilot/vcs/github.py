"""Minimal GitHub REST client.

Only the endpoints the release flow needs: tags, paginated commit
history, releases with assets, and tag refs. Errors are raised to the
caller as :class:`GitHubAPIError`; nothing is retried here.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from release_pilot.core.commits import CommitRecord
from release_pilot.exceptions import GitHubAPIError, GitHubError

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from release_pilot.config.models import GitHubConfig

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class Tag:
    """A git tag and the commit it points to."""

    name: str
    sha: str


@dataclass(frozen=True)
class Release:
    """A created GitHub release."""

    id: int
    tag_name: str
    html_url: str
    upload_url: str


def split_repository(value: str) -> tuple[str, str]:
    """Split ``owner/repo`` (as in ``GITHUB_REPOSITORY``)."""
    owner, sep, repo = value.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise GitHubError(f"Expected repository as 'owner/repo', got {value!r}")
    return owner, repo


class GitHubClient:
    """Client for the parts of the GitHub REST API used by releases."""

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            owner: Repository owner
            repo: Repository name
            token: Token sent as bearer authorization
            api_url: API root, override for GitHub Enterprise
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        self.owner = owner
        self.repo = repo
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "release-pilot",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls, config: GitHubConfig, *, transport: httpx.BaseTransport | None = None) -> GitHubClient:
        """Build a client from configuration plus ``GITHUB_*`` variables.

        ``[github] owner/repo`` take precedence over ``GITHUB_REPOSITORY``.
        """
        owner, repo = config.owner, config.repo
        if not owner or not repo:
            repository = os.environ.get("GITHUB_REPOSITORY")
            if not repository:
                raise GitHubError("Repository unknown: set GITHUB_REPOSITORY or [github] owner and repo")
            owner, repo = split_repository(repository)
        return cls(
            owner,
            repo,
            token=os.environ.get("GITHUB_TOKEN"),
            api_url=config.api_url,
            transport=transport,
        )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        if response.is_error:
            message = response.text
            try:
                message = response.json().get("message", message)
            except ValueError:
                pass
            raise GitHubAPIError(
                f"{method} {url} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        return response.json()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_tags(self, per_page: int = 100) -> list[Tag]:
        """All tags of the repository, newest first as GitHub orders them."""
        tags: list[Tag] = []
        page = 1
        while True:
            data = self._request("GET", f"{self.repo_path}/tags", params={"per_page": per_page, "page": page})
            tags.extend(Tag(name=item["name"], sha=item["commit"]["sha"]) for item in data)
            if len(data) < per_page:
                return tags
            page += 1

    def list_commits(self, page: int = 1, per_page: int = 100, *, sha: str | None = None) -> list[CommitRecord]:
        """One page of commit history, newest first."""
        params: dict[str, Any] = {"per_page": per_page, "page": page}
        if sha:
            params["sha"] = sha
        data = self._request("GET", f"{self.repo_path}/commits", params=params)
        logger.debug("Fetched commits page %d (%d items)", page, len(data))
        return [CommitRecord(sha=item.get("sha", ""), message=item["commit"]["message"]) for item in data]

    def get_commit_message(self, ref: str) -> str:
        """Message of the commit ``ref`` points to."""
        data = self._request("GET", f"{self.repo_path}/commits/{ref}")
        return data["commit"]["message"]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_release(self, tag_name: str, *, name: str | None = None, body: str = "", prerelease: bool = False) -> Release:
        """Create a release (and its tag, at the default branch head)."""
        data = self._request(
            "POST",
            f"{self.repo_path}/releases",
            json={
                "tag_name": tag_name,
                "name": name or tag_name,
                "body": body,
                "prerelease": prerelease,
            },
        )
        logger.info("Created release %s", data.get("html_url", tag_name))
        return Release(
            id=data["id"],
            tag_name=data.get("tag_name", tag_name),
            html_url=data.get("html_url", ""),
            upload_url=data.get("upload_url", ""),
        )

    def upload_release_asset(self, release: Release, path: Path, name: str | None = None) -> None:
        """Attach a file to a release."""
        name = name or path.name
        upload_url = release.upload_url.split("{", 1)[0]
        if not upload_url:
            raise GitHubError(f"Release {release.tag_name} has no upload URL")
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        self._request(
            "POST",
            upload_url,
            params={"name": name},
            content=path.read_bytes(),
            headers={"Content-Type": content_type},
        )
        logger.info("Uploaded asset %s", name)

    def create_tag_ref(self, tag_name: str, sha: str) -> None:
        """Create a lightweight tag pointing at ``sha``."""
        self._request(
            "POST",
            f"{self.repo_path}/git/refs",
            json={"ref": f"refs/tags/{tag_name}", "sha": sha},
        )
        logger.info("Created tag %s at %s", tag_name, sha[:7])
