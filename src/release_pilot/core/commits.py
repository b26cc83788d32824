"""Commit classification.

Commit messages are read line by line. Each line is first tagged by
:func:`classify_line` (entry start, BREAKING marker, ignored block,
continuation, blank) and the tagged lines drive a small state machine in
:class:`MessageParser` that accumulates :class:`Entry` objects. A single
commit may therefore yield several entries, e.g.::

    fix: handle empty config
    feat(cli): add --dry-run
    BREAKING the --force flag is gone

produces a patch entry and a major entry scoped to ``cli``.

:func:`classify_commits` runs the parser over every commit newer than the
last release and derives the bump type and next version.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from release_pilot.config.models import CommitsConfig
from release_pilot.core.version import BumpType, Version, max_bump

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

RAW_OVERRIDE = "rawOverride"
SHORT_SHA_LENGTH = 7

_ENTRY_START_RE = re.compile(
    r"^(?:\[[^\]]*\]\s*)*"
    r"(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<breaking>!)?"
    r":\s+(?P<description>\S.*)$"
)
_BREAKING_RE = re.compile(r"^BREAKING(?:[ -]CHANGES?)?(?=$|[\s:])\s*:?\s*(?P<text>.*)$")
_TRAILING_ISSUES_RE = re.compile(r"\s*\((?P<refs>#\d+(?:\s*,\s*#\d+)*)\)\s*$")
_ISSUE_NUMBER_RE = re.compile(r"#(\d+)")


@dataclass(frozen=True)
class CommitRecord:
    """A commit as returned by the hosting API."""

    sha: str
    message: str


# =============================================================================
# Line grammar
# =============================================================================


class LineKind(Enum):
    """What a single message line means to the parser."""

    ENTRY_START = "entry_start"
    BREAKING = "breaking"
    IGNORED_BLOCK = "ignored_block"
    CONTINUATION = "continuation"
    BLANK = "blank"


@dataclass(frozen=True)
class TaggedLine:
    """A message line after classification."""

    kind: LineKind
    text: str = ""
    bump: BumpType = BumpType.NONE
    scope: str | None = None
    commit_type: str | None = None


@dataclass(frozen=True)
class CommitRules:
    """Compiled form of :class:`CommitsConfig` used by the parser."""

    severities: dict[str, BumpType]
    ignored_types: frozenset[str]
    unknown_types_open_block: bool
    inline_issue_re: re.Pattern[str] | None

    @classmethod
    def from_config(cls, config: CommitsConfig) -> CommitRules:
        severities: dict[str, BumpType] = {}
        # Lowest first so a type listed twice keeps its strongest bump.
        for bump, types in (
            (BumpType.PATCH, config.types_patch),
            (BumpType.MINOR, config.types_minor),
            (BumpType.MAJOR, config.types_major),
        ):
            for commit_type in types:
                severities[commit_type] = bump

        inline = None
        if config.issue_keywords:
            keywords = "|".join(sorted((re.escape(k) for k in config.issue_keywords), key=len, reverse=True))
            inline = re.compile(rf"\s*\b(?:{keywords})\s+#(\d+)\b", re.IGNORECASE)
        return cls(
            severities=severities,
            ignored_types=frozenset(config.ignored_types),
            unknown_types_open_block=config.unknown_types_open_block,
            inline_issue_re=inline,
        )

    def severity_of(self, commit_type: str) -> BumpType:
        """Look up the bump for a commit type; NONE means "not an entry"."""
        return self.severities.get(commit_type.lower(), BumpType.NONE)


def classify_line(line: str, rules: CommitRules) -> TaggedLine:
    """Tag one line of a commit message.

    Args:
        line: Raw line without the trailing newline
        rules: Compiled classification rules

    Returns:
        The tagged line; ``text`` holds the payload relevant to its kind
    """
    stripped = line.strip()
    if not stripped:
        return TaggedLine(LineKind.BLANK)

    breaking = _BREAKING_RE.match(stripped)
    if breaking:
        return TaggedLine(LineKind.BREAKING, text=breaking.group("text").strip())

    start = _ENTRY_START_RE.match(stripped)
    if start:
        commit_type = start.group("type").lower()
        bump = rules.severity_of(commit_type)
        if bump != BumpType.NONE:
            if start.group("breaking"):
                bump = BumpType.MAJOR
            scope = (start.group("scope") or "").strip() or None
            return TaggedLine(
                LineKind.ENTRY_START,
                text=start.group("description").strip(),
                bump=bump,
                scope=scope,
            )
        if commit_type in rules.ignored_types or rules.unknown_types_open_block:
            return TaggedLine(LineKind.IGNORED_BLOCK, text=stripped, commit_type=commit_type)

    return TaggedLine(LineKind.CONTINUATION, text=line.rstrip())


def extract_issues(text: str, rules: CommitRules) -> tuple[str, list[int]]:
    """Strip issue references from ``text``.

    Handles a trailing ``(#12, #34)`` group and inline phrases such as
    ``closes #12``.

    Returns:
        The remaining text (right-stripped) and the issue numbers in order
    """
    issues: list[int] = []

    trailing = _TRAILING_ISSUES_RE.search(text)
    if trailing:
        issues.extend(int(n) for n in _ISSUE_NUMBER_RE.findall(trailing.group("refs")))
        text = text[: trailing.start()]

    inline: list[int] = []

    def _collect(match: re.Match[str]) -> str:
        inline.append(int(match.group(1)))
        return ""

    if rules.inline_issue_re is not None:
        text = rules.inline_issue_re.sub(_collect, text)
    return text.rstrip(), inline + issues


# =============================================================================
# Entries and the message state machine
# =============================================================================


@dataclass(frozen=True)
class Entry:
    """One logical change extracted from a commit message."""

    bump: BumpType
    description: str
    scope: str | None = None
    issues: tuple[int, ...] = ()
    sha: str = ""


@dataclass
class _OpenEntry:
    bump: BumpType
    scope: str | None
    breaking: bool = False
    lines: list[str] = field(default_factory=list)
    issues: list[int] = field(default_factory=list)

    def add(self, text: str, rules: CommitRules) -> None:
        cleaned, issues = extract_issues(text, rules)
        self.lines.append(cleaned if self.lines else cleaned.strip())
        for number in issues:
            if number not in self.issues:
                self.issues.append(number)

    def close(self, sha: str) -> Entry:
        return Entry(
            bump=self.bump,
            description="\n".join(self.lines).strip("\n"),
            scope=self.scope,
            issues=tuple(self.issues),
            sha=sha,
        )


class _State(Enum):
    NO_OPEN_ENTRY = "no_open_entry"
    OPEN_ENTRY = "open_entry"
    IGNORED_BLOCK = "ignored_block"


class MessageParser:
    """Accumulates entries from the lines of a single commit message."""

    def __init__(self, rules: CommitRules, sha: str = "") -> None:
        self._rules = rules
        self._sha = sha
        self._state = _State.NO_OPEN_ENTRY
        self._current: _OpenEntry | None = None
        self._entries: list[Entry] = []

    def feed(self, line: str) -> None:
        tagged = classify_line(line, self._rules)

        if tagged.kind == LineKind.ENTRY_START:
            self._flush()
            self._current = _OpenEntry(bump=tagged.bump, scope=tagged.scope)
            self._current.add(tagged.text, self._rules)
            self._state = _State.OPEN_ENTRY
        elif tagged.kind == LineKind.IGNORED_BLOCK and not self._keeps_line(tagged):
            self._flush()
            self._state = _State.IGNORED_BLOCK
        elif self._state != _State.OPEN_ENTRY or self._current is None:
            return
        elif tagged.kind == LineKind.BREAKING:
            self._current.bump = BumpType.MAJOR
            self._current.breaking = True
            if tagged.text:
                self._current.add(tagged.text, self._rules)
        elif tagged.kind == LineKind.CONTINUATION:
            self._current.add(tagged.text, self._rules)
        elif tagged.kind == LineKind.IGNORED_BLOCK:
            self._current.add(line.rstrip(), self._rules)

    def _keeps_line(self, tagged: TaggedLine) -> bool:
        # Bodies after a BREAKING marker keep "Migration: ..." style lines;
        # only configured ignored types end them.
        return (
            self._state == _State.OPEN_ENTRY
            and self._current is not None
            and self._current.breaking
            and tagged.commit_type not in self._rules.ignored_types
        )

    def finish(self) -> list[Entry]:
        """Close the open entry and return everything collected."""
        self._flush()
        self._state = _State.NO_OPEN_ENTRY
        return self._entries

    def _flush(self) -> None:
        if self._current is not None:
            self._entries.append(self._current.close(self._sha))
            self._current = None


def parse_message(message: str, rules: CommitRules, sha: str = "") -> list[Entry]:
    """Extract all entries from one commit message."""
    parser = MessageParser(rules, sha)
    for line in message.splitlines():
        parser.feed(line)
    return parser.finish()


def render_entry(entry: Entry, repo_url: str | None = None, *, link_commit: bool = False) -> str:
    """Render an entry as changelog text.

    Args:
        entry: Entry to render
        repo_url: Repository web URL used for the commit link
        link_commit: Append a link to the entry's commit

    Returns:
        ``**scope**: description (#1, #2) [`abc1234`](url)`` with the
        optional parts omitted when absent
    """
    text = entry.description
    if entry.scope:
        text = f"**{entry.scope}**: {text}"
    if entry.issues:
        text += " (" + ", ".join(f"#{n}" for n in entry.issues) + ")"
    if link_commit and entry.sha and repo_url:
        short = entry.sha[:SHORT_SHA_LENGTH]
        text += f" [`{short}`]({repo_url.rstrip('/')}/commit/{entry.sha})"
    return text


# =============================================================================
# Classification
# =============================================================================


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying the commits since the last release."""

    bump_type: BumpType
    next_version: Version | None
    commits_by_rule: dict[str, list[str] | str] = field(default_factory=dict)
    using_in_existing_env: bool = False
    latest_tag_commit_sha: str | None = None

    @property
    def is_initial_release(self) -> bool:
        return RAW_OVERRIDE in self.commits_by_rule


def filter_skip_release_commits(commits: Iterable[CommitRecord], patterns: Sequence[str]) -> list[CommitRecord]:
    """Drop commits whose message contains a skip-release marker.

    Matching is case-insensitive and looks at the whole message.
    """
    if not patterns:
        return list(commits)
    lowered = [p.lower() for p in patterns]
    return [c for c in commits if not any(p in c.message.lower() for p in lowered)]


def calculate_bump(entries: Iterable[Entry]) -> BumpType:
    """Highest bump among ``entries``."""
    return max_bump(*(e.bump for e in entries))


def effective_bump(bump: BumpType, version: Version, config: CommitsConfig) -> BumpType:
    """Apply the pre-1.0 downgrade rules to a raw bump.

    While the major version is 0, breaking changes only bump the minor
    component; with ``unstable_minor_as_patch`` features only bump patch.
    """
    if version.is_stable:
        return bump
    if bump == BumpType.MAJOR:
        return BumpType.MINOR
    if bump == BumpType.MINOR and config.unstable_minor_as_patch:
        return BumpType.PATCH
    return bump


def collect_since_cutoff(commits: Sequence[CommitRecord], cutoff_sha: str) -> tuple[list[CommitRecord], bool]:
    """Return the commits newer than ``cutoff_sha`` and whether it was seen."""
    collected: list[CommitRecord] = []
    for commit in commits:
        if commit.sha and commit.sha == cutoff_sha:
            return collected, True
        collected.append(commit)
    return collected, False


def classify_commits(
    commits: Sequence[CommitRecord],
    current_version: Version,
    *,
    cutoff_sha: str | None,
    repo_url: str | None = None,
    config: CommitsConfig | None = None,
) -> ClassificationResult:
    """Classify commits newer than the last release.

    Args:
        commits: Commit history, newest first
        current_version: Version of the last release (or the manifest
            version when there is none); decides stability
        cutoff_sha: Commit of the last release tag, ``None`` when the
            project has never been released
        repo_url: Repository web URL for commit links
        config: Commit classification settings

    Returns:
        Bump type, next version and the rendered entries per bucket
    """
    config = config or CommitsConfig()
    head_sha = next((c.sha for c in commits if c.sha), None)

    if cutoff_sha is None:
        logger.info("No previous release tag, treating as initial release")
        return ClassificationResult(
            bump_type=BumpType.NONE,
            next_version=current_version.bump(BumpType.PATCH),
            commits_by_rule={RAW_OVERRIDE: config.initial_release_message},
            latest_tag_commit_sha=head_sha,
        )

    eligible, found_cutoff = collect_since_cutoff(commits, cutoff_sha)
    if not found_cutoff:
        logger.info("Tag commit %s not found in history, using all %d commits", cutoff_sha, len(eligible))
    eligible = filter_skip_release_commits(eligible, config.skip_release_patterns)

    rules = CommitRules.from_config(config)
    buckets: dict[str, list[str]] = {}
    entries: list[Entry] = []
    linked: set[str] = set()

    for commit in eligible:
        commit_entries = parse_message(commit.message, rules, commit.sha)
        for index, entry in enumerate(commit_entries):
            link = index == 0 and bool(entry.sha) and entry.sha not in linked
            if link:
                linked.add(entry.sha)
            buckets.setdefault(entry.bump.value, []).append(render_entry(entry, repo_url, link_commit=link))
        entries.extend(commit_entries)

    raw_bump = calculate_bump(entries)
    bump = effective_bump(raw_bump, current_version, config)
    next_version = None if bump == BumpType.NONE else current_version.bump(bump)
    logger.debug(
        "Classified %d commits into %d entries: raw bump %s, effective bump %s",
        len(eligible),
        len(entries),
        raw_bump,
        bump,
    )

    return ClassificationResult(
        bump_type=bump,
        next_version=next_version,
        commits_by_rule=dict(buckets),
        using_in_existing_env=not found_cutoff,
        latest_tag_commit_sha=head_sha,
    )
