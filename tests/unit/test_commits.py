"""Tests for commit message parsing and classification."""

from __future__ import annotations

import pytest
from conftest import REPO_URL, make_commits

from release_pilot.config.models import CommitsConfig
from release_pilot.core.commits import (
    RAW_OVERRIDE,
    CommitRecord,
    CommitRules,
    Entry,
    LineKind,
    calculate_bump,
    classify_commits,
    classify_line,
    effective_bump,
    extract_issues,
    filter_skip_release_commits,
    parse_message,
    render_entry,
)
from release_pilot.core.version import BumpType, Version

SHA = "7f8468286354936e8817607d7a2087715bbe1854"
SHA_LINK = f"[`7f84682`]({REPO_URL}/commit/{SHA})"


@pytest.fixture
def rules() -> CommitRules:
    return CommitRules.from_config(CommitsConfig())


def classify_since_tag(
    items: list[str | tuple[str, str]],
    version: str = "0.0.9",
    config: CommitsConfig | None = None,
):
    """Classify ``items`` followed by the tag commit ``123`` and an older commit."""
    commits = make_commits(*items, ("feat: should not be here", "123"), "feat: older than the tag")
    return classify_commits(
        commits,
        Version.parse(version),
        cutoff_sha="123",
        repo_url=REPO_URL,
        config=config,
    )


class TestClassifyLine:
    """Tests for classify_line()."""

    def test_entry_start(self, rules: CommitRules):
        """feat: starts a minor entry."""
        line = classify_line("feat: add new feature", rules)

        assert line.kind == LineKind.ENTRY_START
        assert line.bump == BumpType.MINOR
        assert line.scope is None
        assert line.text == "add new feature"

    def test_entry_start_with_scope(self, rules: CommitRules):
        """Scope is captured separately."""
        line = classify_line("fix(library-action): first fixes", rules)

        assert line.bump == BumpType.PATCH
        assert line.scope == "library-action"
        assert line.text == "first fixes"

    def test_bracket_tag_is_stripped(self, rules: CommitRules):
        """Leading [tag] does not prevent recognition."""
        line = classify_line("[publish] feat: just adding feature", rules)

        assert line.kind == LineKind.ENTRY_START
        assert line.text == "just adding feature"

    def test_exclamation_marks_major(self, rules: CommitRules):
        """type!: is a breaking change."""
        line = classify_line("feat(core)!: change config format", rules)

        assert line.kind == LineKind.ENTRY_START
        assert line.bump == BumpType.MAJOR
        assert line.scope == "core"

    def test_type_is_case_insensitive(self, rules: CommitRules):
        """FEAT: is still a feature."""
        assert classify_line("FEAT: uppercase", rules).bump == BumpType.MINOR

    @pytest.mark.parametrize(
        ("line", "text"),
        [
            ("BREAKING", ""),
            ("BREAKING config was removed", "config was removed"),
            ("BREAKING: config was removed", "config was removed"),
            ("BREAKING CHANGE: old API removed", "old API removed"),
        ],
    )
    def test_breaking_marker(self, rules: CommitRules, line: str, text: str):
        """BREAKING with optional colon and text."""
        tagged = classify_line(line, rules)

        assert tagged.kind == LineKind.BREAKING
        assert tagged.text == text

    def test_breaking_needs_word_boundary(self, rules: CommitRules):
        """BREAKINGS is plain text."""
        assert classify_line("BREAKINGS happen", rules).kind == LineKind.CONTINUATION

    def test_ignored_type_opens_block(self, rules: CommitRules):
        """test: lines start an ignored block."""
        assert classify_line("test: Fix tests", rules).kind == LineKind.IGNORED_BLOCK

    def test_unknown_type_opens_block(self, rules: CommitRules):
        """Unrecognized word: prefixes start an ignored block by default."""
        assert classify_line("Note: yes, we are!", rules).kind == LineKind.IGNORED_BLOCK

    def test_unknown_type_as_continuation_when_disabled(self):
        """With unknown_types_open_block off, Note: is a continuation."""
        rules = CommitRules.from_config(CommitsConfig(unknown_types_open_block=False))

        assert classify_line("Note: yes, we are!", rules).kind == LineKind.CONTINUATION
        assert classify_line("test: Fix tests", rules).kind == LineKind.IGNORED_BLOCK

    def test_wip_prefix_is_not_an_entry(self, rules: CommitRules):
        """WIP fix: is free text."""
        assert classify_line("WIP fix: first fixes", rules).kind == LineKind.CONTINUATION

    def test_blank(self, rules: CommitRules):
        """Whitespace-only lines are blank."""
        assert classify_line("   ", rules).kind == LineKind.BLANK

    def test_custom_major_type(self):
        """Custom types can map to major."""
        rules = CommitRules.from_config(CommitsConfig(types_major=["remove"]))

        assert classify_line("remove: delete deprecated API", rules).bump == BumpType.MAJOR


class TestExtractIssues:
    """Tests for extract_issues()."""

    def test_trailing_group(self, rules: CommitRules):
        """A trailing (#123) group is removed."""
        assert extract_issues("something was contributed (#123)", rules) == ("something was contributed", [123])

    def test_trailing_group_with_several(self, rules: CommitRules):
        """(#1, #2) yields both numbers in order."""
        assert extract_issues("text (#1, #2)", rules) == ("text", [1, 2])

    def test_inline_keyword(self, rules: CommitRules):
        """closes #N is removed wherever it appears."""
        assert extract_issues("This rare bug was finally fixed closes #33343", rules) == (
            "This rare bug was finally fixed",
            [33343],
        )

    def test_line_of_only_references(self, rules: CommitRules):
        """A line that only references issues becomes empty."""
        assert extract_issues("fixes #453", rules) == ("", [453])

    def test_plain_hash_is_kept(self, rules: CommitRules):
        """A bare #N without keyword stays in the text."""
        assert extract_issues("see #12 for details", rules) == ("see #12 for details", [])


class TestParseMessage:
    """Tests for parse_message()."""

    def test_multiple_entries(self, rules: CommitRules):
        """Each recognized line starts its own entry."""
        entries = parse_message("fix: fix serious issue\nfeat: add new feature", rules)

        assert [(e.bump, e.description) for e in entries] == [
            (BumpType.PATCH, "fix serious issue"),
            (BumpType.MINOR, "add new feature"),
        ]

    def test_breaking_escalates_open_entry(self, rules: CommitRules):
        """BREAKING makes the open entry major and appends its text."""
        entries = parse_message(
            "feat: just adding feature\nBREAKING we broke anything\nfeat: but here we didn't break anything",
            rules,
        )

        assert entries[0] == Entry(bump=BumpType.MAJOR, description="just adding feature\nwe broke anything")
        assert entries[1].bump == BumpType.MINOR

    def test_breaking_without_entry_is_dropped(self, rules: CommitRules):
        """A BREAKING line before any entry has nothing to escalate."""
        assert parse_message("BREAKING everything\nsome text", rules) == []

    def test_free_text_is_discarded(self, rules: CommitRules):
        """Lines before the first entry are dropped."""
        assert parse_message("fix serious issue\nfeature something new", rules) == []

    def test_continuation_lines(self, rules: CommitRules):
        """Body lines are kept, blank lines skipped."""
        entries = parse_message("feat: add jsonc support\n\nEnabled for paths ending with `.jsonc`", rules)

        assert entries[0].description == "add jsonc support\nEnabled for paths ending with `.jsonc`"

    def test_ignored_block_cuts_description(self, rules: CommitRules):
        """A test: block ends the entry and its body is dropped."""
        entries = parse_message(
            "fix: handle null\nmore detail\ntest: Fix tests\nTests were hard to fix\nBREAKING nope",
            rules,
        )

        assert entries == [Entry(bump=BumpType.PATCH, description="handle null\nmore detail")]

    def test_breaking_body_keeps_word_prefixed_lines(self, rules: CommitRules):
        """Migration: and similar lines belong to a breaking change body."""
        entries = parse_message("feat: x\nBREAKING\nMigration: call y instead\nBefore: y()", rules)

        assert entries == [Entry(bump=BumpType.MAJOR, description="x\nMigration: call y instead\nBefore: y()")]

    def test_breaking_body_still_cut_by_ignored_type(self, rules: CommitRules):
        """Configured ignored types end a breaking change body."""
        entries = parse_message("feat: x\nBREAKING api gone\ntest: update cases\nhidden", rules)

        assert entries == [Entry(bump=BumpType.MAJOR, description="x\napi gone")]

    def test_breaking_body_through_classification(self):
        """The kept body lines reach the changelog bucket."""
        commits = [CommitRecord("", "feat: x\nBREAKING\nMigration: call y instead"), CommitRecord("abc", "tag")]

        result = classify_commits(commits, Version.parse("1.0.0"), cutoff_sha="abc")

        assert result.commits_by_rule == {"major": ["x\nMigration: call y instead"]}

    def test_entry_after_ignored_block(self, rules: CommitRules):
        """A recognized line after an ignored block opens a new entry."""
        entries = parse_message("test: add cases\nbody\nfix: real fix", rules)

        assert [e.description for e in entries] == ["real fix"]

    def test_issues_are_deduplicated(self, rules: CommitRules):
        """Issue numbers across lines merge in first-seen order."""
        entries = parse_message("fix: bug fixes #33343\n\nfixes #453\ncloses #33343", rules)

        assert entries[0].issues == (33343, 453)

    def test_sha_is_inherited(self, rules: CommitRules):
        """Entries remember their commit."""
        entries = parse_message("fix: a\nfeat: b", rules, sha=SHA)

        assert {e.sha for e in entries} == {SHA}


class TestRenderEntry:
    """Tests for render_entry()."""

    def test_scope(self):
        """Scope is rendered bold before the description."""
        entry = Entry(bump=BumpType.MINOR, description="text", scope="button")

        assert render_entry(entry) == "**button**: text"

    def test_issues_and_link(self):
        """Issues come before the commit link."""
        entry = Entry(bump=BumpType.PATCH, description="fixed", issues=(1, 2), sha=SHA)

        assert render_entry(entry, REPO_URL, link_commit=True) == f"fixed (#1, #2) {SHA_LINK}"

    def test_no_link_without_repo_url(self):
        """Without a repository URL there is nothing to link to."""
        entry = Entry(bump=BumpType.PATCH, description="fixed", sha=SHA)

        assert render_entry(entry, None, link_commit=True) == "fixed"


class TestCalculateBump:
    """Tests for calculate_bump() and effective_bump()."""

    def test_empty_is_none(self):
        """No entries means no bump."""
        assert calculate_bump([]) == BumpType.NONE

    def test_highest_wins(self):
        """The most significant entry decides."""
        entries = [Entry(BumpType.PATCH, "a"), Entry(BumpType.MAJOR, "b"), Entry(BumpType.MINOR, "c")]

        assert calculate_bump(entries) == BumpType.MAJOR

    @pytest.mark.parametrize(
        ("bump", "version", "expected"),
        [
            (BumpType.MAJOR, "1.0.0", BumpType.MAJOR),
            (BumpType.MAJOR, "0.4.1", BumpType.MINOR),
            (BumpType.MINOR, "0.4.1", BumpType.MINOR),
            (BumpType.PATCH, "0.4.1", BumpType.PATCH),
            (BumpType.NONE, "0.4.1", BumpType.NONE),
        ],
    )
    def test_effective_bump(self, bump: BumpType, version: str, expected: BumpType):
        """Only breaking changes are downgraded before 1.0."""
        assert effective_bump(bump, Version.parse(version), CommitsConfig()) == expected

    def test_unstable_minor_as_patch(self):
        """Opt-in: features bump patch before 1.0."""
        config = CommitsConfig(unstable_minor_as_patch=True)

        assert effective_bump(BumpType.MINOR, Version(0, 0, 9), config) == BumpType.PATCH
        assert effective_bump(BumpType.MINOR, Version(1, 0, 9), config) == BumpType.MINOR


class TestClassifyCommits:
    """Tests for classify_commits()."""

    def test_initial_release(self):
        """No previous tag: fixed message and patch-bumped manifest version."""
        result = classify_commits(make_commits("feat: something added"), Version.parse("0.0.0"), cutoff_sha=None)

        assert result.bump_type == BumpType.NONE
        assert str(result.next_version) == "0.0.1"
        assert result.commits_by_rule == {RAW_OVERRIDE: "🎉 Initial release"}
        assert result.is_initial_release
        assert not result.using_in_existing_env

    def test_just_bumps_correctly(self):
        """Features and fixes on 0.x give a minor bump."""
        result = classify_since_tag(
            [
                "fix: fix serious issue\nfeat: add new feature",
                "[publish] feat: just adding feature",
                "WIP fix: first fixes",
            ]
        )

        assert result.bump_type == BumpType.MINOR
        assert str(result.next_version) == "0.1.0"
        assert result.commits_by_rule == {
            "patch": ["fix serious issue"],
            "minor": ["add new feature", "just adding feature"],
        }

    def test_unstable_minor_as_patch(self):
        """With the opt-in rule, 0.0.9 plus features becomes 0.0.10."""
        result = classify_since_tag(
            ["fix: fix serious issue\nfeat: add new feature"],
            config=CommitsConfig(unstable_minor_as_patch=True),
        )

        assert result.bump_type == BumpType.PATCH
        assert str(result.next_version) == "0.0.10"

    def test_no_version_bump(self):
        """Commits without recognized prefixes produce nothing."""
        result = classify_since_tag(["fix serious issue\nfeature something new"])

        assert result.bump_type == BumpType.NONE
        assert result.next_version is None
        assert result.commits_by_rule == {}

    def test_stable_minor(self):
        """Stable versions get a regular minor bump."""
        result = classify_since_tag(
            ["fix: fix serious issue\nfeat: add new feature", "feat: just adding feature", "fix: first fixes"],
            "1.0.9",
        )

        assert result.bump_type == BumpType.MINOR
        assert str(result.next_version) == "1.1.0"
        assert result.commits_by_rule == {
            "patch": ["fix serious issue", "first fixes"],
            "minor": ["add new feature", "just adding feature"],
        }

    def test_commits_below_tag_are_excluded(self):
        """The tag commit and everything older are ignored."""
        commits = make_commits(
            "feat: just adding feature",
            "fix: first fixes",
            ("feat: should not be here", "123"),
            ("feat: should not be here", "3213"),
            "feat: something else",
        )
        result = classify_commits(commits, Version.parse("1.0.9"), cutoff_sha="123")

        assert result.commits_by_rule == {"minor": ["just adding feature"], "patch": ["first fixes"]}
        assert not result.using_in_existing_env

    def test_breaking_gives_major(self):
        """BREAKING on a stable version bumps major."""
        result = classify_since_tag(
            [
                "fix: fix serious issue\nfeat: add new feature\nBREAKING config was removed",
                "feat: just adding feature\nBREAKING we broke anything\nfeat: but here we didn't break anything",
                "fix: first fixes",
            ],
            "1.0.9",
        )

        assert result.bump_type == BumpType.MAJOR
        assert str(result.next_version) == "2.0.0"
        assert result.commits_by_rule == {
            "patch": ["fix serious issue", "first fixes"],
            "major": ["add new feature\nconfig was removed", "just adding feature\nwe broke anything"],
            "minor": ["but here we didn't break anything"],
        }

    def test_breaking_on_unstable_bumps_minor(self):
        """BREAKING on 0.x bumps minor but stays in the major bucket."""
        result = classify_since_tag(
            [
                "fix: fix serious issue\nfeat: add new feature\nBREAKING config was removed",
                "feat: just adding feature\nBREAKING we broke anything",
                "fix: first fixes",
            ],
            "0.0.7",
        )

        assert result.bump_type == BumpType.MINOR
        assert str(result.next_version) == "0.1.0"
        assert result.commits_by_rule["major"] == [
            "add new feature\nconfig was removed",
            "just adding feature\nwe broke anything",
        ]
        assert "minor" not in result.commits_by_rule

    def test_extracts_scopes(self):
        """Scopes render bold; Note: ends the entry."""
        result = classify_since_tag(
            [
                "fix: fix serious issue\nfeat: add new feature\nBREAKING config was removed",
                "feat(button): just adding feature\nBREAKING we broke anything",
                "fix: some things\nfeat(button): we're insane!\nNote: yes, we are!\n",
                "fix(library-action): first fixes",
            ],
            "0.0.7",
        )

        assert result.commits_by_rule == {
            "patch": ["fix serious issue", "some things", "**library-action**: first fixes"],
            "major": ["add new feature\nconfig was removed", "**button**: just adding feature\nwe broke anything"],
            "minor": ["**button**: we're insane!"],
        }

    def test_commit_link_once_per_commit(self):
        """Only the first entry of a commit is linked, and each sha only once."""
        result = classify_since_tag(
            [
                "fix: something fixed but we don't care",
                ("fix: fix serious issue\nfeat: add new feature\nBREAKING config was removed", SHA),
                ("fix: something was contributed (#123)", SHA),
            ]
        )

        assert result.bump_type == BumpType.MINOR
        assert str(result.next_version) == "0.1.0"
        assert result.commits_by_rule == {
            "patch": [
                "something fixed but we don't care",
                f"fix serious issue {SHA_LINK}",
                "something was contributed (#123)",
            ],
            "major": ["add new feature\nconfig was removed"],
        }

    def test_description_with_colon(self):
        """Only the first type prefix is parsed."""
        result = classify_since_tag(["fix: TypeError: Cannot read property 'nextVersion' of undefined NPM Release"])

        assert result.commits_by_rule == {
            "patch": ["TypeError: Cannot read property 'nextVersion' of undefined NPM Release"]
        }
        assert str(result.next_version) == "0.0.10"

    def test_operates_on_description(self):
        """Issue references are collected and test: bodies are cut off."""
        include_commit = (
            "\nfix: This rare bug was finally fixed closes #33343\n\n"
            "Some background for bug goes here...\n"
            "feat: Add new feature within commit\n"
            "Description"
        )
        not_include_commit = (
            "\nfix: This rare bug was finally fixed fixes #33343\n\n"
            "fixes #453\n"
            "Some background for bug goes here...\n"
            "test: Fix tests\n"
            "Tests were hard to fix"
        )
        result = classify_since_tag([include_commit, not_include_commit, "fix: first fixes"], "1.0.9")

        assert result.bump_type == BumpType.MINOR
        assert str(result.next_version) == "1.1.0"
        assert result.commits_by_rule == {
            "patch": [
                "This rare bug was finally fixed\nSome background for bug goes here... (#33343)",
                "This rare bug was finally fixed\n\nSome background for bug goes here... (#33343, #453)",
                "first fixes",
            ],
            "minor": ["Add new feature within commit\nDescription"],
        }

    def test_missing_tag_commit_uses_everything(self):
        """A tag whose commit is not in history flags an existing environment."""
        commits = make_commits("feat: a", "fix: b")
        result = classify_commits(commits, Version.parse("1.2.3"), cutoff_sha="deadbeef")

        assert result.using_in_existing_env
        assert result.commits_by_rule == {"minor": ["a"], "patch": ["b"]}

    def test_latest_tag_commit_sha_is_head(self):
        """The newest commit with a sha is reported for tagging."""
        commits = [CommitRecord("", "fix: a"), CommitRecord("head", "fix: b"), CommitRecord("123", "fix: c")]
        result = classify_commits(commits, Version.parse("1.0.0"), cutoff_sha="123")

        assert result.latest_tag_commit_sha == "head"

    def test_skip_release_markers_are_honoured(self):
        """Commits marked [skip release] are not classified."""
        result = classify_since_tag(["feat: hidden [skip release]", "fix: visible"], "1.0.0")

        assert result.commits_by_rule == {"patch": ["visible"]}


class TestFilterSkipReleaseCommits:
    """Tests for filter_skip_release_commits()."""

    def test_filter_with_skip_release_marker(self):
        """Commits with [skip release] are filtered out."""
        commits = [
            CommitRecord("a", "feat: add feature"),
            CommitRecord("b", "fix: bug fix [skip release]"),
            CommitRecord("c", "docs: update readme"),
        ]
        filtered = filter_skip_release_commits(commits, ["[skip release]"])

        assert [c.sha for c in filtered] == ["a", "c"]

    def test_filter_case_insensitive(self):
        """Skip markers are matched case-insensitively."""
        commits = [
            CommitRecord("a", "feat: add feature [SKIP RELEASE]"),
            CommitRecord("b", "fix: bug fix [Skip Release]"),
            CommitRecord("c", "docs: update readme"),
        ]
        filtered = filter_skip_release_commits(commits, ["[skip release]"])

        assert [c.sha for c in filtered] == ["c"]

    def test_filter_marker_in_body(self):
        """Skip markers in the commit body are also detected."""
        commits = [
            CommitRecord("a", "feat: add feature\n\nSome details [no release]"),
            CommitRecord("b", "fix: bug fix"),
        ]
        filtered = filter_skip_release_commits(commits, ["[no release]"])

        assert [c.sha for c in filtered] == ["b"]

    def test_filter_empty_patterns_returns_all(self):
        """Empty patterns list returns all commits."""
        commits = [CommitRecord("a", "feat: add feature [skip release]")]

        assert filter_skip_release_commits(commits, []) == commits
