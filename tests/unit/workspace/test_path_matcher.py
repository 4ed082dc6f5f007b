"""Unit tests for workspace.path_matcher module."""

import pytest

from src.workspace.path_matcher import (
    DEFAULT_IGNORE_FILE,
    PathMatcher,
    normalize_path,
)


class TestNormalizePath:
    """Test cases for normalize_path()."""

    @pytest.mark.parametrize("raw,expected", [
        ("docs/intro.md", "docs/intro.md"),
        ("./docs/intro.md", "docs/intro.md"),
        ("/docs/intro.md", "docs/intro.md"),
        ("docs\\guide\\intro.md", "docs/guide/intro.md"),
        ("secrets/", "secrets"),
        (".", ""),
        ("", ""),
    ])
    def test_normalizes_separators_and_prefixes(self, raw, expected):
        """Separators and leading markers are normalized."""
        assert normalize_path(raw) == expected


class TestStaticRules:
    """Test cases for PathMatcher.static_rules()."""

    def test_default_layout(self):
        """Build dir, framework link and build script are anchored at the root."""
        rules = PathMatcher.static_rules("build", "src/quartz", "build.js")

        assert rules == ["/build", "/src/quartz", ".git", "**/.git", "/build.js"]

    def test_extra_rules_come_last(self):
        """Extra rules are appended after the defaults."""
        rules = PathMatcher.static_rules("build", extra=["*.tmp"])

        assert rules[-1] == "*.tmp"
        assert ".git" in rules


class TestMatcherExcludes:
    """Test cases for Matcher.excludes()."""

    @pytest.fixture
    def static_rules(self):
        return PathMatcher.static_rules("build", "src/quartz", "build.js")

    def test_directory_only_pattern_matches_directory_itself(self, static_rules):
        """'secrets/' excludes the directory and everything beneath it."""
        matcher = PathMatcher.compile(static_rules, "secrets/\n")

        assert matcher.excludes("secrets", is_dir=True)
        assert matcher.excludes("secrets/key.txt")
        assert not matcher.excludes("docs/secrets.md")

    def test_static_rules_always_excluded(self, static_rules):
        """Build output, framework link, VCS dirs and the build script are excluded."""
        matcher = PathMatcher.compile(static_rules, "")

        assert matcher.excludes("build", is_dir=True)
        assert matcher.excludes("build/content/a.md")
        assert matcher.excludes("src/quartz", is_dir=True)
        assert matcher.excludes(".git", is_dir=True)
        assert matcher.excludes("vendor/lib/.git", is_dir=True)
        assert matcher.excludes("build.js")

    def test_static_rules_are_anchored(self, static_rules):
        """Nested paths that merely share a name with a static rule survive."""
        matcher = PathMatcher.compile(static_rules, "")

        assert not matcher.excludes("content/build", is_dir=True)
        assert not matcher.excludes("content/build.js")

    def test_user_negation_cannot_reinclude_static_rules(self, static_rules):
        """Static rules are applied after project rules."""
        matcher = PathMatcher.compile(static_rules, "!build\n!build/\n!.git\n")

        assert matcher.excludes("build", is_dir=True)
        assert matcher.excludes(".git", is_dir=True)

    def test_last_matching_rule_wins(self):
        """A later negation re-includes a path excluded by an earlier rule."""
        matcher = PathMatcher.compile([], "*.log\n!keep.log\n")

        assert matcher.excludes("debug.log")
        assert not matcher.excludes("keep.log")

    def test_comments_and_blank_lines_ignored(self):
        """Comment and blank lines contribute no rules."""
        matcher = PathMatcher.compile([], "# comment\n\n   \n*.tmp\n")

        assert matcher.rules == ("*.tmp",)

    def test_root_is_never_excluded(self, static_rules):
        """The workspace root itself is never excluded."""
        matcher = PathMatcher.compile(static_rules, "*\n")

        assert not matcher.excludes("")
        assert not matcher.excludes(".", is_dir=True)

    def test_windows_separators(self, static_rules):
        """Backslash paths match like forward-slash paths."""
        matcher = PathMatcher.compile(static_rules, "secrets/\n")

        assert matcher.excludes("secrets\\key.txt")
        assert matcher.excludes(".\\build\\index.html")


class TestFromWorkspace:
    """Test cases for PathMatcher.from_workspace()."""

    def test_reads_ignore_file(self, tmp_path):
        """Rules from the workspace ignore file are applied."""
        (tmp_path / DEFAULT_IGNORE_FILE).write_text("drafts/\n")

        matcher = PathMatcher.from_workspace(str(tmp_path), ["/build"])

        assert matcher.excludes("drafts", is_dir=True)
        assert matcher.excludes("build", is_dir=True)

    def test_missing_ignore_file_falls_back_to_static_rules(self, tmp_path, caplog):
        """A missing ignore file logs a warning and keeps the static rules."""
        with caplog.at_level("WARNING", logger="src.workspace.path_matcher"):
            matcher = PathMatcher.from_workspace(str(tmp_path), ["/build"])

        assert matcher.rules == ("/build",)
        assert "using default exclusions" in caplog.text

    def test_undecodable_ignore_file_falls_back(self, tmp_path, caplog):
        """An ignore file that is not valid UTF-8 is treated as missing."""
        (tmp_path / DEFAULT_IGNORE_FILE).write_bytes(b"\xff\xfe\x00bad")

        with caplog.at_level("WARNING", logger="src.workspace.path_matcher"):
            matcher = PathMatcher.from_workspace(str(tmp_path), ["/build"])

        assert matcher.rules == ("/build",)
        assert "Could not decode" in caplog.text

    def test_custom_ignore_file_name(self, tmp_path):
        """A configured ignore file name is honored."""
        (tmp_path / ".siteignore").write_text("*.bak\n")

        matcher = PathMatcher.from_workspace(str(tmp_path), [], ignore_file=".siteignore")

        assert matcher.excludes("notes.bak")
