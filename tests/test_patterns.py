"""Unit tests for path pattern matching."""

import pytest

from commit_assistant.patterns import (
    expand_excludes_path,
    glob_match,
    is_simple_glob_pattern,
    matches_pattern,
    parse_gitignore_file,
    passes_filter,
    should_exclude_file,
    should_include_file,
)


class TestMatchesPattern:
    """Tests for the four-way match order."""

    @pytest.mark.parametrize("path,pattern", [
        ("src/vendor/lib.py", "vendor"),        # substring of full path
        ("src/generated_models.py", "generated"),  # substring of basename
        ("src/app.py", "src/*.py"),             # glob on full path
        ("deep/nested/app.min.js", "*.min.js"),  # glob on basename
    ])
    def test_matches(self, path, pattern):
        assert matches_pattern(path, pattern)

    def test_no_match(self):
        assert not matches_pattern("src/app.py", "*.js")

    def test_star_does_not_cross_separator(self):
        """A glob on the full path matches one segment per star."""
        assert glob_match("src/*.py", "src/app.py")
        assert not glob_match("src/*.py", "src/sub/app.py")
        # ...but the basename fallback still catches it for bare globs
        assert matches_pattern("src/sub/app.py", "*.py")

    def test_question_mark(self):
        assert matches_pattern("a/file1.txt", "file?.txt")


class TestShouldExclude:
    """Tests for exclude logic with global patterns."""

    def test_local_exclude(self):
        assert should_exclude_file("build/out.o", ["*.o"])
        assert not should_exclude_file("src/main.c", ["*.o"])

    def test_global_directory_pattern(self):
        assert should_exclude_file("project/node_modules/pkg/index.js", [], ["node_modules/"])
        assert not should_exclude_file("project/src/index.js", [], ["node_modules/"])

    def test_global_checked_before_local(self):
        assert should_exclude_file(".DS_Store", [], [".DS_Store"])

    def test_no_patterns(self):
        assert not should_exclude_file("any/file.txt", [])


class TestShouldInclude:
    def test_empty_include_list_is_false(self):
        assert not should_include_file("src/app.py", [])

    def test_include_match(self):
        assert should_include_file("src/app.py", ["*.py"])
        assert not should_include_file("README.md", ["*.py"])


class TestPassesFilter:
    """Tests for the staging predicate."""

    def test_no_filters_pass_everything(self):
        assert passes_filter("anything.txt", [], [])

    def test_exclude_wins_over_include(self):
        assert not passes_filter("src/test_app.py", ["test_"], ["*.py"])

    def test_include_restricts(self):
        assert passes_filter("src/app.py", [], ["*.py"])
        assert not passes_filter("docs/index.md", [], ["*.py"])

    def test_global_patterns_apply(self):
        assert not passes_filter("app.log", [], [], ["*.log"])


class TestSimpleGlob:
    @pytest.mark.parametrize("pattern,expected", [
        ("*.py", True),
        ("file?.txt", True),
        ("src/*.py", False),
        ("vendor", False),
    ])
    def test_is_simple_glob_pattern(self, pattern, expected):
        assert is_simple_glob_pattern(pattern) is expected


class TestGitignoreFiles:
    """Tests for reading global excludes files."""

    def test_parse_skips_comments_blank_and_negation(self, tmp_path):
        ignore = tmp_path / "ignore"
        ignore.write_text("# comment\n\n*.log\n!keep.log\n  node_modules/  \n.DS_Store\n")

        assert parse_gitignore_file(ignore) == ["*.log", "node_modules/", ".DS_Store"]

    def test_missing_file_yields_no_patterns(self, tmp_path):
        assert parse_gitignore_file(tmp_path / "missing") == []

    def test_expand_relative_path(self, tmp_path):
        assert expand_excludes_path("ignore", cwd=str(tmp_path)) == tmp_path / "ignore"

    def test_expand_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))

        assert expand_excludes_path("~/.gitignore_global") == tmp_path / ".gitignore_global"

    def test_absolute_path_unchanged(self, tmp_path):
        path = tmp_path / "abs"
        assert expand_excludes_path(str(path), cwd="/elsewhere") == path
