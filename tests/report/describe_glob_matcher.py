"""Tests for stryker_report.glob_matcher — path glob compilation."""

import pytest

from stryker_report.errors import InvalidArgumentsError
from stryker_report.glob_matcher import (
    GlobMatcher,
    compile_glob,
    compile_globs,
    glob_to_regex,
    matches_any,
)


def describe_single_star():
    def it_matches_within_one_segment():
        m = compile_glob("src/*.cs")
        assert m.matches("src/a.cs")
        assert m.matches("src/.cs")

    def it_does_not_cross_separators():
        m = compile_glob("src/*.cs")
        assert not m.matches("src/sub/a.cs")


def describe_double_star():
    def it_matches_across_directories():
        m = compile_glob("src/**/a.cs")
        assert m.matches("src/sub/dir/a.cs")
        assert m.matches("src/sub/a.cs")

    def it_matches_zero_directories_before_separator():
        assert compile_glob("src/**/a.cs").matches("src/a.cs")

    def it_matches_any_suffix_at_end_of_pattern():
        m = compile_glob("src/**")
        assert m.matches("src/a.cs")
        assert m.matches("src/x/y/z.cs")
        assert not m.matches("lib/a.cs")

    def it_matches_zero_directories_at_pattern_start():
        m = compile_glob("**/a.cs")
        assert m.matches("a.cs")
        assert m.matches("src/x/a.cs")

    def it_requires_the_separator_when_not_a_whole_segment():
        m = compile_glob("a**/b.cs")
        assert not m.matches("ab.cs")
        assert m.matches("a/b.cs")
        assert m.matches("ax/y/b.cs")

    def it_matches_inside_a_segment():
        m = compile_glob("**Service.cs")
        assert m.matches("src/Api/UserService.cs")
        assert not m.matches("src/Api/UserService.csx")


def describe_question_mark():
    def it_matches_exactly_one_character():
        m = compile_glob("src/?.cs")
        assert m.matches("src/a.cs")
        assert not m.matches("src/ab.cs")
        assert not m.matches("src/.cs")

    def it_does_not_match_separator():
        assert not compile_glob("src?a.cs").matches("src/a.cs")


def describe_literals():
    def it_escapes_regex_metacharacters():
        m = compile_glob("src/a+b(1).cs")
        assert m.matches("src/a+b(1).cs")
        assert not m.matches("src/aab1.cs")

    def it_treats_dot_literally():
        assert not compile_glob("a.cs").matches("abcs")

    def it_is_case_sensitive():
        assert not compile_glob("Src/*.cs").matches("src/a.cs")


def describe_anchoring():
    def it_requires_a_whole_string_match():
        m = compile_glob("a.cs")
        assert not m.matches("src/a.cs")
        assert not m.matches("a.cs.bak")


def describe_separator_normalization():
    def it_normalizes_backslashes_in_pattern():
        assert compile_glob("src\\*.cs").matches("src/a.cs")

    def it_normalizes_backslashes_in_candidate():
        assert compile_glob("src/**/a.cs").matches("src\\sub\\a.cs")


def describe_glob_to_regex():
    def it_translates_wildcards():
        assert glob_to_regex("*") == "[^/]*"
        assert glob_to_regex("?") == "[^/]"
        assert glob_to_regex("**") == ".*"
        assert glob_to_regex("**/") == "(?:.*/)?"
        assert glob_to_regex("src/**/") == "src/(?:.*/)?"
        assert glob_to_regex("a**/") == "a.*/"


def describe_compile_globs():
    def it_compiles_each_distinct_pattern_once():
        matchers = compile_globs(["a/*", "b/*", "a/*"])
        assert [m.pattern for m in matchers] == ["a/*", "b/*"]

    def it_returns_empty_for_no_patterns():
        assert compile_globs([]) == []


def describe_matches_any():
    def it_or_combines_matchers():
        matchers = compile_globs(["a/*.cs", "b/*.cs"])
        assert matches_any(matchers, "b/x.cs")
        assert not matches_any(matchers, "c/x.cs")


def describe_compile_errors():
    def it_raises_invalid_arguments_at_construction(monkeypatch):
        monkeypatch.setattr(
            "stryker_report.glob_matcher.glob_to_regex", lambda pattern: "(unclosed"
        )
        with pytest.raises(InvalidArgumentsError, match="Invalid file pattern"):
            GlobMatcher("anything")
