from __future__ import annotations

import pytest

from core.custom_filters import CustomRules, build_custom_rules, matches
from core.errors import InvalidArgument
from core.normalizer import normalize


def test_substrings_are_case_insensitive() -> None:
    rules = build_custom_rules({"substrings": ["Gil For Sale"]})
    assert matches("CHEAP GIL FOR SALE", rules)
    assert not matches("gil wanted", rules)


def test_substring_rules_are_normalized_too() -> None:
    rules = build_custom_rules({"substrings": ["\ue055\ue056 gil"]})
    assert matches(normalize("only 12 gil today"), rules)


def test_regexes_search_anywhere() -> None:
    rules = build_custom_rules({"regexes": [r"discord\.gg/\w+"]})
    assert matches("join discord.gg/abc now", rules)
    assert not matches("join Discord.GG/abc now", rules)


def test_regex_can_opt_into_ignore_case() -> None:
    rules = build_custom_rules({"regexes": [r"(?i)discord\.gg/\w+"]})
    assert matches("join Discord.GG/abc now", rules)


def test_empty_rules_never_match() -> None:
    assert not matches("anything at all", CustomRules())
    assert not matches("anything at all", build_custom_rules({}))


def test_blank_substrings_are_dropped() -> None:
    rules = build_custom_rules({"substrings": ["", "spam"], "regexes": None})
    assert rules.substrings == ["spam"]
    assert not matches("hello", rules)


def test_invalid_regex_is_rejected() -> None:
    with pytest.raises(InvalidArgument):
        build_custom_rules({"regexes": ["(unclosed"]})


def test_raw_regex_keeps_patterns() -> None:
    rules = build_custom_rules({"regexes": ["a+", "b?"]})
    assert rules.raw_regex == ["a+", "b?"]
