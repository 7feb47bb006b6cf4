"""User-supplied custom filter rules (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable, List, Mapping

from core.errors import InvalidArgument
from core.normalizer import normalize


@dataclass(frozen=True)
class CustomRules:
    """Compiled custom rules for one rule set (chat or listings)."""

    substrings: List[str] = field(default_factory=list)
    regexes: List[re.Pattern] = field(default_factory=list)

    @property
    def raw_regex(self) -> List[str]:
        return [pattern.pattern for pattern in self.regexes]


def build_custom_rules(rules_config: Mapping[str, Iterable[str]]) -> CustomRules:
    """Normalize a rule set config and compile its regex patterns.

    Substrings are normalized and case-folded so matching is case-insensitive
    and glyph-agnostic.
    Regexes are compiled as written; a pattern that wants case-insensitivity
    says so with ``(?i)``.
    """

    substrings = [normalize(s).casefold() for s in rules_config.get("substrings", []) or [] if s]
    compiled: List[re.Pattern] = []
    for pattern in rules_config.get("regexes", []) or []:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise InvalidArgument(f"Invalid custom filter regex {pattern!r}: {exc}") from exc
    return CustomRules(substrings=substrings, regexes=compiled)


def matches(normalized_text: str, rules: CustomRules) -> bool:
    """Return True when any substring or regex rule hits the text."""

    folded = normalized_text.casefold()
    if any(substring in folded for substring in rules.substrings):
        return True
    return any(pattern.search(normalized_text) for pattern in rules.regexes)
