"""Definitions-file classifier adapter.

Implements the core ClassifierPort with a versioned JSON file of category
definitions. Each definition lists phrase groups that must all be present
and "likely" phrases of which a minimum number must be present. The first
definition that matches wins; anything else is NORMAL.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Iterable, List, Mapping, Optional

from core.errors import InvalidArgument
from core.models import ChatType, Classification, MessageCategory

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Definition:
    """One compiled category definition."""

    category: MessageCategory
    channels: Optional[frozenset[ChatType]]
    required: List[List[str]]
    likely: List[str]
    likely_threshold: int
    ignore_case: bool

    def matches(self, channel: ChatType, text: str) -> bool:
        if self.channels is not None and channel not in self.channels:
            return False

        haystack = text.casefold() if self.ignore_case else text
        if not all(any(phrase in haystack for phrase in group) for group in self.required):
            return False

        likely_hits = sum(1 for phrase in self.likely if phrase in haystack)
        return likely_hits >= self.likely_threshold


def build_definitions(definitions_config: Iterable[Mapping[str, Any]]) -> List[Definition]:
    """Normalize definition configs, folding case up front where requested."""

    compiled: List[Definition] = []
    for entry in definitions_config:
        category = MessageCategory.from_label(entry["category"])
        ignore_case = bool(entry.get("ignore_case", True))

        def fold(phrase: str) -> str:
            return phrase.casefold() if ignore_case else phrase

        required = [[fold(p) for p in group] for group in entry.get("required", []) or []]
        likely = [fold(p) for p in entry.get("likely", []) or []]
        threshold = int(entry.get("likely_threshold", 0))
        if not required and threshold < 1:
            raise InvalidArgument(f"Definition for {category.value} would match every message")

        raw_channels = entry.get("channels")
        channels = None
        if raw_channels is not None:
            channels = frozenset(ChatType.from_name(name) for name in raw_channels)

        compiled.append(
            Definition(
                category=category,
                channels=channels,
                required=required,
                likely=likely,
                likely_threshold=threshold,
                ignore_case=ignore_case,
            )
        )
    return compiled


class DefinitionsClassifier:
    """Classifier backed by a list of category definitions."""

    def __init__(self, version: str, definitions: Iterable[Definition]) -> None:
        self._version = version
        self._definitions = list(definitions)

    @property
    def version(self) -> str:
        return self._version

    @classmethod
    def from_config(cls, raw: Mapping[str, Any]) -> "DefinitionsClassifier":
        return cls(str(raw["version"]), build_definitions(raw.get("definitions", [])))

    @classmethod
    def from_file(cls, path: str) -> "DefinitionsClassifier":
        with open(path, "r", encoding="utf-8") as handle:
            classifier = cls.from_config(json.load(handle))
        LOGGER.info(
            "Loaded %s definitions (version %s) from %s",
            len(classifier._definitions),
            classifier.version,
            path,
        )
        return classifier

    def classify(self, channel_code: int, text: str) -> Optional[Classification]:
        channel = ChatType.from_code(channel_code)
        for definition in self._definitions:
            if definition.matches(channel, text):
                return Classification(definition.category, self._version)
        return Classification(MessageCategory.NORMAL, self._version)


class UnavailableClassifier:
    """Stand-in used when classification is switched off."""

    def classify(self, channel_code: int, text: str) -> Optional[Classification]:
        return None
