"""Filter decision procedures (core domain).

Each procedure builds an ordered list of checks and stops at the first one
that yields a reason. Checks are evaluated lazily so the classifier is only
consulted when every rule above it has passed.

Chat:     custom rule > classifier > heuristics
Listings: item level > custom rule > classifier > heuristics

The heuristics step is a fallback: it only runs when enabled and the
classifier returned nothing.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from core.config import FilterConfig
from core.custom_filters import matches
from core.errors import ClassifierUnavailable
from core.heuristics import is_probable_solicitation
from core.listings import ListingRecord
from core.models import (
    PASS,
    REASON_CUSTOM,
    REASON_HEURISTIC,
    REASON_ITEM_LEVEL,
    ChatMessage,
    ChatType,
    Classification,
    FilterVerdict,
)
from core.normalizer import normalize, word_count
from core.ports import ClassifierPort

LOGGER = logging.getLogger(__name__)

# Shorter texts carry too little signal to classify without false positives.
MIN_WORDS = 4

Check = Callable[[], Optional[str]]


def _first_reason(checks: Iterable[Check]) -> Optional[str]:
    for check in checks:
        reason = check()
        if reason is not None:
            return reason
    return None


class _ClassifierCheck:
    """Classifier step of a chain. Remembers the version it saw."""

    def __init__(
        self,
        classifier: Optional[ClassifierPort],
        config: FilterConfig,
        channel: ChatType,
        text: str,
    ) -> None:
        self._classifier = classifier
        self._config = config
        self._channel = channel
        self._text = text
        self.version: Optional[str] = None
        self.answered = False

    def _classify(self) -> Optional[Classification]:
        try:
            return self._classifier.classify(int(self._channel), self._text)
        except ClassifierUnavailable as exc:
            LOGGER.debug("Classifier unavailable: %s", exc)
        except Exception:
            LOGGER.exception("Classifier failed, deciding on rules only")
        return None

    def __call__(self) -> Optional[str]:
        if self._classifier is None or word_count(self._text) < MIN_WORDS:
            return None

        result = self._classify()
        if result is None:
            return None

        self.answered = True
        self.version = result.version
        if self._config.category_enabled(result.category, self._channel):
            return result.category.value
        return None


def _heuristic_check(config: FilterConfig, classifier_check: _ClassifierCheck, text: str) -> Check:
    """Fallback step that runs only when the classifier had nothing to say."""

    def check() -> Optional[str]:
        if not config.heuristic_fallback or classifier_check.answered:
            return None
        if word_count(text) < MIN_WORDS or not is_probable_solicitation(text):
            return None
        return REASON_HEURISTIC

    return check


def _verdict(reason: Optional[str], classifier_check: _ClassifierCheck) -> FilterVerdict:
    return FilterVerdict(
        suppress=reason is not None,
        reason=reason,
        classifier_version=classifier_check.version,
    )


def decide_chat(
    message: ChatMessage,
    config: FilterConfig,
    classifier: Optional[ClassifierPort],
) -> Optional[FilterVerdict]:
    """Decide whether a chat message should be hidden.

    Returns None for battle channels, which are never filtered or recorded.
    """

    if message.channel.is_battle():
        return None

    text = normalize(message.text)
    classifier_check = _ClassifierCheck(classifier, config, message.channel, text)

    def custom_rule() -> Optional[str]:
        if config.custom_chat_filter and matches(text, config.chat_rules):
            return REASON_CUSTOM
        return None

    reason = _first_reason(
        [custom_rule, classifier_check, _heuristic_check(config, classifier_check, text)]
    )
    return _verdict(reason, classifier_check)


def decide_listing(
    listing: ListingRecord,
    config: FilterConfig,
    classifier: Optional[ClassifierPort],
) -> Optional[FilterVerdict]:
    """Decide whether a party finder listing should be zeroed.

    Returns None for null listings, which are skipped entirely. Private
    listings, when ignored, get the shared PASS verdict and no further checks;
    callers tell them apart from decided listings by identity.
    """

    if listing.is_null:
        return None

    if config.ignore_private_listings and listing.is_private:
        return PASS

    description = normalize(listing.description)
    classifier_check = _ClassifierCheck(classifier, config, ChatType.NONE, description)

    def item_level() -> Optional[str]:
        if (
            config.filter_item_level
            and config.max_item_level > 0
            and listing.minimum_item_level > config.max_item_level
        ):
            return REASON_ITEM_LEVEL
        return None

    def custom_rule() -> Optional[str]:
        if config.custom_listing_filter and matches(description, config.listing_rules):
            return REASON_CUSTOM
        return None

    reason = _first_reason(
        [
            item_level,
            custom_rule,
            classifier_check,
            _heuristic_check(config, classifier_check, description),
        ]
    )
    return _verdict(reason, classifier_check)
