"""Built-in solicitation heuristics.

The fallback detector used when no classifier is available. It needs no
configuration and keeps no history: it only answers "is this an RMT ad".
"""

from __future__ import annotations

import logging
import re
from typing import List

from core.listings import decode_batch, encode_batch
from core.models import REASON_HEURISTIC, ChatMessage
from core.normalizer import normalize

LOGGER = logging.getLogger(__name__)

_CURRENCY = r"(?:gil|mil|million|[0-9]+\s*m)"
# trading words only; everyday ones such as buy, safe or price do not count
_SELLING = r"(?:sell(?:ing|s)?|wts|cheap(?:est)?|instant|discount|delivery)"

SOLICITATION_PATTERNS: List[re.Pattern] = [
    # gil trading in either word order
    re.compile(rf"\b{_SELLING}\b.*\b{_CURRENCY}\b"),
    re.compile(rf"\b{_CURRENCY}\b.*\b(?:for\s+sale|{_SELLING})\b"),
    # promotion codes
    re.compile(r"\b[0-9]{1,2}\s*%\s*(?:off|discount)\b"),
    re.compile(r"\b(?:coupon|promo(?:tion)?)\s*code\b"),
    # paid leveling and clears
    re.compile(r"\bpower\s*-?\s*level(?:l?ing)?\b.*(?:\$|usd|\beur\b|\bcheap|\bprice|\border)"),
    re.compile(r"(?:\$|usd\b)\s*[0-9]+.*\b(?:clear|carry|run|mount)s?\b"),
    # web addresses, including spaced-out ones
    re.compile(r"\bw\s*w\s*w\s*\.\s*[a-z0-9-]+"),
    re.compile(r"[a-z0-9-]+\s*\.\s*(?:c\s*o\s*m|n\s*e\s*t)\b.*\b(?:gil|cheap|sell|offer)\b"),
]


def is_probable_solicitation(text: str) -> bool:
    """Whether normalized text matches any built-in solicitation pattern."""

    folded = normalize(text).casefold()
    return any(pattern.search(folded) for pattern in SOLICITATION_PATTERNS)


class LegacyDetector:
    """Boolean chat and listing filter built on the heuristics alone."""

    def check_chat(self, message: ChatMessage) -> bool:
        if message.channel.is_battle():
            return False
        if not is_probable_solicitation(message.text):
            return False
        LOGGER.info("Filtered chat message (%s): %s", REASON_HEURISTIC, message.text)
        return True

    def filter_batch(self, data: bytes) -> bytes:
        """Zero every listing whose description looks like an RMT ad."""

        batch = decode_batch(data)
        for index, listing in enumerate(batch.listings):
            if listing.is_null:
                continue
            if not is_probable_solicitation(listing.description):
                continue
            batch.suppress(index)
            LOGGER.info(
                "Filtered listing from %s (%s): %s",
                listing.name,
                REASON_HEURISTIC,
                listing.description,
            )
        return encode_batch(batch)
