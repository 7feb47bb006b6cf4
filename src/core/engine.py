"""Core filter engine.

This module is transport-agnostic. It owns the mutable state (history,
listing batch session, current config) and only relies on the classifier
port for outside help, so any chat or network hook can drive it.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from core.config import FilterConfig
from core.decision import decide_chat, decide_listing
from core.errors import InvalidArgument
from core.history import BatchSession, HistoryPartition, HistoryStore
from core.listings import ListingRecord, decode_batch, encode_batch
from core.models import PASS, ChatMessage, ChatType, FilterVerdict, HistoryEntry
from core.ports import ClassifierPort

LOGGER = logging.getLogger(__name__)


class FilterEngine:
    """Runs decisions, records history and rewrites listing batches.

    Every public operation holds one lock, so events may arrive from more
    than one thread.
    """

    def __init__(
        self,
        config: FilterConfig,
        classifier: Optional[ClassifierPort] = None,
        history: Optional[HistoryStore] = None,
    ) -> None:
        self._config = config
        self._classifier = classifier
        self._history = history or HistoryStore(config.history_capacity)
        self._session = BatchSession(on_new_batch=self._clear_listing_history)
        self._lock = threading.Lock()

    @property
    def config(self) -> FilterConfig:
        return self._config

    @property
    def history(self) -> HistoryStore:
        return self._history

    @property
    def session(self) -> BatchSession:
        return self._session

    def update_config(self, config: FilterConfig) -> None:
        with self._lock:
            self._config = config

    def _clear_listing_history(self) -> None:
        self._history.clear(HistoryPartition.LISTINGS)

    def handle_chat(self, message: ChatMessage) -> FilterVerdict:
        """Decide on one chat message and record it."""

        with self._lock:
            config = self._config
            verdict = decide_chat(message, config, self._classifier)
            if verdict is None:
                return PASS

            self._history.append(
                HistoryPartition.CHAT,
                HistoryEntry(
                    classifier_version=verdict.classifier_version,
                    channel=message.channel,
                    sender_id=message.sender_id,
                    sender=message.sender,
                    text=message.text,
                    suppressed=verdict.suppress,
                    reason=verdict.reason,
                    timestamp=message.timestamp,
                ),
            )

        if verdict.suppress and config.log_filtered_chat:
            LOGGER.info("Filtered chat message (%s): %s", verdict.reason, message.text)
        return verdict

    def filter_chat(self, channel_code: int, sender_id: int, sender: str, text: str) -> bool:
        """Inbound chat boundary. Returns True when the message must be hidden."""

        if text is None:
            raise InvalidArgument("message text cannot be None")

        message = ChatMessage(
            channel=ChatType.from_code(channel_code),
            sender_id=sender_id,
            sender=sender or "",
            text=text,
        )
        return self.handle_chat(message).suppress

    def _handle_listing_locked(self, listing: ListingRecord) -> Optional[FilterVerdict]:
        config = self._config
        verdict = decide_listing(listing, config, self._classifier)
        # PASS itself marks an ignored private listing, which is never recorded
        if verdict is None or verdict is PASS:
            return verdict

        self._history.append(
            HistoryPartition.LISTINGS,
            HistoryEntry(
                classifier_version=verdict.classifier_version,
                channel=ChatType.NONE,
                sender_id=listing.listing_id,
                sender=listing.name,
                text=listing.description,
                suppressed=verdict.suppress,
                reason=verdict.reason,
            ),
        )

        if verdict.suppress and config.log_filtered_listings:
            LOGGER.info(
                "Filtered listing from %s (%s): %s",
                listing.name,
                verdict.reason,
                listing.description,
            )
        return verdict

    def handle_listing(
        self, listing: ListingRecord, batch_number: Optional[int] = None
    ) -> Optional[FilterVerdict]:
        """Decide on a single listing. Returns None for null listings."""

        with self._lock:
            self._session.begin(batch_number)
            return self._handle_listing_locked(listing)

    def filter_batch(self, data: bytes, batch_number: Optional[int] = None) -> bytes:
        """Decide on every listing of a raw batch and zero the suppressed ones.

        Raises MalformedBatch before touching any state when the buffer has
        the wrong size; callers pass such buffers through unchanged.
        """

        batch = decode_batch(data)
        with self._lock:
            self._session.begin(batch_number)
            for index, listing in enumerate(batch.listings):
                verdict = self._handle_listing_locked(listing)
                if verdict is not None and verdict.suppress:
                    batch.suppress(index)
        return encode_batch(batch)

    def summary_received(self) -> None:
        """The server finished sending a batch; the next one starts fresh."""

        with self._lock:
            self._session.summary_received()
