"""Recent decision history and listing batch tracking (core domain)."""

from __future__ import annotations

from collections import deque
from enum import Enum
import logging
from typing import Callable, Deque, Dict, Optional, Tuple

from core.config import DEFAULT_HISTORY_CAPACITY
from core.errors import InvalidArgument
from core.models import HistoryEntry

LOGGER = logging.getLogger(__name__)


class HistoryPartition(str, Enum):
    CHAT = "chat"
    LISTINGS = "listings"


class HistoryStore:
    """Two bounded, insertion-ordered logs. The oldest entry is evicted first."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise InvalidArgument("History capacity must be at least 1")
        self._capacity = capacity
        self._logs: Dict[HistoryPartition, Deque[HistoryEntry]] = {
            partition: deque(maxlen=capacity) for partition in HistoryPartition
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, partition: HistoryPartition, entry: HistoryEntry) -> None:
        self._logs[partition].append(entry)

    def clear(self, partition: HistoryPartition) -> None:
        self._logs[partition].clear()

    def snapshot(self, partition: HistoryPartition) -> Tuple[HistoryEntry, ...]:
        """Return the partition's entries, oldest first."""

        return tuple(self._logs[partition])


class BatchSession:
    """Track which listing batch is being received.

    The server resends the same batch until it sends a summary, so listings
    from one batch accumulate in history and only a new batch (a different
    batch number, or any batch after a summary) starts it over.
    """

    def __init__(self, on_new_batch: Callable[[], None]) -> None:
        self._on_new_batch = on_new_batch
        self._last_batch: Optional[int] = None
        self._clear_pending = False

    @property
    def last_batch(self) -> Optional[int]:
        return self._last_batch

    def summary_received(self) -> None:
        self._clear_pending = True

    def begin(self, batch_number: Optional[int]) -> bool:
        """Register an incoming batch. Returns True when history was cleared."""

        is_new = self._clear_pending or (
            batch_number is not None
            and self._last_batch is not None
            and batch_number != self._last_batch
        )
        if batch_number is not None:
            self._last_batch = batch_number
        self._clear_pending = False

        if is_new:
            LOGGER.debug("New listing batch %s, clearing listing history", batch_number)
            self._on_new_batch()
        return is_new
